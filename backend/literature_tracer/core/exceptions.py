"""
Custom Exceptions

Application-specific exception classes for better error handling
and more informative error messages.

Provider failures come in two flavours: the provider as a whole being
unusable (ProviderUnavailableError) and a single call against a working
provider failing (the remaining SourceError subclasses). The pipeline
treats them differently.
"""
from typing import Optional


class LiteratureTracerError(Exception):
    """Base exception for all application errors."""
    pass


# === Data Source Errors ===

class SourceError(LiteratureTracerError):
    """Base exception for literature provider errors."""
    def __init__(self, source_name: str, message: str):
        self.source_name = source_name
        self.message = message
        super().__init__(f"{source_name}: {message}")


# Alias used by adapter contracts
ProviderError = SourceError


class ProviderUnavailableError(SourceError):
    """Provider credential is missing or the provider is unreachable at transport level."""
    def __init__(self, source_name: str, detail: Optional[str] = None, transient: bool = False):
        msg = "Provider unavailable"
        if detail:
            msg += f": {detail}"
        super().__init__(source_name, msg)
        self.detail = detail
        self.transient = transient


class SourceTimeoutError(SourceError):
    """Data source timed out during request."""
    def __init__(self, source_name: str, timeout_seconds: float):
        super().__init__(source_name, f"Request timed out after {timeout_seconds}s")
        self.timeout_seconds = timeout_seconds


class SourceRateLimitError(SourceError):
    """Data source rate limit exceeded."""
    def __init__(self, source_name: str, retry_after: Optional[int] = None):
        msg = "Rate limit exceeded"
        if retry_after:
            msg += f", retry after {retry_after}s"
        super().__init__(source_name, msg)
        self.retry_after = retry_after


class SourceHTTPError(SourceError):
    """Data source returned an HTTP error status."""
    def __init__(self, source_name: str, status_code: int, detail: Optional[str] = None):
        msg = f"HTTP {status_code}"
        if detail:
            msg += f": {detail}"
        super().__init__(source_name, msg)
        self.status_code = status_code


class SourceParseError(SourceError):
    """Failed to parse response from data source."""
    def __init__(self, source_name: str, detail: Optional[str] = None):
        msg = "Failed to parse response"
        if detail:
            msg += f": {detail}"
        super().__init__(source_name, msg)


def is_transient(error: BaseException) -> bool:
    """
    Whether a provider error is worth retrying.

    Timeouts, rate limits, 5xx responses and connection failures are
    transient. Missing credentials, 4xx responses and unparseable payloads
    are not.
    """
    if isinstance(error, (SourceTimeoutError, SourceRateLimitError)):
        return True
    if isinstance(error, SourceHTTPError):
        return error.status_code >= 500
    if isinstance(error, ProviderUnavailableError):
        # A missing key will not appear between attempts; a refused connection might recover
        return error.transient
    return False


# === Request Errors ===

class InvalidRequestError(LiteratureTracerError):
    """Malformed input to the pipeline, rejected before any fan-out."""
    def __init__(self, field: str, message: str):
        self.field = field
        self.message = message
        super().__init__(f"Invalid request field '{field}': {message}")


# === LLM/AI Errors ===

class EvaluatorError(LiteratureTracerError):
    """Base exception for LLM evaluation errors."""
    pass


class EvaluatorUnavailableError(EvaluatorError):
    """No LLM credential configured."""
    def __init__(self, detail: str = "LLM API key is not configured"):
        super().__init__(detail)


class EvaluatorTimeoutError(EvaluatorError):
    """LLM call exceeded its hard timeout."""
    def __init__(self, timeout_seconds: float):
        super().__init__(f"LLM call timed out after {timeout_seconds}s")
        self.timeout_seconds = timeout_seconds


# === Cache Errors ===

class CacheError(LiteratureTracerError):
    """Base exception for cache-related errors."""
    pass


class CacheConnectionError(CacheError):
    """Failed to connect to cache backend."""
    def __init__(self, host: str, port: Optional[int] = None, detail: Optional[str] = None):
        if port:
            msg = f"Failed to connect to cache at {host}:{port}"
        else:
            msg = f"Failed to connect to {host} cache"
        if detail:
            msg += f": {detail}"
        super().__init__(msg)
        self.host = host
        self.port = port
