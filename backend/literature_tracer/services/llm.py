"""
LLM Client Management

Provides cached instances of LLM clients to avoid recreating
connections for every call. Uses lru_cache for thread-safe
singleton-like behavior.

All clients talk to an OpenAI-compatible endpoint (OpenRouter by default),
so the model name carries the vendor prefix, e.g. "openai/gpt-4o".
"""
from functools import lru_cache
from typing import Optional

from langchain_openai import ChatOpenAI

from literature_tracer.core.config import settings
from literature_tracer.core.exceptions import EvaluatorUnavailableError


def llm_available() -> bool:
    """True when an LLM credential is configured."""
    return bool(settings.LLM_API_KEY)


@lru_cache(maxsize=4)
def get_llm(
    model: Optional[str] = None,
    temperature: float = 0.0,
    timeout: Optional[float] = None,
) -> ChatOpenAI:
    """
    Get a cached LLM instance.

    Args:
        model: Model name on the configured endpoint (default: EVALUATION_MODEL)
        temperature: Temperature for generation (0 = deterministic)
        timeout: Per-request HTTP timeout in seconds

    Returns:
        Cached ChatOpenAI instance

    Raises:
        EvaluatorUnavailableError: No LLM API key configured
    """
    if not llm_available():
        raise EvaluatorUnavailableError()
    return ChatOpenAI(
        model=model or settings.evaluation_model,
        temperature=temperature,
        api_key=settings.LLM_API_KEY,
        base_url=settings.llm_base_url,
        timeout=timeout or settings.evaluation_timeout_seconds,
        max_retries=0,
    )


def get_structured_llm(output_schema, model: Optional[str] = None, timeout: Optional[float] = None):
    """
    Get an LLM configured for structured output.

    This creates a new instance each time because with_structured_output
    returns a new object. The underlying HTTP client is still shared.

    Args:
        output_schema: Pydantic model or schema for output structure
        model: Optional model override
        timeout: Optional per-request timeout override

    Returns:
        LLM configured for structured output
    """
    return get_llm(model, 0.0, timeout).with_structured_output(output_schema)


def clear_llm_cache():
    """
    Clear the LLM client cache.

    Useful for testing or when you need to force re-initialization.
    """
    get_llm.cache_clear()
