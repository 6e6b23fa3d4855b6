"""
Base types and interfaces for literature providers.

Every provider adapter implements the LiteratureSource capability and
normalizes its provider's payload into CandidateRecord. Transport handling
lives in plain functions here that adapters call; nothing is inherited
beyond the interface itself.
"""
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, List, Optional

import httpx

from literature_tracer.core.exceptions import (
    ProviderUnavailableError,
    SourceHTTPError,
    SourceParseError,
    SourceRateLimitError,
    SourceTimeoutError,
)
from literature_tracer.schemas.literature import CandidateRecord
from literature_tracer.schemas.retrieval import SearchOptions


class LiteratureSource(ABC):
    """
    Abstract capability shared by all literature providers.

    To add a new provider:
    1. Create a class implementing the name property and search()
    2. Write a normalize_* function turning one raw result into a CandidateRecord
    3. Wire it into LiteraturePipeline

    Example:
        class NewSource(LiteratureSource):
            @property
            def name(self) -> str:
                return "NewSource"

            async def search(self, query, options=None) -> List[CandidateRecord]:
                ...
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name of the provider."""
        pass

    @property
    def is_configured(self) -> bool:
        """False when a required credential is missing."""
        return True

    @abstractmethod
    async def search(self, query: str, options: Optional[SearchOptions] = None) -> List[CandidateRecord]:
        """
        Search this provider for literature matching the query.

        Args:
            query: Free-text query (usually one sentence)
            options: Result count and filters

        Returns:
            Normalized candidate records, best match first

        Raises:
            SourceError: the call failed; ProviderUnavailableError when the
                provider cannot be used at all
        """
        pass


@asynccontextmanager
async def open_client(client: Optional[httpx.AsyncClient], timeout: float) -> AsyncIterator[httpx.AsyncClient]:
    """Yield the injected client, or a short-lived one closed on exit."""
    if client is not None:
        yield client
        return
    async with httpx.AsyncClient(timeout=timeout) as owned:
        yield owned


async def request_json(
    client: httpx.AsyncClient,
    source_name: str,
    method: str,
    url: str,
    timeout: float,
    allow_not_found: bool = False,
    **kwargs: Any,
) -> Optional[Any]:
    """
    Send one request and decode its JSON body, mapping failures to SourceError.

    A timeout aborts the underlying connection (httpx closes it), so a slow
    provider never leaves a dangling request behind in a concurrent fan-out.

    Returns:
        Decoded JSON, or None for a 404 when allow_not_found is set
    """
    try:
        response = await client.request(method, url, timeout=timeout, **kwargs)
    except httpx.TimeoutException as e:
        raise SourceTimeoutError(source_name, timeout) from e
    except httpx.ConnectError as e:
        raise ProviderUnavailableError(source_name, f"connection failed: {e}", transient=True) from e
    except httpx.HTTPError as e:
        raise SourceHTTPError(source_name, 0, str(e)) from e

    if response.status_code == 404 and allow_not_found:
        return None

    if response.status_code == 429:
        retry_after = response.headers.get("Retry-After")
        raise SourceRateLimitError(source_name, int(retry_after) if retry_after and retry_after.isdigit() else None)

    if response.status_code in (401, 403):
        raise ProviderUnavailableError(source_name, f"credential rejected (HTTP {response.status_code})")

    if response.status_code < 200 or response.status_code >= 300:
        raise SourceHTTPError(source_name, response.status_code, response.text[:200] or None)

    try:
        return response.json()
    except ValueError as e:
        raise SourceParseError(source_name, "response is not valid JSON") from e
