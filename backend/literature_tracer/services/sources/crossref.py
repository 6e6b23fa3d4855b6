"""
CrossRef data source.

CrossRef provides DOI metadata for 140M+ works.
- No API key required (use polite pool with email)
- Authoritative: records from here are the only verified ones
- Rate limited, so batch lookups run with bounded concurrency and retry

Uses httpx.AsyncClient for non-blocking HTTP requests.
"""
import asyncio
import html
import re
from typing import Dict, List, Optional, Sequence
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from literature_tracer.core.config import settings
from literature_tracer.core.exceptions import SourceError, SourceParseError
from literature_tracer.core.logging import get_logger
from literature_tracer.schemas.literature import (
    MISSING_IDENTIFIER,
    UNKNOWN_AUTHOR,
    UNKNOWN_JOURNAL,
    CandidateRecord,
    SourceProvider,
    current_year,
)
from literature_tracer.schemas.retrieval import SearchOptions
from literature_tracer.services.retry import call_with_retry
from .base import LiteratureSource, open_client, request_json

logger = get_logger(__name__)

DATE_FIELDS = ("published", "published-print", "published-online")


def format_authors(authors: Optional[List[Dict]]) -> List[str]:
    """Render CrossRef author objects as 'Given Family' strings."""
    if not authors:
        return [UNKNOWN_AUTHOR]

    if not isinstance(authors, list):
        authors = [authors]

    names = []
    for author in authors:
        if isinstance(author, str):
            names.append(author.strip() or UNKNOWN_AUTHOR)
            continue
        if not isinstance(author, dict):
            names.append(UNKNOWN_AUTHOR)
            continue
        given = str(author.get("given") or "").strip()
        family = str(author.get("family") or "").strip()
        # Consortium authors only carry a name
        name = " ".join(part for part in (given, family) if part) or str(author.get("name") or "").strip()
        names.append(name or UNKNOWN_AUTHOR)
    return names


def _first_date_part(value) -> Optional[int]:
    if not isinstance(value, dict):
        return None
    date_parts = value.get("date-parts")
    try:
        return int(date_parts[0][0])
    except (TypeError, ValueError, IndexError, KeyError):
        return None


def extract_year(work: Dict) -> int:
    """Year from the first usable date field: published, then print, then online."""
    for field in DATE_FIELDS:
        year = _first_date_part(work.get(field))
        if year:
            return year
    return current_year()


def _first_string(value) -> str:
    # CrossRef sends most text fields as single-element arrays
    if isinstance(value, list):
        value = value[0] if value else ""
    return value if isinstance(value, str) else ""


def extract_journal(work: Dict) -> str:
    return _first_string(work.get("container-title")).strip() or UNKNOWN_JOURNAL


def extract_title(work: Dict) -> str:
    return html.unescape(_first_string(work.get("title"))).strip() or "Untitled"


def clean_abstract(abstract: Optional[str]) -> Optional[str]:
    """CrossRef abstracts are JATS XML fragments; keep the text only."""
    if not abstract or not isinstance(abstract, str):
        return None
    text = re.sub(r"<[^>]+>", " ", abstract)
    text = re.sub(r"\s+", " ", html.unescape(text)).strip()
    return text or None


def normalize_crossref_work(work: Dict) -> CandidateRecord:
    """
    Convert one CrossRef work into a verified CandidateRecord.

    Raises:
        SourceParseError: the work cannot be turned into a record
    """
    doi = work.get("DOI")
    citations = work.get("is-referenced-by-count")
    try:
        return CandidateRecord(
            title=extract_title(work),
            authors=format_authors(work.get("author")),
            journal=extract_journal(work),
            year=extract_year(work),
            identifier=doi if isinstance(doi, str) and doi.strip() else MISSING_IDENTIFIER,
            abstract=clean_abstract(work.get("abstract")),
            citation_count=citations if isinstance(citations, int) else None,
            source_provider=SourceProvider.BIBLIOGRAPHIC,
        )
    except ValidationError as e:
        raise SourceParseError("CrossRef", f"invalid work: {e.error_count()} field error(s)") from e


class CrossrefSource(LiteratureSource):
    """Bibliographic metadata adapter with free-text, title and DOI lookups."""

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_concurrency: Optional[int] = None,
        max_retries: Optional[int] = None,
        retry_base_delay: Optional[float] = None,
    ):
        self._client = client
        self._base_url = (base_url or settings.crossref_base_url).rstrip("/")
        # CrossRef can be slow, use longer timeout
        self._timeout = timeout or max(settings.provider_timeout_seconds, 20.0)
        self._max_concurrency = max_concurrency or settings.crossref_max_concurrency
        self._max_retries = settings.retry_max_attempts if max_retries is None else max_retries
        self._retry_base_delay = settings.retry_base_delay_seconds if retry_base_delay is None else retry_base_delay
        self._headers = {
            "User-Agent": f"LiteratureTracer/1.0 (mailto:{settings.API_CONTACT_EMAIL})",
            "Accept": "application/json",
        }

    @property
    def name(self) -> str:
        return "CrossRef"

    async def search(self, query: str, options: Optional[SearchOptions] = None) -> List[CandidateRecord]:
        return await self.search_bibliographic(query, options=options)

    async def search_bibliographic(self, query: str, options: Optional[SearchOptions] = None) -> List[CandidateRecord]:
        """Free-text bibliographic query (`query=`)."""
        return await self._search({"query": query.strip()}, options)

    async def search_by_title(self, title: str, options: Optional[SearchOptions] = None) -> List[CandidateRecord]:
        """Title-targeted query (`query.title=`)."""
        return await self._search({"query.title": title.strip()}, options)

    async def _search(self, params: Dict, options: Optional[SearchOptions]) -> List[CandidateRecord]:
        options = options or SearchOptions(max_results=settings.crossref_rows_per_query)
        logger.info(f"Searching CrossRef: {next(iter(params.values()))[:50]}...")

        params = {
            **params,
            "rows": options.max_results,
            "offset": 0,
            "sort": "relevance",
            "order": "desc",
        }
        filters = []
        if options.start_year:
            filters.append(f"from-pub-date:{options.start_year}")
        if options.end_year:
            filters.append(f"until-pub-date:{options.end_year}")
        if filters:
            params["filter"] = ",".join(filters)

        async with open_client(self._client, self._timeout) as client:
            data = await request_json(
                client, self.name, "GET", self._base_url,
                timeout=self._timeout, params=params, headers=self._headers,
            )

        items = self._unwrap(data).get("items")
        if not isinstance(items, list):
            raise SourceParseError(self.name, "missing 'items' list")

        records = []
        for item in items:
            if not isinstance(item, dict):
                continue
            try:
                records.append(normalize_crossref_work(item))
            except SourceParseError as e:
                logger.warning(f"Skipping CrossRef work {item.get('DOI')}: {e}")

        logger.info(f"CrossRef: Returned {len(records)} works")
        return records

    async def get_by_doi(self, doi: str) -> Optional[CandidateRecord]:
        """
        Look up a single work by DOI.

        Returns:
            The record, or None when CrossRef does not know the DOI

        Raises:
            SourceError: the lookup itself failed
        """
        url = f"{self._base_url}/{quote(doi.strip(), safe='')}"
        async with open_client(self._client, self._timeout) as client:
            data = await request_json(
                client, self.name, "GET", url,
                timeout=self._timeout, headers=self._headers, allow_not_found=True,
            )
        if data is None:
            return None
        return normalize_crossref_work(self._unwrap(data))

    async def get_by_identifiers(
        self,
        identifiers: Sequence[str],
        slots: Optional[asyncio.Semaphore] = None,
    ) -> List[Optional[CandidateRecord]]:
        """
        Batch DOI lookup, index-aligned with the input.

        Lookups run at most max_concurrency at a time, each retried with
        backoff on transient errors. A DOI that is unknown or keeps failing
        yields None without failing the rest of the batch.

        Args:
            identifiers: DOIs to look up
            slots: Shared semaphore to draw from instead of a per-batch one,
                so the batch counts against a caller-wide CrossRef bound
        """
        semaphore = slots if slots is not None else asyncio.Semaphore(self._max_concurrency)

        async def lookup(doi: str) -> Optional[CandidateRecord]:
            async with semaphore:
                try:
                    return await call_with_retry(
                        self.get_by_doi, doi,
                        max_retries=self._max_retries,
                        base_delay=self._retry_base_delay,
                    )
                except SourceError as e:
                    logger.warning(f"CrossRef lookup failed for DOI {doi}: {e}")
                    return None

        return list(await asyncio.gather(*(lookup(doi) for doi in identifiers)))

    def _unwrap(self, data) -> Dict:
        if not isinstance(data, dict) or data.get("status") != "ok" or not isinstance(data.get("message"), dict):
            status = data.get("status") if isinstance(data, dict) else None
            raise SourceParseError(self.name, f"unexpected envelope (status={status})")
        return data["message"]
