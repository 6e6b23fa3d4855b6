"""
Exa neural search source.

Exa runs embedding-based search over the web with a "research paper"
category filter.
- API key required (EXA_API_KEY)
- Results are web pages: no DOI field, free-text author, ISO published date

Results are unverified; venue, identifier and authors are inferred from
the URL and the free-text author string.
"""
import re
from typing import Dict, List, Optional
from urllib.parse import urlparse

import httpx
from pydantic import ValidationError

from literature_tracer.core.config import settings
from literature_tracer.core.exceptions import ProviderUnavailableError, SourceParseError
from literature_tracer.core.logging import get_logger
from literature_tracer.schemas.literature import (
    UNKNOWN_AUTHOR,
    UNKNOWN_JOURNAL,
    CandidateRecord,
    SourceProvider,
    current_year,
)
from literature_tracer.schemas.retrieval import SearchOptions
from .base import LiteratureSource, open_client, request_json

logger = get_logger(__name__)

# Known academic hosts -> display venue. Matched on the registrable domain.
VENUE_BY_DOMAIN: Dict[str, str] = {
    "arxiv.org": "arXiv",
    "pubmed.ncbi.nlm.nih.gov": "PubMed",
    "nature.com": "Nature",
    "science.org": "Science",
    "cell.com": "Cell",
    "nejm.org": "New England Journal of Medicine",
    "thelancet.com": "The Lancet",
    "bmj.com": "BMJ",
    "springer.com": "Springer",
    "wiley.com": "Wiley",
    "elsevier.com": "Elsevier",
    "sciencedirect.com": "Elsevier",
    "ieee.org": "IEEE",
    "acm.org": "ACM",
    "plos.org": "PLOS",
    "frontiersin.org": "Frontiers",
    "mdpi.com": "MDPI",
    "biorxiv.org": "bioRxiv",
    "medrxiv.org": "medRxiv",
}

DOI_IN_TEXT = re.compile(r"10\.\d{4,9}/[^\s?#&]+", re.IGNORECASE)
AUTHOR_SEPARATORS = re.compile(r"\s*(?:,|;|\band\b)\s*", re.IGNORECASE)


def venue_from_url(url: str) -> str:
    """Map a result URL to a venue name, falling back to the bare hostname."""
    try:
        hostname = (urlparse(url).hostname or "").lower()
    except ValueError:
        # Malformed netloc, e.g. an unclosed IPv6 bracket
        hostname = ""
    if not hostname:
        return UNKNOWN_JOURNAL
    for domain, venue in VENUE_BY_DOMAIN.items():
        if hostname == domain or hostname.endswith("." + domain):
            return venue
    return hostname[4:] if hostname.startswith("www.") else hostname


def doi_from_url(url: str) -> Optional[str]:
    """Extract a DOI embedded in a URL (doi.org links, publisher /doi/ paths)."""
    match = DOI_IN_TEXT.search(url or "")
    if not match:
        return None
    return match.group(0).rstrip(".,;)/")


def split_authors(author_field) -> List[str]:
    """Split a free-text author string on commas, semicolons and ' and '."""
    if isinstance(author_field, list):
        author_field = ", ".join(a for a in author_field if isinstance(a, str))
    if not author_field or not isinstance(author_field, str):
        return [UNKNOWN_AUTHOR]
    authors = []
    for fragment in AUTHOR_SEPARATORS.split(author_field):
        fragment = fragment.strip()
        if not fragment or re.fullmatch(r"[\d\s.]+", fragment):
            continue
        authors.append(fragment)
    return authors or [UNKNOWN_AUTHOR]


def year_from_date(published_date: Optional[str]) -> int:
    if isinstance(published_date, str):
        match = re.match(r"\s*(\d{4})", published_date)
        if match:
            return int(match.group(1))
    return current_year()


def _text(value) -> str:
    return value.strip() if isinstance(value, str) else ""


def normalize_exa_result(result: Dict) -> Optional[CandidateRecord]:
    """
    Convert one Exa search result into a CandidateRecord.

    Returns None for results without a usable title.

    Raises:
        SourceParseError: the result cannot be turned into a record
    """
    title = _text(result.get("title"))
    if not title:
        return None

    url = _text(result.get("url"))
    identifier = _text(result.get("doi")) or doi_from_url(url) or url
    highlights = result.get("highlights")
    highlight_count = len(highlights) if isinstance(highlights, list) else 0

    try:
        return CandidateRecord(
            title=title,
            authors=split_authors(result.get("author")),
            journal=venue_from_url(url),
            year=year_from_date(result.get("publishedDate")),
            identifier=identifier,
            abstract=_text(result.get("text")) or _text(result.get("summary")) or None,
            supporting_pages=highlight_count or 1,
            source_provider=SourceProvider.NEURAL,
        )
    except ValidationError as e:
        raise SourceParseError("Exa", f"invalid result: {e.error_count()} field error(s)") from e


class ExaSource(LiteratureSource):
    """Neural search adapter. Unconfigured instances refuse to search."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
    ):
        self._api_key = api_key if api_key is not None else settings.EXA_API_KEY
        self._client = client
        self._base_url = (base_url or settings.exa_base_url).rstrip("/")
        self._timeout = timeout or settings.provider_timeout_seconds
        if not self._api_key:
            logger.warning("EXA_API_KEY is not set; neural search is unavailable")

    @property
    def name(self) -> str:
        return "Exa"

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    async def search(self, query: str, options: Optional[SearchOptions] = None) -> List[CandidateRecord]:
        """
        Run one neural search.

        Raises:
            ProviderUnavailableError: no API key configured or connection refused
            SourceError: any other failure of this call
        """
        if not self.is_configured:
            raise ProviderUnavailableError(self.name, "EXA_API_KEY is not configured")

        options = options or SearchOptions(max_results=settings.neural_results_per_query)
        logger.info(f"Searching Exa: {query[:50]}...")

        body = {
            "query": query,
            "numResults": options.max_results,
            "type": "neural",
            "category": "research paper",
            "useAutoprompt": True,
            "contents": {
                "text": options.include_abstract,
                "highlights": True,
                "summary": False,
            },
        }
        if options.start_year:
            body["startPublishedDate"] = f"{options.start_year}-01-01T00:00:00.000Z"
        if options.end_year:
            body["endPublishedDate"] = f"{options.end_year}-12-31T23:59:59.999Z"

        headers = {"x-api-key": self._api_key, "Content-Type": "application/json"}

        async with open_client(self._client, self._timeout) as client:
            data = await request_json(
                client, self.name, "POST", f"{self._base_url}/search",
                timeout=self._timeout, json=body, headers=headers,
            )

        if not isinstance(data, dict) or not isinstance(data.get("results"), list):
            raise SourceParseError(self.name, "missing 'results' array")

        records = []
        for result in data["results"]:
            if not isinstance(result, dict):
                continue
            try:
                record = normalize_exa_result(result)
            except SourceParseError as e:
                logger.warning(f"Skipping Exa result {result.get('url')}: {e}")
                continue
            if record is not None:
                records.append(record)

        logger.info(f"Exa: Returned {len(records)} results")
        return records
