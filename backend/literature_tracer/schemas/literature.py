"""
Literature Schemas

The common record shape every provider adapter normalizes into, the merged
record produced by deduplication, and the evaluation attached after ranking.
"""
import math
import re
from datetime import datetime
from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, computed_field, field_validator

UNKNOWN_AUTHOR = "Unknown Author"
UNKNOWN_JOURNAL = "Unknown Journal"
MISSING_IDENTIFIER = "N/A"

MIN_PLAUSIBLE_YEAR = 1000


def current_year() -> int:
    return datetime.now().year


class SourceProvider(str, Enum):
    """Which provider a candidate record came from."""
    NEURAL = "neural"
    BIBLIOGRAPHIC = "bibliographic"


class CandidateRecord(BaseModel):
    """
    One literature item as returned by a single provider, pre-deduplication.

    `verified` is derived from `source_provider`: only records from the
    authoritative bibliographic provider are verified.
    """
    title: str
    authors: List[str] = Field(default_factory=lambda: [UNKNOWN_AUTHOR])
    journal: str = UNKNOWN_JOURNAL
    year: int = Field(default_factory=current_year)
    identifier: str = MISSING_IDENTIFIER
    abstract: Optional[str] = None
    citation_count: Optional[int] = None
    impact_factor: Optional[float] = None
    supporting_pages: Optional[int] = None
    source_provider: SourceProvider

    @field_validator("title")
    @classmethod
    def _clean_title(cls, value: str) -> str:
        cleaned = re.sub(r"\s+", " ", value or "").strip()
        if not cleaned:
            raise ValueError("title must not be empty")
        return cleaned

    @field_validator("authors", mode="before")
    @classmethod
    def _default_authors(cls, value):
        if not value:
            return [UNKNOWN_AUTHOR]
        authors = [a.strip() for a in value if isinstance(a, str) and a.strip()]
        return authors or [UNKNOWN_AUTHOR]

    @field_validator("journal", mode="before")
    @classmethod
    def _default_journal(cls, value):
        if not value or not str(value).strip():
            return UNKNOWN_JOURNAL
        return str(value).strip()

    @field_validator("year", mode="before")
    @classmethod
    def _plausible_year(cls, value):
        try:
            year = int(value)
        except (TypeError, ValueError):
            return current_year()
        if year < MIN_PLAUSIBLE_YEAR or year > current_year() + 1:
            return current_year()
        return year

    @field_validator("identifier", mode="before")
    @classmethod
    def _default_identifier(cls, value):
        if not value or not str(value).strip():
            return MISSING_IDENTIFIER
        return str(value).strip()

    @field_validator("abstract", mode="before")
    @classmethod
    def _empty_abstract_is_absent(cls, value):
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @field_validator("citation_count", "supporting_pages", mode="before")
    @classmethod
    def _non_negative_int(cls, value):
        if value is None:
            return None
        try:
            number = int(value)
        except (TypeError, ValueError):
            return None
        return number if number >= 0 else None

    @field_validator("impact_factor", mode="before")
    @classmethod
    def _non_negative_float(cls, value):
        if value is None:
            return None
        try:
            number = float(value)
        except (TypeError, ValueError):
            return None
        if math.isnan(number) or number < 0:
            return None
        return number

    @computed_field
    @property
    def verified(self) -> bool:
        return self.source_provider == SourceProvider.BIBLIOGRAPHIC

    @property
    def has_identifier(self) -> bool:
        return bool(self.identifier) and self.identifier != MISSING_IDENTIFIER

    @property
    def completeness_score(self) -> int:
        return score_completeness(self)


def normalize_text(text: str) -> str:
    """Lowercase, strip punctuation, collapse whitespace. Unicode letters (CJK included) survive."""
    text = re.sub(r"[^\w\s]", "", (text or "").lower()).replace("_", "")
    return re.sub(r"\s+", " ", text).strip()


def canonical_key(record: CandidateRecord) -> str:
    """
    Identity used to detect the same publication across providers.

    doi:<identifier> when the record carries an identifier, otherwise
    title:<normalized title>|author:<normalized first author>|year:<year>.
    """
    identifier = (record.identifier or "").strip()
    if identifier and identifier != MISSING_IDENTIFIER:
        return f"doi:{identifier.lower()}"

    first_author = record.authors[0] if record.authors else "unknown"
    return (
        f"title:{normalize_text(record.title)}"
        f"|author:{normalize_text(first_author)}"
        f"|year:{record.year}"
    )


def score_completeness(record: CandidateRecord) -> int:
    """Weighted count of populated optional metadata fields (0-9). Tie-break only."""
    score = 0
    if record.has_identifier:
        score += 3
    if record.abstract:
        score += 2
    if record.citation_count:
        score += 1
    if record.impact_factor:
        score += 1
    if len(record.authors) > 1:
        score += 1
    if record.journal and record.journal != UNKNOWN_JOURNAL:
        score += 1
    return score


class ScoredReason(BaseModel):
    score: float = Field(ge=0, le=10)
    reason: str

    @field_validator("score", mode="before")
    @classmethod
    def _clamp(cls, value):
        try:
            number = float(value)
        except (TypeError, ValueError):
            return 0.0
        if math.isnan(number):
            return 0.0
        return max(0.0, min(10.0, number))


class Evaluation(BaseModel):
    """Quality evaluation of one record against the query sentence."""
    relevance: ScoredReason
    credibility: ScoredReason
    impact: ScoredReason
    advantages: List[str] = Field(default_factory=list)
    limitations: List[str] = Field(default_factory=list)
    method: Literal["llm", "heuristic"] = "llm"


class MergedRecord(CandidateRecord):
    """A deduplicated record, possibly merged from several observations."""
    evaluation: Optional[Evaluation] = None

    @computed_field
    @property
    def completeness_score(self) -> int:
        return score_completeness(self)

    @classmethod
    def from_candidate(cls, record: CandidateRecord) -> "MergedRecord":
        if isinstance(record, MergedRecord):
            return record.model_copy(deep=True)
        return cls(**record.model_dump(exclude={"verified"}))
