"""
Literature evaluation.

Scores a record against the sentence it was retrieved for on three criteria
(relevance, credibility, impact), each 0-10 with a short reason, plus lists
of advantages and limitations.

The LLM judge is tried first; whenever it is unavailable or fails, a
deterministic heuristic computed from the record's metadata is returned
instead, so evaluation never fails a request.
"""
import asyncio
import math
from typing import List, Optional, Sequence

from pydantic import ValidationError

from literature_tracer.core.config import settings
from literature_tracer.core.exceptions import (
    EvaluatorError,
    EvaluatorTimeoutError,
    EvaluatorUnavailableError,
)
from literature_tracer.core.logging import get_logger
from literature_tracer.schemas.literature import (
    CandidateRecord,
    Evaluation,
    ScoredReason,
    current_year,
)
from literature_tracer.schemas.retrieval import LLMEvaluation
from literature_tracer.services.cache import EvaluationCache
from literature_tracer.services.llm import get_structured_llm, llm_available

logger = get_logger(__name__)

CITATION_SCALE = 100.0
IMPACT_SCALE = 10.0
RECENCY_HORIZON_YEARS = 20.0
UNKNOWN_YEAR_RECENCY = 0.5

SYSTEM_PROMPT = """You are an expert academic literature evaluator. Evaluate the relevance and quality of an academic paper against the user's query sentence.

Score each criterion with an integer between 0 and 10 inclusive and give a short reason:
- relevance: how well the paper addresses the query
- credibility: journal reputation, citation count and author credentials
- impact: citation count, impact factor and potential influence

Also list the paper's key advantages and its limitations or methodological concerns.
Be objective. If a field is "Not available", do not guess its value."""


def _finite(value) -> float:
    """Coerce to float, mapping None, NaN and garbage to 0."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    return 0.0 if math.isnan(number) else number


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, _finite(value)))


def calculate_relevance_score(query: str, title: str, abstract: Optional[str] = None) -> float:
    """
    Keyword overlap of the query with a record's title and abstract, 0-10.

    Each query word scores 2 if it appears among the title words and 1 if
    it appears among the abstract words; the total is averaged over query
    words and scaled by 5.
    """
    query_words = (query or "").lower().split()
    if not query_words:
        return 0.0

    title_words = set((title or "").lower().split())
    abstract_words = set((abstract or "").lower().split())

    score = 0
    for word in query_words:
        if word in title_words:
            score += 2
        if word in abstract_words:
            score += 1

    return min(10.0, score / len(query_words) * 5)


def heuristic_evaluation(query: str, record: CandidateRecord, now_year: Optional[int] = None) -> Evaluation:
    """
    Deterministic evaluation from record metadata alone.

    Total over any record, including ones with negative, missing or NaN
    metrics: every score lands in [0, 10].
    """
    now_year = now_year or current_year()
    keyword = _clamp(calculate_relevance_score(query, record.title, record.abstract), 0.0, 10.0)

    citations = _finite(record.citation_count)
    impact_factor = _finite(record.impact_factor)
    cit = _clamp(citations / CITATION_SCALE)
    imp = _clamp(impact_factor / IMPACT_SCALE)
    if record.year:
        rec = _clamp(1 - (now_year - record.year) / RECENCY_HORIZON_YEARS)
    else:
        rec = UNKNOWN_YEAR_RECENCY

    relevance = keyword * 0.7 + imp * 10 * 0.1 + cit * 10 * 0.2
    credibility = (cit * 0.5 + imp * 0.4 + rec * 0.1) * 10
    impact = (cit * 0.7 + imp * 0.3) * 10

    advantages = []
    if citations >= 50:
        advantages.append("High citation count")
    if impact_factor >= 5:
        advantages.append("High journal impact factor")
    if rec >= 0.7:
        advantages.append("Recent publication")

    limitations = []
    if not record.abstract:
        limitations.append("Abstract missing")
    if impact_factor <= 0:
        limitations.append("Impact factor unavailable")
    if citations <= 0:
        limitations.append("Citation count unavailable")
    if keyword < 4:
        limitations.append("Low keyword match to query")

    return Evaluation(
        relevance=ScoredReason(
            score=_clamp(relevance, 0.0, 10.0),
            reason="Estimated relevance from keyword match and basic metadata",
        ),
        credibility=ScoredReason(
            score=_clamp(credibility, 0.0, 10.0),
            reason="Estimated credibility from citations, impact factor, and recency",
        ),
        impact=ScoredReason(
            score=_clamp(impact, 0.0, 10.0),
            reason="Estimated impact from citations and journal impact factor",
        ),
        advantages=advantages or ["Academic paper"],
        limitations=limitations or ["LLM evaluation unavailable"],
        method="heuristic",
    )


def build_evaluation_prompt(query: str, record: CandidateRecord) -> str:
    has_identifier = record.identifier and record.identifier != "N/A"
    return f"""Evaluate the following academic paper for its relevance and quality based on the user's query.

USER QUERY: "{query}"

PAPER:
- Title: {record.title}
- Authors: {", ".join(record.authors)}
- Journal: {record.journal}
- Year: {record.year}
- DOI: {record.identifier if has_identifier else "Not available"}
- Citation Count: {record.citation_count if record.citation_count is not None else "Not available"}
- Impact Factor: {record.impact_factor if record.impact_factor is not None else "Not available"}
- Abstract: {record.abstract or "Not available"}"""


class LLMEvaluator:
    """
    LLM judge bound to the LLMEvaluation structured-output schema.

    Every failure surfaces as an EvaluatorError subclass; the caller decides
    whether to fall back.
    """

    def __init__(self, llm=None, timeout: Optional[float] = None):
        """
        Args:
            llm: Pre-built structured runnable (anything with `ainvoke`).
                 Built lazily from settings when omitted.
            timeout: Hard timeout per evaluation, in seconds
        """
        self._llm = llm
        self._timeout = timeout or settings.evaluation_timeout_seconds

    @property
    def is_available(self) -> bool:
        return self._llm is not None or llm_available()

    def _structured_llm(self):
        if self._llm is None:
            self._llm = get_structured_llm(LLMEvaluation, timeout=self._timeout)
        return self._llm

    async def evaluate(self, query: str, record: CandidateRecord) -> Evaluation:
        """
        Raises:
            EvaluatorUnavailableError: No LLM API key configured
            EvaluatorTimeoutError: The call exceeded the hard timeout
            EvaluatorError: Transport failure or malformed output
        """
        llm = self._structured_llm()
        messages = [
            ("system", SYSTEM_PROMPT),
            ("human", build_evaluation_prompt(query, record)),
        ]

        try:
            result = await asyncio.wait_for(llm.ainvoke(messages), timeout=self._timeout)
        except asyncio.TimeoutError as e:
            raise EvaluatorTimeoutError(self._timeout) from e
        except EvaluatorError:
            raise
        except Exception as e:
            raise EvaluatorError(f"LLM evaluation failed: {e}") from e

        try:
            parsed = result if isinstance(result, LLMEvaluation) else LLMEvaluation.model_validate(result)
        except ValidationError as e:
            raise EvaluatorError(f"Malformed LLM evaluation: {e.error_count()} validation errors") from e

        return Evaluation(
            relevance=ScoredReason(score=parsed.relevance.score, reason=parsed.relevance.reason),
            credibility=ScoredReason(score=parsed.credibility.score, reason=parsed.credibility.reason),
            impact=ScoredReason(score=parsed.impact.score, reason=parsed.impact.reason),
            advantages=parsed.advantages,
            limitations=parsed.limitations,
            method="llm",
        )


class EvaluationService:
    """Cache, then LLM judge, then heuristic fallback."""

    def __init__(self, llm_evaluator: Optional[LLMEvaluator] = None, cache: Optional[EvaluationCache] = None):
        self._llm = llm_evaluator or LLMEvaluator()
        self._cache = cache

    @property
    def llm_available(self) -> bool:
        return self._llm.is_available

    async def evaluate(self, query: str, record: CandidateRecord) -> Evaluation:
        """Evaluate one record. Never raises EvaluatorError."""
        if self._cache is not None:
            cached = self._cache.get_evaluation(query, record)
            if cached is not None:
                logger.debug(f"Evaluation cache hit: {record.title[:50]}")
                return cached

        if not self._llm.is_available:
            return heuristic_evaluation(query, record)

        try:
            evaluation = await self._llm.evaluate(query, record)
        except EvaluatorUnavailableError:
            return heuristic_evaluation(query, record)
        except EvaluatorError as e:
            logger.info(f"LLM evaluation failed, using heuristic for '{record.title[:50]}': {e}")
            return heuristic_evaluation(query, record)

        if self._cache is not None:
            self._cache.set_evaluation(query, record, evaluation)
        return evaluation

    async def evaluate_many(self, query: str, records: Sequence[CandidateRecord]) -> List[Evaluation]:
        """
        Evaluate records concurrently, index-aligned with the input.

        A failure on one record only defaults that record to the heuristic.
        """
        if not records:
            return []

        results = await asyncio.gather(
            *(self.evaluate(query, record) for record in records),
            return_exceptions=True,
        )

        evaluations = []
        for record, result in zip(records, results):
            if isinstance(result, BaseException) and not isinstance(result, Exception):
                raise result
            if isinstance(result, Exception):
                logger.warning(f"Evaluation failed for '{record.title[:50]}': {result}")
                evaluations.append(heuristic_evaluation(query, record))
            else:
                evaluations.append(result)
        return evaluations
