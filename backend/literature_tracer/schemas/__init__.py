"""
Schemas Module

Contains all Pydantic models (DTOs) for:
- Normalized literature records and evaluations
- API request/response validation
- LLM structured outputs
"""
from .literature import (
    SourceProvider,
    CandidateRecord,
    MergedRecord,
    ScoredReason,
    Evaluation,
)
from .retrieval import SearchOptions, CriterionScore, LLMEvaluation, SentenceList
from .search import (
    SearchRequest,
    SentenceResult,
    SearchResponse,
    EvaluateRequest,
    HighlightRequest,
    HighlightSegment,
    HighlightResponse,
)

__all__ = [
    "SourceProvider",
    "CandidateRecord",
    "MergedRecord",
    "ScoredReason",
    "Evaluation",
    "SearchOptions",
    "CriterionScore",
    "LLMEvaluation",
    "SentenceList",
    "SearchRequest",
    "SentenceResult",
    "SearchResponse",
    "EvaluateRequest",
    "HighlightRequest",
    "HighlightSegment",
    "HighlightResponse",
]
