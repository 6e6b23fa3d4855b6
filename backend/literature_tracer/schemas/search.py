"""
Search API Schemas

Request/response DTOs for the search, evaluate and highlight endpoints.
"""
from pydantic import BaseModel, Field
from typing import List, Literal, Optional

from .literature import CandidateRecord, MergedRecord


class SearchRequest(BaseModel):
    """Free text to trace back to literature, sentence by sentence."""
    text: str = Field(description="Arbitrary free text, possibly multi-sentence or mixed-language")


class SentenceResult(BaseModel):
    sentence: str
    sentence_index: int = Field(ge=1, description="1-based position of the sentence in the input")
    literature: List[MergedRecord] = Field(default_factory=list)


class SearchResponse(BaseModel):
    results: List[SentenceResult] = Field(default_factory=list)
    degraded: bool = Field(default=False, description="True when placeholder data was substituted")
    notice: Optional[str] = None


class EvaluateRequest(BaseModel):
    query: str = Field(min_length=1)
    literature: CandidateRecord


class HighlightRequest(BaseModel):
    query: str = Field(min_length=1)
    text: str


class HighlightSegment(BaseModel):
    text: str
    is_highlighted: bool
    score: float = Field(ge=0, le=1)
    method: Literal["keyword", "semantic", "hybrid"] = "keyword"


class HighlightResponse(BaseModel):
    segments: List[HighlightSegment] = Field(default_factory=list)
    ai_available: bool = False
