"""
Retrieval Schemas

Pydantic models for provider search options and LLM structured outputs
(evaluation, sentence splitting, semantic similarity).
"""
from pydantic import BaseModel, Field
from typing import List, Optional


class SearchOptions(BaseModel):
    """Options passed through to a provider adapter's search()."""
    max_results: int = Field(default=5, ge=1, le=100, description="Maximum results to request from the provider")
    include_abstract: bool = Field(default=True, description="Ask the provider for abstract / body text")
    start_year: Optional[int] = Field(default=None, description="Earliest publication year to accept")
    end_year: Optional[int] = Field(default=None, description="Latest publication year to accept")


class CriterionScore(BaseModel):
    """One scored criterion of an LLM evaluation"""
    score: float = Field(description="Integer score between 0 and 10 inclusive")
    reason: str = Field(description="Short explanation of the score")


class LLMEvaluation(BaseModel):
    """Structured output for literature evaluation"""
    relevance: CriterionScore = Field(description="How well the paper addresses the query sentence")
    credibility: CriterionScore = Field(description="Journal reputation, citation count and author credentials")
    impact: CriterionScore = Field(description="Citation count, impact factor and potential influence")
    advantages: List[str] = Field(description="Key strengths of the paper")
    limitations: List[str] = Field(description="Potential limitations and methodological concerns")


class SentenceList(BaseModel):
    """Structured output for sentence segmentation"""
    sentences: List[str] = Field(description="The input text split into complete, meaningful sentences, in order")
