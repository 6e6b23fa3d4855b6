"""
Literature API Routes

FastAPI routes for tracing text back to literature, evaluating a single
record and highlighting relevant passages.
"""
from fastapi import APIRouter, Depends, HTTPException, Request

from literature_tracer.core.dependencies import (
    get_cache,
    get_evaluation_service,
    get_highlight_service,
    get_pipeline,
)
from literature_tracer.core.exceptions import InvalidRequestError, ProviderUnavailableError
from literature_tracer.core.logging import get_logger
from literature_tracer.core.rate_limit import (
    CACHE_CLEAR_LIMIT,
    EVALUATE_LIMIT,
    HIGHLIGHT_LIMIT,
    SEARCH_LIMIT,
    limiter,
)
from literature_tracer.schemas.literature import Evaluation
from literature_tracer.schemas.search import (
    EvaluateRequest,
    HighlightRequest,
    HighlightResponse,
    SearchRequest,
    SearchResponse,
)
from literature_tracer.services.cache import EvaluationCache
from literature_tracer.services.evaluation import EvaluationService
from literature_tracer.services.highlight import HighlightService
from literature_tracer.services.retrieval import LiteraturePipeline

logger = get_logger(__name__)

router = APIRouter(prefix="/api", tags=["literature"])


@router.post("/search", response_model=SearchResponse)
@limiter.limit(SEARCH_LIMIT)
async def search_literature(
    request: Request,
    payload: SearchRequest,
    pipeline: LiteraturePipeline = Depends(get_pipeline),
):
    """
    Split the text into sentences and return ranked, evaluated literature
    for each one, in sentence order.
    """
    try:
        return await pipeline.run(payload.text)
    except ProviderUnavailableError as e:
        raise HTTPException(
            status_code=503,
            detail=(
                f"{e.source_name} is unavailable ({e.detail or 'unreachable'}). "
                "Configure EXA_API_KEY, or set PRIMARY_UNAVAILABLE_POLICY=placeholder "
                "to serve placeholder literature instead."
            ),
        )
    except InvalidRequestError as e:
        raise HTTPException(status_code=422, detail=str(e))


@router.post("/evaluate", response_model=Evaluation)
@limiter.limit(EVALUATE_LIMIT)
async def evaluate_literature(
    request: Request,
    payload: EvaluateRequest,
    evaluator: EvaluationService = Depends(get_evaluation_service),
):
    """Evaluate one record against a query; falls back to the heuristic when the LLM is unavailable."""
    return await evaluator.evaluate(payload.query, payload.literature)


@router.post("/highlight", response_model=HighlightResponse)
@limiter.limit(HIGHLIGHT_LIMIT)
async def highlight_text(
    request: Request,
    payload: HighlightRequest,
    highlighter: HighlightService = Depends(get_highlight_service),
):
    """Score each segment of a passage for relevance to the query."""
    return await highlighter.highlight(payload.query, payload.text)


@router.delete("/cache")
@limiter.limit(CACHE_CLEAR_LIMIT)
async def clear_cache(request: Request, cache: EvaluationCache = Depends(get_cache)):
    """Drop every cached evaluation and similarity score."""
    removed = cache.clear()
    return {"cleared": removed, "backend": cache.backend}
