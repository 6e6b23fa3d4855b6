"""
FastAPI Dependencies

FastAPI dependency injection for services and configuration.
Using Depends() pattern makes testing easier and follows FastAPI best practices.
"""
from functools import lru_cache
from typing import Dict, Tuple

from fastapi import Depends

from literature_tracer.core.config import Settings
from literature_tracer.services.cache import EvaluationCache
from literature_tracer.services.evaluation import EvaluationService
from literature_tracer.services.highlight import HighlightService
from literature_tracer.services.retrieval import LiteraturePipeline
from literature_tracer.services.sentence_split import SentenceSplitter
from literature_tracer.services.sources import CrossrefSource, ExaSource


@lru_cache()
def get_settings() -> Settings:
    """
    Get application settings.

    Uses lru_cache to ensure settings are only loaded once.
    Can be overridden in tests using app.dependency_overrides.

    Example test override:
        def get_settings_override():
            return Settings(exa_api_key=SecretStr("test-key"))

        app.dependency_overrides[get_settings] = get_settings_override
    """
    return Settings()


@lru_cache()
def get_cache() -> EvaluationCache:
    """
    Get the evaluation cache instance.

    Uses lru_cache to ensure only one cache instance is created.
    Can be overridden in tests to use a memory-only cache:

        app.dependency_overrides[get_cache] = lambda: EvaluationCache(use_redis=False)
    """
    return EvaluationCache()


@lru_cache()
def get_evaluation_service() -> EvaluationService:
    return EvaluationService(cache=get_cache())


@lru_cache()
def get_highlight_service() -> HighlightService:
    return HighlightService(cache=get_cache())


# Pipeline for the most recent settings object, held with it so its id stays unique
_pipelines: Dict[int, Tuple[Settings, LiteraturePipeline]] = {}


def get_pipeline(config: Settings = Depends(get_settings)) -> LiteraturePipeline:
    """
    Get the literature pipeline wired to the configured providers.

    Built from the same get_settings dependency the health check reads, so
    overriding get_settings reconfigures both.

    Example test override:
        app.dependency_overrides[get_pipeline] = lambda: LiteraturePipeline(
            neural=FakeSource(...), bibliographic=FakeCrossref(...), ...
        )
    """
    cached = _pipelines.get(id(config))
    if cached is None:
        pipeline = LiteraturePipeline(
            neural=ExaSource(api_key=config.EXA_API_KEY or ""),
            bibliographic=CrossrefSource(max_concurrency=config.crossref_max_concurrency),
            evaluator=get_evaluation_service(),
            splitter=SentenceSplitter(),
            config=config,
        )
        _pipelines.clear()
        cached = _pipelines[id(config)] = (config, pipeline)
    return cached[1]
