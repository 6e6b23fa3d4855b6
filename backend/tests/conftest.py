"""
Pytest fixtures and configuration for backend tests.

Provides reusable fixtures for testing API endpoints, services, and utilities.
"""
import os
import sys

import pytest
from fastapi.testclient import TestClient

# Add backend to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

# Settings are read once at import; no test may reach a real provider or LLM
os.environ["EXA_API_KEY"] = ""
os.environ["LLM_API_KEY"] = ""
os.environ["PRIMARY_UNAVAILABLE_POLICY"] = "error"
os.environ.setdefault("REDIS_HOST", "localhost")
os.environ.setdefault("REDIS_PORT", "6379")


@pytest.fixture
def sample_record():
    """Sample bibliographic (verified) record data."""
    return {
        "title": "Deep learning improves diagnostic accuracy in radiology",
        "authors": ["A. Smith", "B. Jones"],
        "journal": "Nature Medicine",
        "year": 2022,
        "identifier": "10.1038/s41591-022-01234-5",
        "abstract": "We show that deep learning models improve diagnosis across imaging modalities.",
        "citation_count": 150,
        "impact_factor": 87.2,
        "source_provider": "bibliographic",
    }


@pytest.fixture
def sample_neural_record():
    """Sample neural (unverified) record data, as normalized from a web result."""
    return {
        "title": "Deep learning improves diagnostic accuracy in radiology",
        "authors": ["Unknown Author"],
        "journal": "example.org",
        "year": 2022,
        "identifier": "https://example.org/papers/deep-learning-radiology",
        "abstract": None,
        "supporting_pages": 3,
        "source_provider": "neural",
    }


@pytest.fixture
def sample_records(sample_record):
    """List of distinct verified records."""
    records = [dict(sample_record) for _ in range(5)]
    for i, record in enumerate(records):
        record["title"] = f"Research paper {i+1}"
        record["identifier"] = f"10.1000/paper.{i+1}"
        record["citation_count"] = 100 - (i * 10)
    return records


@pytest.fixture
def memory_cache():
    """Evaluation cache that never touches Redis."""
    from literature_tracer.services.cache import EvaluationCache

    return EvaluationCache(use_redis=False)


@pytest.fixture
def test_settings():
    """Settings with retries that do not sleep."""
    from literature_tracer.core.config import Settings

    return Settings(retry_base_delay_seconds=0.0, retry_max_attempts=1)


@pytest.fixture
def test_client(memory_cache):
    """Create a test client for API testing."""
    # Import here to avoid circular imports
    from literature_tracer.main import app
    from literature_tracer.core.dependencies import get_cache, get_evaluation_service, get_highlight_service
    from literature_tracer.core.rate_limit import limiter
    from literature_tracer.services.evaluation import EvaluationService
    from literature_tracer.services.highlight import HighlightService

    app.dependency_overrides[get_cache] = lambda: memory_cache
    app.dependency_overrides[get_evaluation_service] = lambda: EvaluationService(cache=memory_cache)
    app.dependency_overrides[get_highlight_service] = lambda: HighlightService(cache=memory_cache)
    limiter.enabled = False
    with TestClient(app) as client:
        yield client
    limiter.enabled = True
    app.dependency_overrides.clear()
