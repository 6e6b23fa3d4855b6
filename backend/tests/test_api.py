"""Tests for API endpoints."""
import pytest

from fakes import FakeBibliographicSource, FakeNeuralSource, neural, verified


def _pipeline(neural_source, policy="error"):
    from literature_tracer.core.config import Settings
    from literature_tracer.services.evaluation import EvaluationService
    from literature_tracer.services.retrieval import LiteraturePipeline
    from literature_tracer.services.sentence_split import SentenceSplitter

    return LiteraturePipeline(
        neural_source,
        FakeBibliographicSource(bibliographic=[verified("Verified paper", "10.1/v", citation_count=10)]),
        EvaluationService(),
        SentenceSplitter(use_llm=False),
        config=Settings(retry_base_delay_seconds=0.0, retry_max_attempts=0, primary_unavailable_policy=policy),
    )


@pytest.fixture
def use_pipeline():
    """Install a pipeline for the duration of one test."""
    from literature_tracer.core.dependencies import get_pipeline
    from literature_tracer.main import app

    def install(pipeline):
        app.dependency_overrides[get_pipeline] = lambda: pipeline
        return pipeline

    return install


class TestHealthCheck:
    """Test the health check endpoint."""

    def test_health_check_returns_200(self, test_client):
        response = test_client.get("/")

        assert response.status_code == 200

    def test_health_check_returns_status(self, test_client):
        data = test_client.get("/").json()

        assert data["status"] == "active"
        assert data["project"] == "Literature Tracer"

    def test_health_check_returns_cache_info(self, test_client):
        data = test_client.get("/").json()

        assert data["cache"] == {"type": "in-memory", "connected": False}

    def test_health_check_reports_providers(self, test_client):
        """conftest.py leaves both credentials empty."""
        data = test_client.get("/").json()

        assert data["providers"] == {"neural": False, "bibliographic": True, "llm": False}
        assert data["primary_unavailable_policy"] == "error"

    def test_health_check_follows_settings_override(self, test_client):
        from pydantic import SecretStr

        from literature_tracer.core.config import Settings
        from literature_tracer.core.dependencies import get_settings
        from literature_tracer.main import app

        override = Settings(exa_api_key=SecretStr("test-key"), primary_unavailable_policy="placeholder")
        app.dependency_overrides[get_settings] = lambda: override

        data = test_client.get("/").json()

        assert data["providers"]["neural"] is True
        assert data["primary_unavailable_policy"] == "placeholder"

    def test_health_check_returns_endpoints(self, test_client):
        data = test_client.get("/").json()

        assert set(data["endpoints"]) == {"search", "evaluate", "highlight", "clear_cache"}


class TestSearchEndpoint:
    """Test POST /api/search."""

    def test_search_returns_results(self, test_client, use_pipeline):
        use_pipeline(_pipeline(FakeNeuralSource(default=[neural("Web paper", "https://example.org/w")])))

        response = test_client.post(
            "/api/search",
            json={"text": "Deep learning improves diagnosis. Quantum computing aids optimization."},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["degraded"] is False
        assert [r["sentence_index"] for r in data["results"]] == [1, 2]
        first = data["results"][0]["literature"][0]
        assert first["verified"] is True
        assert first["evaluation"]["method"] == "heuristic"

    def test_search_requires_text(self, test_client):
        response = test_client.post("/api/search", json={})

        assert response.status_code == 422

    def test_search_rejects_non_string_text(self, test_client):
        response = test_client.post("/api/search", json={"text": 123})

        assert response.status_code == 422

    def test_empty_text_returns_empty_results(self, test_client, use_pipeline):
        neural_source = FakeNeuralSource()
        use_pipeline(_pipeline(neural_source))

        response = test_client.post("/api/search", json={"text": "   "})

        assert response.status_code == 200
        assert response.json()["results"] == []
        assert neural_source.calls == []

    def test_unconfigured_neural_provider_returns_503(self, test_client, use_pipeline):
        use_pipeline(_pipeline(FakeNeuralSource(configured=False)))

        response = test_client.post("/api/search", json={"text": "Deep learning improves diagnosis."})

        assert response.status_code == 503
        assert "EXA_API_KEY" in response.json()["detail"]
        assert "PRIMARY_UNAVAILABLE_POLICY" in response.json()["detail"]

    def test_placeholder_policy_returns_degraded_results(self, test_client, use_pipeline):
        use_pipeline(_pipeline(FakeNeuralSource(configured=False), policy="placeholder"))

        response = test_client.post("/api/search", json={"text": "Deep learning improves diagnosis."})

        assert response.status_code == 200
        data = response.json()
        assert data["degraded"] is True
        assert data["notice"]
        assert len(data["results"][0]["literature"]) == 5

    def test_settings_override_reaches_default_pipeline(self, test_client):
        """Overriding get_settings alone reconfigures the pipeline the route uses."""
        from literature_tracer.core.config import Settings
        from literature_tracer.core.dependencies import get_settings
        from literature_tracer.main import app

        override = Settings(primary_unavailable_policy="placeholder")
        app.dependency_overrides[get_settings] = lambda: override

        response = test_client.post("/api/search", json={"text": "Deep learning improves diagnosis."})

        assert response.status_code == 200
        assert response.json()["degraded"] is True


class TestEvaluateEndpoint:
    """Test POST /api/evaluate."""

    def test_evaluate_returns_heuristic_without_llm(self, test_client, sample_record):
        response = test_client.post(
            "/api/evaluate",
            json={"query": "deep learning diagnosis", "literature": sample_record},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["method"] == "heuristic"
        for criterion in ("relevance", "credibility", "impact"):
            assert 0 <= data[criterion]["score"] <= 10
            assert data[criterion]["reason"]

    def test_evaluate_requires_query(self, test_client, sample_record):
        response = test_client.post("/api/evaluate", json={"query": "", "literature": sample_record})

        assert response.status_code == 422

    def test_evaluate_requires_title(self, test_client, sample_record):
        record = {**sample_record, "title": "  "}
        response = test_client.post("/api/evaluate", json={"query": "q", "literature": record})

        assert response.status_code == 422


class TestHighlightEndpoint:
    """Test POST /api/highlight."""

    def test_highlight_marks_matching_segments(self, test_client):
        response = test_client.post(
            "/api/highlight",
            json={"query": "deep learning", "text": "Deep learning helps. Weather is nice today."},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["ai_available"] is False
        assert [s["is_highlighted"] for s in data["segments"]] == [True, False]

    def test_highlight_empty_text(self, test_client):
        response = test_client.post("/api/highlight", json={"query": "deep learning", "text": ""})

        assert response.status_code == 200
        assert response.json()["segments"] == []


class TestCacheEndpoint:
    """Test DELETE /api/cache."""

    def test_clear_cache_reports_removed_entries(self, test_client, memory_cache):
        memory_cache.set_similarity("q", "text", 0.3)

        response = test_client.delete("/api/cache")

        assert response.status_code == 200
        assert response.json() == {"cleared": 1, "backend": "memory"}
        assert memory_cache.size() == 0


class TestCORS:
    """Test CORS configuration."""

    def test_cors_allows_origin(self, test_client):
        response = test_client.options(
            "/api/search",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "POST",
            },
        )

        assert response.status_code == 200
        assert "access-control-allow-origin" in response.headers
