"""Tests for core/rate_limit.py - Client keys, storage selection and the 429 handler."""
import json
from types import SimpleNamespace
from unittest.mock import patch

import redis
from starlette.requests import Request


def _request(headers=None, client=("203.0.113.7", 5000), path="/api/search"):
    scope = {
        "type": "http",
        "method": "POST",
        "path": path,
        "query_string": b"",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
    }
    return Request(scope)


class TestClientKey:
    """Test client_key."""

    def test_uses_peer_address(self):
        from literature_tracer.core.rate_limit import client_key

        assert client_key(_request()) == "203.0.113.7"

    def test_prefers_first_forwarded_hop(self):
        from literature_tracer.core.rate_limit import client_key

        request = _request(headers={"X-Forwarded-For": "198.51.100.4, 10.0.0.1"})
        assert client_key(request) == "198.51.100.4"

    def test_blank_forwarded_header_is_ignored(self):
        from literature_tracer.core.rate_limit import client_key

        assert client_key(_request(headers={"X-Forwarded-For": " "})) == "203.0.113.7"


class TestStorageUri:
    """Test storage_uri."""

    def test_falls_back_to_memory(self):
        from literature_tracer.core.rate_limit import MEMORY_STORAGE, storage_uri

        with patch("redis.Redis.ping", side_effect=redis.ConnectionError("refused")):
            assert storage_uri("localhost", 6390) == MEMORY_STORAGE

    def test_uses_redis_when_reachable(self):
        from literature_tracer.core.rate_limit import storage_uri

        with patch("redis.Redis.ping", return_value=True):
            assert storage_uri("cache.internal", 6380) == "redis://cache.internal:6380"


class TestRateLimitHandler:
    """Test the 429 handler."""

    def test_returns_429_with_retry_after(self):
        from literature_tracer.core.rate_limit import rate_limit_exceeded_handler

        exc = SimpleNamespace(detail="10 per 1 minute")
        response = rate_limit_exceeded_handler(_request(), exc)
        body = json.loads(response.body)

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "60"
        assert body["error"] == "Rate limit exceeded"
        assert "10 per 1 minute" in body["detail"]

    def test_limits_come_from_settings(self):
        from literature_tracer.core.config import settings
        from literature_tracer.core.rate_limit import SEARCH_LIMIT

        assert SEARCH_LIMIT == settings.search_rate_limit == "10/minute"
