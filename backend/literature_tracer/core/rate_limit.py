"""
Rate Limiting

Per-client limits on the literature endpoints via slowapi. Counters live in
the same Redis the evaluation cache uses, so limits hold across workers;
without Redis each process counts on its own.
"""
from typing import Optional

import redis
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.requests import Request
from starlette.responses import JSONResponse

from literature_tracer.core.config import settings
from literature_tracer.core.logging import get_logger

logger = get_logger(__name__)

MEMORY_STORAGE = "memory://"
DEFAULT_RETRY_AFTER = 60


def client_key(request: Request) -> str:
    """First X-Forwarded-For hop when behind a proxy, else the peer address."""
    forwarded = request.headers.get("X-Forwarded-For", "")
    first_hop = forwarded.split(",")[0].strip()
    return first_hop or get_remote_address(request)


def storage_uri(host: Optional[str] = None, port: Optional[int] = None) -> str:
    """Redis URI when Redis answers a ping, otherwise in-process memory."""
    uri = f"redis://{host or settings.REDIS_HOST}:{port or settings.REDIS_PORT}"
    try:
        redis.from_url(uri, socket_connect_timeout=2).ping()
    except (redis.ConnectionError, redis.TimeoutError):
        logger.warning("Redis not available for rate limiting, counting in memory")
        return MEMORY_STORAGE
    logger.info("Rate limiter using Redis storage")
    return uri


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    retry_after = getattr(exc, "retry_after", None) or DEFAULT_RETRY_AFTER
    logger.warning(f"Rate limit hit by {client_key(request)} on {request.url.path}: {exc.detail}")
    return JSONResponse(
        status_code=429,
        content={
            "error": "Rate limit exceeded",
            "detail": f"Too many requests ({exc.detail}). Searches are expensive: each sentence queries two providers.",
            "retry_after": retry_after,
        },
        headers={"Retry-After": str(retry_after)},
    )


limiter = Limiter(
    key_func=client_key,
    storage_uri=storage_uri(),
    default_limits=[settings.rate_limit_default],
    strategy="fixed-window",
)

SEARCH_LIMIT = settings.search_rate_limit
EVALUATE_LIMIT = settings.evaluate_rate_limit
HIGHLIGHT_LIMIT = settings.highlight_rate_limit
CACHE_CLEAR_LIMIT = settings.cache_clear_rate_limit
