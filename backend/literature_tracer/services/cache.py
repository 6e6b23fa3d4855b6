"""
Redis Cache Service

Caches LLM evaluations and semantic-similarity scores with TTL expiration.
Falls back gracefully to an in-memory dict when Redis is unavailable.

Every key lives under a per-process namespace token, so entries written by
an earlier process are never served and clear() can drop the whole
namespace at once.
"""
import hashlib
import json
import time
import uuid
from datetime import timedelta
from typing import Dict, Optional, Tuple

import redis

from literature_tracer.core.config import settings
from literature_tracer.core.logging import get_logger
from literature_tracer.schemas.literature import CandidateRecord, Evaluation, canonical_key

logger = get_logger(__name__)

KEY_PREFIX = "littracer"

# Upper bound on the in-memory fallback; oldest writes go first
MAX_FALLBACK_ENTRIES = 10_000


def fingerprint(*parts: str) -> str:
    """Stable sha256 fingerprint of the joined parts."""
    return hashlib.sha256("|||".join(parts).encode("utf-8")).hexdigest()


class EvaluationCache:
    """Redis-based cache for evaluations and similarity scores with TTL."""

    DEFAULT_TTL = timedelta(hours=settings.EVALUATION_CACHE_TTL_HOURS)

    def __init__(self, host: Optional[str] = None, port: Optional[int] = None, use_redis: bool = True):
        self._client: Optional[redis.Redis] = None
        self._connected = False
        self._fallback_cache: Dict[str, Tuple[float, str]] = {}
        self._namespace = uuid.uuid4().hex[:12]
        if use_redis:
            self._connect(host or settings.REDIS_HOST, port or settings.REDIS_PORT)

    def _connect(self, host: str, port: int):
        """Attempt to connect to Redis."""
        try:
            self._client = redis.Redis(
                host=host,
                port=port,
                db=0,
                decode_responses=True,
                socket_connect_timeout=2,
                socket_timeout=2
            )
            self._client.ping()
            self._connected = True
            logger.info("Connected to Redis cache")
        except (redis.ConnectionError, redis.TimeoutError) as e:
            logger.warning(f"Redis not available, using in-memory fallback: {e}")
            self._client = None
            self._connected = False

    def _get_key(self, kind: str, digest: str) -> str:
        return f"{KEY_PREFIX}:{self._namespace}:{kind}:{digest}"

    def _write(self, key: str, payload: str, ttl: Optional[timedelta]) -> bool:
        if ttl is None:
            ttl = self.DEFAULT_TTL
        try:
            if self._connected and self._client:
                self._client.setex(key, int(ttl.total_seconds()), payload)
            else:
                self._sweep_expired()
                self._fallback_cache.pop(key, None)
                while len(self._fallback_cache) >= MAX_FALLBACK_ENTRIES:
                    del self._fallback_cache[next(iter(self._fallback_cache))]
                self._fallback_cache[key] = (time.monotonic() + ttl.total_seconds(), payload)
            return True
        except redis.RedisError as e:
            logger.error(f"Cache set error: {e}")
            return False

    def _sweep_expired(self) -> int:
        now = time.monotonic()
        expired = [k for k, (expires_at, _) in self._fallback_cache.items() if expires_at <= now]
        for k in expired:
            del self._fallback_cache[k]
        return len(expired)

    def _read(self, key: str) -> Optional[str]:
        try:
            if self._connected and self._client:
                return self._client.get(key)
        except redis.RedisError as e:
            logger.error(f"Cache get error: {e}")
            return None

        entry = self._fallback_cache.get(key)
        if entry is None:
            return None
        expires_at, payload = entry
        if time.monotonic() >= expires_at:
            del self._fallback_cache[key]
            return None
        return payload

    # --- evaluations ---

    def get_evaluation(self, query: str, record: CandidateRecord) -> Optional[Evaluation]:
        """
        Retrieve a cached evaluation.

        Args:
            query: The sentence the record was evaluated against
            record: The evaluated record (identified by its canonical key)

        Returns:
            Evaluation if found, None otherwise
        """
        data = self._read(self._get_key("evaluation", fingerprint(query, canonical_key(record))))
        if not data:
            return None
        return Evaluation.model_validate_json(data)

    def set_evaluation(
        self,
        query: str,
        record: CandidateRecord,
        evaluation: Evaluation,
        ttl: Optional[timedelta] = None,
    ) -> bool:
        """
        Store an evaluation.

        Returns:
            True if successful, False otherwise
        """
        key = self._get_key("evaluation", fingerprint(query, canonical_key(record)))
        return self._write(key, evaluation.model_dump_json(), ttl)

    # --- semantic similarity ---

    def get_similarity(self, query: str, text: str) -> Optional[float]:
        data = self._read(self._get_key("similarity", fingerprint(query, text[:200])))
        if data is None:
            return None
        return float(json.loads(data))

    def set_similarity(self, query: str, text: str, score: float, ttl: Optional[timedelta] = None) -> bool:
        key = self._get_key("similarity", fingerprint(query, text[:200]))
        return self._write(key, json.dumps(score), ttl)

    def clear(self) -> int:
        """
        Drop every entry in this cache's namespace.

        Returns:
            Number of entries removed
        """
        removed = 0
        try:
            if self._connected and self._client:
                keys = list(self._client.scan_iter(match=f"{KEY_PREFIX}:{self._namespace}:*"))
                if keys:
                    removed = self._client.delete(*keys)
            else:
                removed = len(self._fallback_cache)
                self._fallback_cache.clear()
        except redis.RedisError as e:
            logger.error(f"Cache clear error: {e}")

        # Anything written concurrently under the old token becomes unreachable
        self._namespace = uuid.uuid4().hex[:12]
        logger.info(f"Evaluation cache cleared ({removed} entries)")
        return removed

    def size(self) -> int:
        """Number of live entries in this namespace."""
        try:
            if self._connected and self._client:
                return sum(1 for _ in self._client.scan_iter(match=f"{KEY_PREFIX}:{self._namespace}:*"))
        except redis.RedisError as e:
            logger.error(f"Cache size error: {e}")
            return 0
        now = time.monotonic()
        return sum(1 for expires_at, _ in self._fallback_cache.values() if expires_at > now)

    @property
    def is_connected(self) -> bool:
        """Check if Redis is connected."""
        return self._connected

    @property
    def backend(self) -> str:
        return "redis" if self._connected else "memory"
