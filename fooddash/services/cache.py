"""Time-based response cache for outbound place requests."""

import hashlib
import json
import logging
import time
from typing import Any

logger = logging.getLogger(__name__)


class ResponseCache:
    """In-memory cache keyed by the exact request parameters.

    Entries expire after ``ttl_seconds``; there is no explicit invalidation
    and no in-flight deduplication, so concurrent misses on the same key
    may both reach the upstream service.
    """

    def __init__(self, ttl_seconds: int = 86400) -> None:
        self.ttl_seconds = ttl_seconds
        self._entries: dict[str, dict[str, Any]] = {}
        self._hits = 0
        self._misses = 0

    @staticmethod
    def make_key(request: dict[str, Any]) -> str:
        """Build a stable key from a request description."""
        normalized = json.dumps(request, sort_keys=True, default=str)
        return hashlib.sha256(normalized.encode()).hexdigest()

    def get(self, request: dict[str, Any]) -> Any | None:
        key = self.make_key(request)
        entry = self._entries.get(key)
        if entry and time.monotonic() - entry["created_at"] < self.ttl_seconds:
            self._hits += 1
            return entry["value"]
        if entry:
            del self._entries[key]
        self._misses += 1
        return None

    def set(self, request: dict[str, Any], value: Any) -> None:
        key = self.make_key(request)
        now = time.monotonic()
        self._evict_expired(now)
        self._entries[key] = {"value": value, "created_at": now}
        logger.debug(f"Cached response {key[:12]} for {self.ttl_seconds}s")

    def _evict_expired(self, now: float) -> None:
        expired = [
            key
            for key, entry in self._entries.items()
            if now - entry["created_at"] >= self.ttl_seconds
        ]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"Evicted {len(expired)} expired cache entries")

    def stats(self) -> dict[str, Any]:
        total = self._hits + self._misses
        return {
            "size": len(self._entries),
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": round(self._hits / total * 100, 1) if total > 0 else 0.0,
        }

    def clear(self) -> None:
        self._entries.clear()
        self._hits = 0
        self._misses = 0


# Global cache shared by every gateway in the process
_response_cache: ResponseCache | None = None


def get_response_cache() -> ResponseCache:
    """Get the process-wide response cache.

    Returns:
        ResponseCache singleton
    """
    global _response_cache
    if _response_cache is None:
        from fooddash.config import get_config

        _response_cache = ResponseCache(get_config().places_cache_ttl_seconds)
    return _response_cache
