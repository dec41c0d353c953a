"""In-memory TTL caches for scraped pages and import results.

Both caches live in process memory only and are never written to any store. They are a
latency optimization: per-process, best-effort, and safe to lose at any time.
"""
from datetime import datetime, timedelta
from typing import Any, Dict, Generic, Optional, TypeVar

from workout_import.core.config import settings

K = TypeVar("K")
V = TypeVar("V")


class TtlCache(Generic[K, V]):
    """Simple key -> value map with lazy expiry on read."""

    def __init__(self, name: str, ttl_seconds: int):
        self.name = name
        self.ttl_seconds = ttl_seconds
        self._cache: Dict[str, Dict[str, Any]] = {}
        self._hits = 0
        self._misses = 0

    def _make_key(self, key: K) -> str:
        """Namespace the key so two caches never share a keyspace."""
        return f"{self.name}:{key}"

    def get(self, key: K) -> Optional[V]:
        """Get a live value, or None when missing or expired."""
        if not settings.cache_enabled:
            return None

        cache_key = self._make_key(key)
        item = self._cache.get(cache_key)

        if item is None:
            self._misses += 1
            return None

        # Expired entries are ignored, the next set overwrites them
        if datetime.now() > item['expires_at']:
            del self._cache[cache_key]
            self._misses += 1
            return None

        self._hits += 1
        return item['data']

    def set(self, key: K, value: V, ttl_seconds: Optional[int] = None) -> None:
        """Store a value, replacing any previous entry."""
        if not settings.cache_enabled:
            return

        ttl = ttl_seconds or self.ttl_seconds
        now = datetime.now()
        self._cache[self._make_key(key)] = {
            'data': value,
            'expires_at': now + timedelta(seconds=ttl),
            'created_at': now
        }

    def clear(self) -> None:
        """Clear all entries."""
        self._cache.clear()
        self._hits = 0
        self._misses = 0

    def get_stats(self) -> Dict[str, Any]:
        """Get cache stats."""
        lookups = self._hits + self._misses
        return {
            "name": self.name,
            "total_items": len(self._cache),
            "ttl_seconds": self.ttl_seconds,
            "hits": self._hits,
            "misses": self._misses,
            "hit_rate": self._hits / lookups if lookups else 0.0
        }


# Raw HTML of full TikTok pages, keyed by video ID
page_cache: "TtlCache[str, str]" = TtlCache("page", settings.page_cache_ttl_seconds)

# Final ProcessResult per content ID
result_cache: "TtlCache[str, Any]" = TtlCache("result", settings.result_cache_ttl_seconds)
