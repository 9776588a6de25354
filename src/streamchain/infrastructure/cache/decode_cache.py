"""Short-TTL in-memory cache for decoded resolutions.

Keyed by ``(provider_id, ContentRef)``.  Absorbs bursts of duplicate
requests: the chain walk and decode are skipped while an entry is
live.  Writes are first-finisher-wins.  Concurrent duplicate
resolutions are allowed to race; the first one to finish stores its
result and later ones leave it untouched.
"""

from __future__ import annotations

import time

import structlog

from streamchain.domain.entities import ContentRef, DecodedResolution

log = structlog.get_logger(__name__)

CacheKey = tuple[str, ContentRef]

# Evict expired entries every N get() calls
_EVICT_INTERVAL = 256


class _CacheEntry:
    """Time-bounded cache entry."""

    __slots__ = ("value", "expires_at")

    def __init__(self, value: DecodedResolution, ttl: float) -> None:
        self.value = value
        self.expires_at = time.monotonic() + ttl

    @property
    def is_expired(self) -> bool:
        return time.monotonic() >= self.expires_at


class TtlDecodeCache:
    """TTL-indexed store owned by the resolver.

    A ``ttl_seconds`` of 0 disables caching entirely.
    """

    def __init__(self, *, ttl_seconds: float = 60.0, max_entries: int = 1000) -> None:
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._entries: dict[CacheKey, _CacheEntry] = {}
        self._calls = 0
        self.hits = 0
        self.misses = 0

    @property
    def enabled(self) -> bool:
        return self._ttl > 0 and self._max_entries > 0

    def get(self, key: CacheKey) -> DecodedResolution | None:
        self._calls += 1
        if self._calls % _EVICT_INTERVAL == 0:
            self._evict_expired()

        entry = self._entries.get(key)
        if entry is None or entry.is_expired:
            if entry is not None:
                del self._entries[key]
            self.misses += 1
            return None
        self.hits += 1
        return entry.value

    def put(self, key: CacheKey, value: DecodedResolution) -> bool:
        """Store *value* unless a live entry already exists."""
        if not self.enabled:
            return False
        existing = self._entries.get(key)
        if existing is not None and not existing.is_expired:
            log.debug("decode_cache_write_lost", provider=key[0], content=str(key[1]))
            return False
        self._entries.pop(key, None)
        self._entries[key] = _CacheEntry(value, self._ttl)
        self._enforce_max_size()
        return True

    def _evict_expired(self) -> None:
        expired = [k for k, v in self._entries.items() if v.is_expired]
        for k in expired:
            del self._entries[k]
        if expired:
            log.debug("decode_cache_evict", evicted=len(expired), size=len(self._entries))

    def _enforce_max_size(self) -> None:
        """Drop the oldest entries (insertion order) beyond ``max_entries``."""
        overflow = len(self._entries) - self._max_entries
        if overflow <= 0:
            return
        self._evict_expired()
        overflow = len(self._entries) - self._max_entries
        for key in list(self._entries)[: max(0, overflow)]:
            del self._entries[key]

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def snapshot(self) -> dict[str, object]:
        return {
            "size": len(self._entries),
            "max_entries": self._max_entries,
            "ttl_seconds": self._ttl,
            "hits": self.hits,
            "misses": self.misses,
        }
