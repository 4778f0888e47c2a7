"""In-memory, time-bounded store for resolution results.

Entries live for the process lifetime only. Expiry uses the monotonic
clock; the oldest entries are evicted once ``max_entries`` is exceeded.
"""

from __future__ import annotations

import asyncio
import time
from typing import Callable

import structlog

from cineresolver.domain.entities.resolution import ResolutionResult

log = structlog.get_logger(__name__)

# Evict expired entries every N set() calls
_EVICT_INTERVAL = 1000


class CacheEntry:
    """Time-bounded cache entry for a resolution result."""

    __slots__ = ("key", "result", "expires_at")

    def __init__(
        self, key: str, result: ResolutionResult, ttl: float, now: float
    ) -> None:
        self.key = key
        self.result = result
        self.expires_at = now + ttl

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at


class MemoryResultCache:
    """Process-local ResultCachePort implementation.

    All reads and writes are serialized through an ``asyncio.Lock`` so the
    cache is safe to share between concurrent resolutions.
    """

    def __init__(
        self,
        *,
        ttl_seconds: int = 3600,
        max_entries: int = 10_000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._entries: dict[str, CacheEntry] = {}
        self._lock = asyncio.Lock()
        self._set_count = 0

    def __len__(self) -> int:
        return len(self._entries)

    @property
    def ttl_seconds(self) -> int:
        return self._ttl

    async def get(self, key: str) -> ResolutionResult | None:
        async with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_expired(self._clock()):
                del self._entries[key]
                return None
            return entry.result

    async def set(
        self, key: str, value: ResolutionResult, *, ttl: int | None = None
    ) -> None:
        ttl = self._ttl if ttl is None else ttl
        if ttl <= 0:
            return
        async with self._lock:
            # Re-insert so an overwritten key moves to the back of the order
            self._entries.pop(key, None)
            self._entries[key] = CacheEntry(key, value, ttl, self._clock())
            self._set_count += 1
            if self._set_count % _EVICT_INTERVAL == 0:
                self._evict_expired()
            self._enforce_max_size()

    async def delete(self, key: str) -> bool:
        async with self._lock:
            return self._entries.pop(key, None) is not None

    async def clear(self) -> None:
        async with self._lock:
            self._entries.clear()

    def _evict_expired(self) -> None:
        now = self._clock()
        expired = [k for k, v in self._entries.items() if v.is_expired(now)]
        for k in expired:
            del self._entries[k]
        log.debug("result_cache_evict", evicted=len(expired), size=len(self._entries))

    def _enforce_max_size(self) -> None:
        if len(self._entries) <= self._max_entries:
            return
        # dicts preserve insertion order; pop from the front
        excess = len(self._entries) - self._max_entries
        for k in list(self._entries.keys())[:excess]:
            del self._entries[k]
