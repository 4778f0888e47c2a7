"""Tests for MemoryResultCache."""

from __future__ import annotations

import asyncio

from cineresolver.domain.entities.resolution import ResolutionResult
from cineresolver.domain.ports.cache import ResultCachePort
from cineresolver.infrastructure.cache.memory import CacheEntry, MemoryResultCache


def _result(n: int = 0) -> ResolutionResult:
    return ResolutionResult(url=f"https://cdn.example.net/{n}.mp4")


class TestCacheEntry:
    def test_expiry_boundary(self) -> None:
        entry = CacheEntry("k", _result(), ttl=10, now=100.0)
        assert entry.is_expired(109.9) is False
        assert entry.is_expired(110.0) is True


class TestMemoryResultCache:
    def test_satisfies_port(self, cache) -> None:
        assert isinstance(cache, ResultCachePort)

    async def test_set_and_get(self, cache) -> None:
        await cache.set("a", _result(1))
        assert await cache.get("a") == _result(1)
        assert len(cache) == 1

    async def test_miss(self, cache) -> None:
        assert await cache.get("missing") is None

    async def test_entry_expires(self, cache, clock) -> None:
        await cache.set("a", _result())
        clock.advance(59)
        assert await cache.get("a") is not None
        clock.advance(1)
        assert await cache.get("a") is None
        assert len(cache) == 0

    async def test_per_entry_ttl(self, cache, clock) -> None:
        await cache.set("short", _result(1), ttl=5)
        await cache.set("long", _result(2))
        clock.advance(10)
        assert await cache.get("short") is None
        assert await cache.get("long") is not None

    async def test_zero_ttl_disables_caching(self, clock) -> None:
        cache = MemoryResultCache(ttl_seconds=0, clock=clock)
        await cache.set("a", _result())
        assert await cache.get("a") is None
        assert len(cache) == 0

    async def test_overwrite_refreshes_expiry(self, cache, clock) -> None:
        await cache.set("a", _result(1))
        clock.advance(50)
        await cache.set("a", _result(2))
        clock.advance(50)
        assert await cache.get("a") == _result(2)

    async def test_max_entries_evicts_oldest(self, clock) -> None:
        cache = MemoryResultCache(ttl_seconds=60, max_entries=2, clock=clock)
        await cache.set("a", _result(1))
        await cache.set("b", _result(2))
        await cache.set("c", _result(3))
        assert len(cache) == 2
        assert await cache.get("a") is None
        assert await cache.get("c") == _result(3)

    async def test_overwritten_key_moves_to_back(self, clock) -> None:
        cache = MemoryResultCache(ttl_seconds=60, max_entries=2, clock=clock)
        await cache.set("a", _result(1))
        await cache.set("b", _result(2))
        await cache.set("a", _result(3))
        await cache.set("c", _result(4))
        assert await cache.get("b") is None
        assert await cache.get("a") == _result(3)

    async def test_delete(self, cache) -> None:
        await cache.set("a", _result())
        assert await cache.delete("a") is True
        assert await cache.delete("a") is False

    async def test_clear(self, cache) -> None:
        await cache.set("a", _result(1))
        await cache.set("b", _result(2))
        await cache.clear()
        assert len(cache) == 0

    async def test_concurrent_writers(self, cache) -> None:
        await asyncio.gather(*(cache.set(f"k{i}", _result(i)) for i in range(50)))
        assert len(cache) == 50

    def test_ttl_seconds(self, cache) -> None:
        assert cache.ttl_seconds == 60
