"""Shared test fixtures for the cineresolver test suite."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock

import pytest

from cineresolver.domain.entities.resolution import (
    ResolutionReference,
    ResolutionResult,
    ResolutionStrategy,
)
from cineresolver.infrastructure.cache.memory import MemoryResultCache
from cineresolver.infrastructure.metrics import MetricsCollector

FILE_CODE = "abc123def456"
DIRECT_URL = "https://cdn.goodstream.one/v/abc123def456_h.mp4"
EMBED_URL = f"https://goodstream.one/embed-{FILE_CODE}.html"
MANIFEST_URL = "https://edge.example.net/hls/master.m3u8"


# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


class FakeClock:
    """Monotonic clock advanced by hand."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def cache(clock: FakeClock) -> MemoryResultCache:
    """Small in-memory cache driven by the fake clock."""
    return MemoryResultCache(ttl_seconds=60, max_entries=100, clock=clock)


@pytest.fixture()
def metrics() -> MetricsCollector:
    return MetricsCollector()


# ---------------------------------------------------------------------------
# Domain entity fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def goodstream_reference() -> ResolutionReference:
    return ResolutionReference(provider="goodstream", target=FILE_CODE)


@pytest.fixture()
def direct_result() -> ResolutionResult:
    return ResolutionResult(url=DIRECT_URL, strategy=ResolutionStrategy.DIRECT)


@pytest.fixture()
def intercepted_result() -> ResolutionResult:
    return ResolutionResult(
        url=MANIFEST_URL,
        headers={"Referer": "https://player.example.net/e/xyz", "User-Agent": "UA"},
        strategy=ResolutionStrategy.INTERCEPTED,
    )


# ---------------------------------------------------------------------------
# Strategy doubles
# ---------------------------------------------------------------------------


class FakeDirectResolver:
    """DirectLinkResolverPort double with a scripted outcome.

    ``gate`` (optional) blocks every call until it is set, so tests can
    pile up concurrent resolutions.
    """

    def __init__(
        self,
        *,
        name: str = "goodstream",
        result_url: str | None = DIRECT_URL,
        error: Exception | None = None,
        gate: asyncio.Event | None = None,
    ) -> None:
        self.name = name
        self.result_url = result_url
        self.error = error
        self.gate = gate
        self.calls: list[tuple[str, str | None]] = []

    def fallback_url(self, file_code: str) -> str:
        return f"https://{self.name}.one/embed-{file_code}.html"

    def extract_file_code(self, value: str) -> str | None:
        return value if len(value) == 12 and value.isalnum() else None

    async def resolve(
        self, file_code: str, api_key: str | None = None
    ) -> ResolutionResult:
        self.calls.append((file_code, api_key))
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        if self.result_url is None:
            return ResolutionResult(
                url=self.fallback_url(file_code),
                strategy=ResolutionStrategy.FALLBACK_EMBED,
            )
        return ResolutionResult(url=self.result_url, strategy=ResolutionStrategy.DIRECT)


@pytest.fixture()
def direct_resolver() -> FakeDirectResolver:
    return FakeDirectResolver()


@pytest.fixture()
def interceptor(intercepted_result: ResolutionResult) -> AsyncMock:
    """ManifestInterceptorPort double that always captures a manifest."""
    mock = AsyncMock()
    mock.resolve = AsyncMock(return_value=intercepted_result)
    return mock


@pytest.fixture()
def make_direct_resolver() -> type[FakeDirectResolver]:
    """Factory for direct resolver doubles with custom behavior."""
    return FakeDirectResolver
