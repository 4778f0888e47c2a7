"""Cache Port - Interface for the resolution result cache."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from cineresolver.domain.entities.resolution import ResolutionResult


@runtime_checkable
class ResultCachePort(Protocol):
    """Port for an async, time-bounded key -> ResolutionResult store.

    Implementations:
      - MemoryResultCache (process-local dict, monotonic TTL)
    """

    async def get(self, key: str) -> ResolutionResult | None:
        """Retrieve a live result. None = not found / expired."""
        ...

    async def set(
        self, key: str, value: ResolutionResult, *, ttl: int | None = None
    ) -> None:
        """Store a result with optional TTL (seconds)."""
        ...

    async def delete(self, key: str) -> bool:
        """Delete key. True = deleted, False = did not exist."""
        ...

    async def clear(self) -> None:
        """Delete ALL entries."""
        ...

    def __len__(self) -> int: ...
