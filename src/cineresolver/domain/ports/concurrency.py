"""Concurrency port bounding headless browser sessions."""

from __future__ import annotations

from typing import AsyncContextManager, Protocol, runtime_checkable


@runtime_checkable
class BrowserSlotPort(Protocol):
    """Global limit on concurrently running browser sessions."""

    @property
    def size(self) -> int:
        """Total number of slots."""
        ...

    @property
    def in_use(self) -> int:
        """Slots currently held."""
        ...

    def acquire(self) -> AsyncContextManager[None]:
        """Hold one slot for the duration of the ``async with`` block."""
        ...
