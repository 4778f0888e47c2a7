"""Global limit on concurrent headless browser sessions.

Every interception launches a full Chromium process, so unbounded
parallelism exhausts memory quickly. All interceptions share one
``BrowserSlotPool``; callers beyond the limit wait for a free slot.
"""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog

log = structlog.get_logger(__name__)


class BrowserSlotPool:
    """Application-level singleton bounding browser sessions.

    Parameters:
        size: Maximum number of concurrently held slots (>= 1).
    """

    def __init__(self, size: int = 2) -> None:
        if size < 1:
            raise ValueError("size must be >= 1")
        self._size = size
        self._sem = asyncio.Semaphore(size)
        self._in_use = 0
        self._waiting = 0

    @property
    def size(self) -> int:
        return self._size

    @property
    def in_use(self) -> int:
        return self._in_use

    @property
    def waiting(self) -> int:
        return self._waiting

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[None]:
        """Hold one browser slot; released on every exit path."""
        self._waiting += 1
        try:
            await self._sem.acquire()
        finally:
            self._waiting -= 1
        self._in_use += 1
        log.debug("browser_slot_acquired", in_use=self._in_use, size=self._size)
        try:
            yield
        finally:
            self._in_use -= 1
            self._sem.release()
            log.debug("browser_slot_released", in_use=self._in_use, size=self._size)

    def snapshot(self) -> dict[str, int]:
        """Return current slot usage for the stats endpoint."""
        return {
            "size": self._size,
            "in_use": self._in_use,
            "waiting": self._waiting,
        }
