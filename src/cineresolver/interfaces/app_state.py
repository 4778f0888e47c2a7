"""Application state container for FastAPI dependency injection."""

from __future__ import annotations

import httpx
from starlette.datastructures import State

from cineresolver.infrastructure.cache.memory import MemoryResultCache
from cineresolver.infrastructure.concurrency import BrowserSlotPool
from cineresolver.infrastructure.config import AppConfig
from cineresolver.infrastructure.metrics import MetricsCollector
from cineresolver.infrastructure.resolvers.registry import StreamResolverRegistry


class AppState(State):
    """FastAPI application state with all DI resources.

    Lifecycle managed by composition.py::lifespan().
    """

    # Configuration
    config: AppConfig

    # Infrastructure
    http_client: httpx.AsyncClient
    cache: MemoryResultCache
    browser_slots: BrowserSlotPool
    metrics: MetricsCollector

    # Resolution entry point
    resolver: StreamResolverRegistry
