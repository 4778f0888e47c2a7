"""Composition root: dependency injection via FastAPI lifespan."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

import httpx
import structlog
from fastapi import FastAPI

from cineresolver.domain.ports.stream_resolver import DirectLinkResolverPort
from cineresolver.infrastructure.cache.memory import MemoryResultCache
from cineresolver.infrastructure.concurrency import BrowserSlotPool
from cineresolver.infrastructure.config.schema import AppConfig
from cineresolver.infrastructure.metrics import MetricsCollector
from cineresolver.infrastructure.resolvers.goodstream import GoodstreamApiResolver
from cineresolver.infrastructure.resolvers.interceptor import ManifestInterceptor
from cineresolver.infrastructure.resolvers.registry import StreamResolverRegistry
from cineresolver.infrastructure.resource_detector import recommend_browser_sessions
from cineresolver.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


def build_direct_resolvers(
    config: AppConfig, http_client: httpx.AsyncClient
) -> list[DirectLinkResolverPort]:
    """Create direct-link resolvers for providers flagged ``direct_api``."""
    resolvers: list[DirectLinkResolverPort] = []
    goodstream = config.providers.get("goodstream")
    if goodstream is not None and goodstream.direct_api:
        if not goodstream.api_key:
            log.warning("goodstream_api_key_not_configured")
        resolvers.append(
            GoodstreamApiResolver(
                http_client,
                api_key=goodstream.api_key,
                base_url=goodstream.base_url,
                timeout=config.http_timeout_seconds,
            )
        )
    for name, provider in config.providers.items():
        if provider.direct_api and name != "goodstream":
            log.warning("direct_api_provider_unsupported", provider=name)
    return resolvers


def build_resolver(
    config: AppConfig,
    *,
    http_client: httpx.AsyncClient,
    cache: MemoryResultCache,
    browser_slots: BrowserSlotPool,
    metrics: MetricsCollector,
) -> StreamResolverRegistry:
    """Wire strategies, cache and provider table into the registry."""
    interceptor = ManifestInterceptor(
        slots=browser_slots,
        headless=config.browser_headless,
        navigation_timeout_ms=config.browser_navigation_timeout_ms,
        settle_delay_ms=config.browser_settle_delay_ms,
        user_agent=config.browser_user_agent,
        stealth=config.browser_stealth,
    )
    return StreamResolverRegistry(
        cache=cache,
        direct_resolvers=build_direct_resolvers(config, http_client),
        interceptor=interceptor,
        providers=config.providers,
        metrics=metrics,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan Hook: Initialize and cleanup all resources (DI Composition Root).

    Order matters:
        1. Metrics + cache (used by the registry)
        2. HTTP client (direct-link APIs)
        3. Browser slot pool (bounds interception)
        4. Resolver registry
    """
    state = cast(AppState, app.state)
    config = state.config

    state.metrics = MetricsCollector()
    state.cache = MemoryResultCache(
        ttl_seconds=config.cache.ttl_seconds,
        max_entries=config.cache.max_entries,
    )
    log.info("cache_initialized", ttl_seconds=config.cache.ttl_seconds)

    state.http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(config.http_timeout_seconds),
        follow_redirects=True,
        headers={"User-Agent": config.http_user_agent},
    )
    log.info("http_client_initialized", timeout=config.http_timeout_seconds)

    sessions = config.browser_max_sessions or recommend_browser_sessions()
    state.browser_slots = BrowserSlotPool(sessions)
    log.info("browser_slots_initialized", size=sessions)

    state.resolver = build_resolver(
        config,
        http_client=state.http_client,
        cache=state.cache,
        browser_slots=state.browser_slots,
        metrics=state.metrics,
    )
    log.info(
        "resolver_initialized",
        direct_providers=state.resolver.direct_providers,
        providers=sorted(config.providers),
    )

    try:
        yield
    finally:
        await state.http_client.aclose()
        await state.cache.clear()
        log.info("resources_closed")
