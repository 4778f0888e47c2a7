"""Registry that turns any resolution reference into a playable result.

This is the single entry point callers depend on. It never hands back an
empty URL: direct resolvers degrade to the provider embed page on their
own, and an interception miss degrades to the embed page here.
"""

from __future__ import annotations

import asyncio
import time

import structlog

from cineresolver.domain.entities.resolution import (
    ResolutionReference,
    ResolutionResult,
    ResolutionStrategy,
)
from cineresolver.domain.exceptions import (
    BrowserUnavailableError,
    UnknownProviderError,
)
from cineresolver.domain.ports.cache import ResultCachePort
from cineresolver.domain.ports.stream_resolver import (
    DirectLinkResolverPort,
    ManifestInterceptorPort,
)
from cineresolver.infrastructure.config.schema import ProviderConfig
from cineresolver.infrastructure.metrics import MetricsCollector

log = structlog.get_logger(__name__)


class StreamResolverRegistry:
    """Dispatches references to the direct API or to manifest interception.

    1. Return a live cached result for the reference, if any.
    2. Join an in-flight resolution of the same reference, if any; when
       its owner is cancelled, a joiner takes the work over.
    3. Providers with a registered direct resolver use its API.
    4. Everything else is rendered by the interceptor; a miss degrades to
       the embed page.
    5. Only non-degraded results are cached, so outages self-heal.
    """

    def __init__(
        self,
        *,
        cache: ResultCachePort,
        direct_resolvers: list[DirectLinkResolverPort] | None = None,
        interceptor: ManifestInterceptorPort | None = None,
        providers: dict[str, ProviderConfig] | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._cache = cache
        self._direct: dict[str, DirectLinkResolverPort] = {}
        self._interceptor = interceptor
        self._providers = dict(providers or {})
        self._metrics = metrics or MetricsCollector()
        self._inflight: dict[str, asyncio.Future[ResolutionResult]] = {}
        for resolver in direct_resolvers or []:
            self.register(resolver)

    def register(self, resolver: DirectLinkResolverPort) -> None:
        """Register a direct-link resolver under its provider name."""
        self._direct[resolver.name] = resolver
        log.debug("direct_resolver_registered", provider=resolver.name)

    @property
    def direct_providers(self) -> list[str]:
        """Providers resolved through a direct API."""
        return list(self._direct.keys())

    @property
    def inflight_count(self) -> int:
        return len(self._inflight)

    async def resolve(self, reference: ResolutionReference) -> ResolutionResult:
        """Resolve *reference* to a playable URL plus headers.

        Raises:
            UnknownProviderError: no URL can be formed for the reference.
            BrowserUnavailableError: interception needed but Chromium
                cannot start.
        """
        key = reference.cache_key

        while True:
            cached = await self._cache.get(key)
            if cached is not None:
                self._metrics.record_cache(hit=True)
                log.debug(
                    "resolver_cache_hit", key=key, strategy=cached.strategy.value
                )
                return cached
            self._metrics.record_cache(hit=False)

            pending = self._inflight.get(key)
            if pending is None:
                break
            self._metrics.record_inflight_join()
            log.debug("resolver_inflight_join", key=key)
            # wait() only raises when this caller is cancelled, not the owner
            await asyncio.wait((pending,))
            if not pending.cancelled():
                return pending.result()
            log.debug("resolver_inflight_owner_cancelled", key=key)

        return await self._resolve_as_owner(key, reference)

    async def _resolve_as_owner(
        self, key: str, reference: ResolutionReference
    ) -> ResolutionResult:
        future: asyncio.Future[ResolutionResult] = (
            asyncio.get_running_loop().create_future()
        )
        self._inflight[key] = future
        try:
            result = await self._resolve_uncached(reference)
            # Cache before leaving the in-flight map so no caller slips between
            if not result.is_degraded:
                await self._cache.set(key, result)
        except asyncio.CancelledError:
            future.cancel()
            raise
        except Exception as exc:
            future.set_exception(exc)
            # Mark retrieved so a future nobody joined does not warn
            future.exception()
            raise
        else:
            future.set_result(result)
        finally:
            self._inflight.pop(key, None)
        return result

    async def _resolve_uncached(
        self, reference: ResolutionReference
    ) -> ResolutionResult:
        start_ns = time.perf_counter_ns()
        direct = self._direct.get(reference.provider)
        if direct is not None:
            file_code = direct.extract_file_code(reference.target)
            if file_code is not None:
                result = await self._try_direct(direct, file_code, reference.api_key)
                self._record(result, start_ns)
                return result
            log.info(
                "resolver_target_not_a_file_code",
                provider=reference.provider,
                target=reference.target,
            )

        embed_url = self.embed_url_for(reference)
        result = await self._try_interception(embed_url)
        if result is None:
            log.info(
                "resolver_embed_fallback",
                provider=reference.provider,
                url=embed_url,
            )
            result = ResolutionResult(
                url=embed_url, strategy=ResolutionStrategy.FALLBACK_EMBED
            )
        self._record(result, start_ns)
        return result

    def embed_url_for(self, reference: ResolutionReference) -> str:
        """The embed page for a reference (the target itself when it is a URL)."""
        if reference.is_url:
            return reference.target
        direct = self._direct.get(reference.provider)
        if direct is not None:
            return direct.fallback_url(reference.target)
        provider = self._providers.get(reference.provider)
        if provider is not None:
            return provider.embed_url(reference.target)
        raise UnknownProviderError(
            f"unknown provider {reference.provider!r} for non-URL target"
        )

    async def _try_direct(
        self,
        resolver: DirectLinkResolverPort,
        file_code: str,
        api_key: str | None,
    ) -> ResolutionResult:
        try:
            return await resolver.resolve(file_code, api_key)
        except Exception:
            # Direct resolvers handle provider errors themselves; this is a bug
            self._metrics.record_error()
            log.exception(
                "direct_resolver_error", provider=resolver.name, file_code=file_code
            )
            return ResolutionResult(
                url=resolver.fallback_url(file_code),
                strategy=ResolutionStrategy.FALLBACK_EMBED,
            )

    async def _try_interception(self, embed_url: str) -> ResolutionResult | None:
        if self._interceptor is None:
            return None
        try:
            return await self._interceptor.resolve(embed_url)
        except BrowserUnavailableError:
            self._metrics.record_error()
            log.error("browser_unavailable", url=embed_url)
            raise
        except Exception:
            self._metrics.record_error()
            log.exception("interception_error", url=embed_url)
            return None

    def _record(self, result: ResolutionResult, start_ns: int) -> None:
        self._metrics.record_resolution(
            result.strategy, time.perf_counter_ns() - start_ns
        )
