"""Manifest interception: recover an HLS URL by rendering the embed page.

Some providers only reveal the manifest location when their player
script runs. ``ManifestInterceptor`` opens the embed page in a fresh
headless Chromium, routes every request whose path ends in ``.m3u8``
through a handler, and keeps the first one: its URL and the headers the
player sent. That request is aborted so no media is downloaded; later
manifest requests are continued untouched and ignored.

Each call gets its own Playwright driver, browser and context. All three
are closed on every exit path (success, timeout, navigation error,
cancellation). Concurrency is bounded by a ``BrowserSlotPort``.
"""

from __future__ import annotations

import asyncio
import functools
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable

import structlog
from playwright.async_api import BrowserContext, Page, Route, async_playwright
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright_stealth import Stealth

from cineresolver.domain.entities.resolution import (
    ResolutionResult,
    ResolutionStrategy,
    is_manifest_url,
)
from cineresolver.domain.exceptions import BrowserUnavailableError
from cineresolver.domain.ports.concurrency import BrowserSlotPort
from cineresolver.infrastructure.constants import (
    DEFAULT_NAVIGATION_TIMEOUT_MS,
    DEFAULT_SETTLE_DELAY_MS,
    DEFAULT_USER_AGENT,
)

log = structlog.get_logger(__name__)

_BLOCKED_RESOURCE_TYPES = frozenset(
    {"image", "font", "stylesheet", "media", "texttrack"}
)


async def _block_resources(route: Route) -> None:
    """Abort requests for heavy resource types."""
    if route.request.resource_type in _BLOCKED_RESOURCE_TYPES:
        await route.abort()
    else:
        await route.continue_()


async def _close_quietly(close: Callable[[], Awaitable[None]], event: str) -> None:
    try:
        await close()
    except Exception:  # noqa: BLE001
        log.warning(event, exc_info=True)


class ManifestCapture:
    """First manifest request observed on a page."""

    def __init__(self) -> None:
        self.url: str | None = None
        self.headers: dict[str, str] = {}
        self.ignored: list[str] = []
        self._claimed = False
        self._done = asyncio.Event()

    @property
    def captured(self) -> bool:
        return self._done.is_set()

    def claim(self) -> bool:
        """Reserve the capture slot; False if another request already has it."""
        if self._claimed:
            return False
        self._claimed = True
        return True

    def record(self, url: str, headers: dict[str, str]) -> None:
        self.url = url
        # Playwright reports header names in lower case
        self.headers = {k.lower(): v for k, v in headers.items()}
        self._done.set()

    async def wait(self, timeout: float) -> bool:
        """Wait up to *timeout* seconds for a capture."""
        if self.captured:
            return True
        if timeout <= 0:
            return False
        try:
            await asyncio.wait_for(self._done.wait(), timeout=timeout)
        except asyncio.TimeoutError:
            return False
        return True


class ManifestInterceptor:
    """Renders embed pages and captures the first manifest request.

    Usage::

        interceptor = ManifestInterceptor(slots=BrowserSlotPool(2))
        result = await interceptor.resolve("https://host.example/e/abc123")
    """

    def __init__(
        self,
        *,
        slots: BrowserSlotPort,
        headless: bool = True,
        navigation_timeout_ms: int = DEFAULT_NAVIGATION_TIMEOUT_MS,
        settle_delay_ms: int = DEFAULT_SETTLE_DELAY_MS,
        user_agent: str = DEFAULT_USER_AGENT,
        stealth: bool = True,
    ) -> None:
        self._slots = slots
        self._headless = headless
        self._navigation_timeout_ms = navigation_timeout_ms
        self._settle_delay_ms = settle_delay_ms
        self._user_agent = user_agent
        self._stealth = stealth

    async def resolve(self, embed_url: str) -> ResolutionResult | None:
        """Return the first manifest requested by *embed_url*, or None.

        Raises BrowserUnavailableError if Chromium cannot be started.
        """
        capture = ManifestCapture()

        async with self._slots.acquire():
            async with self._session() as context:
                page = await context.new_page()
                await page.route("**/*", _block_resources)
                # Registered last so it runs before the resource blocker
                await page.route(
                    is_manifest_url,
                    functools.partial(self._on_manifest, capture),
                )
                await self._navigate(page, embed_url)
                await capture.wait(self._settle_delay_ms / 1000)

        if capture.url is None:
            log.info(
                "manifest_not_found",
                url=embed_url,
                budget_ms=self._navigation_timeout_ms + self._settle_delay_ms,
            )
            return None

        headers = {
            "Referer": capture.headers.get("referer") or embed_url,
            "User-Agent": capture.headers.get("user-agent") or self._user_agent,
        }
        log.info(
            "manifest_captured",
            url=embed_url,
            manifest=capture.url,
            ignored=len(capture.ignored),
        )
        return ResolutionResult(
            url=capture.url,
            headers=headers,
            strategy=ResolutionStrategy.INTERCEPTED,
        )

    # ------------------------------------------------------------------
    # Browser session
    # ------------------------------------------------------------------

    @asynccontextmanager
    async def _session(self) -> AsyncIterator[BrowserContext]:
        """Fresh driver + browser + context, torn down unconditionally."""
        try:
            playwright = await async_playwright().start()
        except Exception as exc:
            raise BrowserUnavailableError(f"playwright driver failed: {exc}") from exc

        try:
            try:
                browser = await playwright.chromium.launch(headless=self._headless)
            except PlaywrightError as exc:
                raise BrowserUnavailableError(f"chromium launch failed: {exc}") from exc

            try:
                context = await browser.new_context(user_agent=self._user_agent)
                try:
                    if self._stealth:
                        await Stealth().apply_stealth_async(context)
                    yield context
                finally:
                    await _close_quietly(context.close, "browser_context_close_error")
            finally:
                await _close_quietly(browser.close, "browser_close_error")
        finally:
            await _close_quietly(playwright.stop, "playwright_stop_error")
            log.debug("browser_session_closed")

    async def _navigate(self, page: Page, embed_url: str) -> None:
        """Load the embed page up to DOMContentLoaded; failures are not fatal."""
        try:
            await page.goto(
                embed_url,
                wait_until="domcontentloaded",
                timeout=self._navigation_timeout_ms,
            )
        except PlaywrightTimeoutError:
            log.warning(
                "embed_navigation_timeout",
                url=embed_url,
                timeout_ms=self._navigation_timeout_ms,
            )
        except PlaywrightError as exc:
            log.warning("embed_navigation_failed", url=embed_url, error=str(exc))

    # ------------------------------------------------------------------
    # Request interception
    # ------------------------------------------------------------------

    async def _on_manifest(self, capture: ManifestCapture, route: Route) -> None:
        request = route.request
        if not capture.claim():
            capture.ignored.append(request.url)
            log.debug("manifest_ignored", manifest=request.url)
            await route.continue_()
            return

        try:
            headers = await request.all_headers()
        except PlaywrightError:
            headers = dict(request.headers)
        capture.record(request.url, headers)
        await route.abort()
