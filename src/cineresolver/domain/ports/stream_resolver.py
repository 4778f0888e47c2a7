"""Ports for the two resolution strategies."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from cineresolver.domain.entities.resolution import ResolutionResult


@runtime_checkable
class DirectLinkResolverPort(Protocol):
    """Resolves a provider file code through the provider's own API.

    Implementations never raise for provider failures: every failure path
    returns the provider's embed page tagged ``FALLBACK_EMBED``.
    """

    @property
    def name(self) -> str:
        """Provider name this resolver handles (e.g. 'goodstream')."""
        ...

    def fallback_url(self, file_code: str) -> str:
        """Deterministic embed page URL for *file_code*."""
        ...

    def extract_file_code(self, value: str) -> str | None:
        """Return the file code of a bare code or provider URL, else None."""
        ...

    async def resolve(
        self, file_code: str, api_key: str | None = None
    ) -> ResolutionResult:
        """Resolve *file_code* to a playable URL (always returns a result)."""
        ...


@runtime_checkable
class ManifestInterceptorPort(Protocol):
    """Recovers a streaming manifest by rendering an embed page."""

    async def resolve(self, embed_url: str) -> ResolutionResult | None:
        """Return the first manifest request of the page, or None.

        Raises BrowserUnavailableError when no browser session can be started.
        """
        ...
