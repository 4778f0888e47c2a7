"""Resolver exceptions.

Provider misbehavior (bad API key, HTTP errors, odd JSON, pages that
never request a manifest) is not represented here: it is encoded as a
degraded result. These classes cover caller mistakes and environment
faults only.
"""

from __future__ import annotations


class ResolverError(Exception):
    """Base class for all resolver errors."""


class InvalidReferenceError(ResolverError):
    """Raised when a resolution reference has no usable target."""


class UnknownProviderError(ResolverError):
    """Raised when no URL can be formed for a reference.

    Happens for a bare file code whose provider has no configured base URL.
    """


class BrowserUnavailableError(ResolverError):
    """Raised when a headless browser session cannot be started at all."""
