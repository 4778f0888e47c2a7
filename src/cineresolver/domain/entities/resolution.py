"""Domain entities for stream resolution.

Pure value objects without framework imports or I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from urllib.parse import urlparse

from cineresolver.domain.exceptions import InvalidReferenceError

# Playlist suffixes treated as streaming manifests
MANIFEST_SUFFIXES: tuple[str, ...] = (".m3u8", ".m3u")


def is_manifest_url(url: str) -> bool:
    """Return True when the URL path ends in a manifest suffix."""
    try:
        path = urlparse(url).path.lower()
    except ValueError:
        return False
    return path.endswith(MANIFEST_SUFFIXES)


class ResolutionStrategy(str, Enum):
    """How a playable URL was obtained."""

    DIRECT = "direct"
    INTERCEPTED = "intercepted"
    FALLBACK_EMBED = "fallback_embed"


@dataclass(frozen=True)
class ResolutionReference:
    """Identifies what to resolve.

    ``target`` is either a provider file code or an embed page URL.
    ``api_key`` overrides the provider key from configuration.
    """

    provider: str
    target: str
    api_key: str | None = None

    def __post_init__(self) -> None:
        provider = (self.provider or "").strip().lower()
        target = (self.target or "").strip()
        if not target:
            raise InvalidReferenceError("target must not be empty")
        object.__setattr__(self, "provider", provider)
        object.__setattr__(self, "target", target)
        object.__setattr__(self, "api_key", (self.api_key or "").strip() or None)

    @property
    def is_url(self) -> bool:
        """True when the target is an absolute http(s) URL."""
        parsed = urlparse(self.target)
        return parsed.scheme in ("http", "https") and bool(parsed.netloc)

    @property
    def cache_key(self) -> str:
        return f"{self.provider}:{self.target}"


@dataclass(frozen=True)
class QualityVariant:
    """One encoding of an asset as listed by a direct-link API."""

    name: str  # Provider quality label, e.g. "h", "n", "l"
    url: str


@dataclass(frozen=True)
class ResolutionResult:
    """A playable URL plus the headers a player must send to fetch it."""

    url: str
    headers: dict[str, str] = field(default_factory=dict)
    strategy: ResolutionStrategy = ResolutionStrategy.DIRECT

    def __post_init__(self) -> None:
        if not self.url:
            raise ValueError("ResolutionResult.url must not be empty")
        if (
            self.strategy is ResolutionStrategy.INTERCEPTED
            and not self.headers.get("Referer")
        ):
            raise ValueError("intercepted results require a Referer header")

    @property
    def is_degraded(self) -> bool:
        """True for embed fallbacks (an iframe page, not a media file)."""
        return self.strategy is ResolutionStrategy.FALLBACK_EMBED

    @property
    def is_hls(self) -> bool:
        return is_manifest_url(self.url)

    def to_dict(self) -> dict[str, object]:
        return {
            "url": self.url,
            "headers": dict(self.headers),
            "strategy": self.strategy.value,
            "is_hls": self.is_hls,
        }
