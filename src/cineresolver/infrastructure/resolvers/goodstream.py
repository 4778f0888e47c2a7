"""Goodstream resolver: direct MP4 links via the XFS direct_link API.

Goodstream is an XFileSharingPro-based video host. With an account API
key, ``GET /api/file/direct_link?key=...&file_code=...`` lists the
available encodings of a file. Without a key, or whenever the API
misbehaves, the player falls back to the embed page::

    https://goodstream.one/embed-{file_code}.html

The file code is a 12-character alphanumeric string.

Domains:
    goodstream.one
    goodstream.uno
"""

from __future__ import annotations

import re
from urllib.parse import urlparse

import httpx
import structlog

from cineresolver.domain.entities.resolution import (
    ResolutionResult,
    ResolutionStrategy,
)
from cineresolver.infrastructure.resolvers.schema import (
    normalize_versions,
    select_variant,
)

log = structlog.get_logger(__name__)

# Known Goodstream domains (second-level part only, for matching)
_DOMAINS = {"goodstream"}

_DEFAULT_BASE_URL = "https://goodstream.one"

_API_PATH = "/api/file/direct_link"

_FILE_CODE_RE = re.compile(r"^[a-zA-Z0-9]{12}$")

# XFS file code in a URL path, with optional e/d/embed- prefix
_URL_FILE_CODE_RE = re.compile(r"^/(?:e/|d/|embed-)?([a-zA-Z0-9]{12})(?:/|$|\.html)")


def extract_file_code(value: str) -> str | None:
    """Return the file code of a bare code or a goodstream URL."""
    value = (value or "").strip()
    if _FILE_CODE_RE.match(value):
        return value
    try:
        parsed = urlparse(value)
    except ValueError:
        return None
    hostname = parsed.hostname or ""
    parts = hostname.split(".")
    domain = parts[-2] if len(parts) >= 2 else ""
    if domain not in _DOMAINS:
        return None
    match = _URL_FILE_CODE_RE.search(parsed.path)
    return match.group(1) if match else None


class GoodstreamApiResolver:
    """Resolves goodstream file codes to direct MP4 URLs.

    Always returns a result: any failure degrades to the embed page,
    tagged ``FALLBACK_EMBED``.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        api_key: str | None = None,
        base_url: str = _DEFAULT_BASE_URL,
        timeout: float = 15.0,
    ) -> None:
        self._http = http_client
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "goodstream"

    def fallback_url(self, file_code: str) -> str:
        return f"{self._base_url}/embed-{file_code}.html"

    def extract_file_code(self, value: str) -> str | None:
        return extract_file_code(value)

    async def resolve(
        self, file_code: str, api_key: str | None = None
    ) -> ResolutionResult:
        """Query the direct_link API and pick the best available encoding."""
        key = api_key or self._api_key
        if not key:
            log.error("goodstream_api_key_missing", file_code=file_code)
            return self._fallback(file_code)

        try:
            resp = await self._http.get(
                f"{self._base_url}{_API_PATH}",
                params={"key": key, "file_code": file_code},
                timeout=self._timeout,
            )
            resp.raise_for_status()
            payload = resp.json()
        except httpx.TimeoutException:
            log.warning("goodstream_api_timeout", file_code=file_code)
            return self._fallback(file_code)
        except httpx.HTTPStatusError as exc:
            log.warning(
                "goodstream_api_http_error",
                file_code=file_code,
                status=exc.response.status_code,
            )
            return self._fallback(file_code)
        except httpx.HTTPError as exc:
            log.warning(
                "goodstream_api_request_failed",
                file_code=file_code,
                error=str(exc),
            )
            return self._fallback(file_code)
        except ValueError:
            log.warning("goodstream_api_invalid_json", file_code=file_code)
            return self._fallback(file_code)

        variants = normalize_versions(payload)
        variant = select_variant(variants)
        if variant is None:
            log.warning(
                "goodstream_no_variants",
                file_code=file_code,
                payload=payload,
            )
            return self._fallback(file_code)

        log.info(
            "goodstream_direct_link_resolved",
            file_code=file_code,
            quality=variant.name,
            available=[v.name for v in variants],
        )
        return ResolutionResult(url=variant.url, strategy=ResolutionStrategy.DIRECT)

    def _fallback(self, file_code: str) -> ResolutionResult:
        return ResolutionResult(
            url=self.fallback_url(file_code),
            strategy=ResolutionStrategy.FALLBACK_EMBED,
        )
