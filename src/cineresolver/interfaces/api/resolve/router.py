"""Resolve endpoint: provider reference -> playable URL + headers."""

from __future__ import annotations

from typing import Any, cast

import structlog
from fastapi import APIRouter, HTTPException, Query, Request

from cineresolver.domain.entities.resolution import ResolutionReference
from cineresolver.domain.exceptions import (
    BrowserUnavailableError,
    InvalidReferenceError,
    UnknownProviderError,
)
from cineresolver.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/v1", tags=["resolve"])


@router.get("/resolve")
async def resolve_stream(
    request: Request,
    provider: str = Query(..., description="Provider id, e.g. 'goodstream'."),
    target: str = Query(..., description="File code or embed page URL."),
    api_key: str | None = Query(
        default=None, description="Overrides the configured provider API key."
    ),
) -> dict[str, Any]:
    """Resolve a provider reference to ``{url, headers, strategy, is_hls}``.

    Degraded results (``strategy == "fallback_embed"``) are still 200:
    the URL is the provider's embed page, playable in an iframe.

    Raises:
        HTTPException(422): empty target.
        HTTPException(404): unknown provider with a non-URL target.
        HTTPException(503): headless browser could not be started.
    """
    state = cast(AppState, request.app.state)

    try:
        reference = ResolutionReference(
            provider=provider, target=target, api_key=api_key
        )
    except InvalidReferenceError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e

    try:
        result = await state.resolver.resolve(reference)
    except UnknownProviderError as e:
        log.warning("resolve_unknown_provider", provider=reference.provider)
        raise HTTPException(status_code=404, detail=str(e)) from e
    except BrowserUnavailableError as e:
        raise HTTPException(
            status_code=503, detail="headless browser unavailable"
        ) from e

    log.info(
        "resolve_request_done",
        provider=reference.provider,
        strategy=result.strategy.value,
    )
    return result.to_dict()
