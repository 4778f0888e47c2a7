"""Debug endpoint for resolver state."""

from __future__ import annotations

from typing import Any, cast

from fastapi import APIRouter, Request

from cineresolver.interfaces.app_state import AppState

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("/resolver")
async def resolver_stats(request: Request) -> dict[str, Any]:
    """Return counters, cache size and browser slot usage."""
    state = cast(AppState, request.app.state)
    return {
        "metrics": state.metrics.snapshot(),
        "cache": {
            "size": len(state.cache),
            "ttl_seconds": state.cache.ttl_seconds,
        },
        "browser_slots": state.browser_slots.snapshot(),
        "inflight": state.resolver.inflight_count,
        "direct_providers": state.resolver.direct_providers,
    }
