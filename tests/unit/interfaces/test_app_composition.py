"""Tests for app assembly and lifespan wiring."""

from __future__ import annotations

from unittest.mock import patch

import httpx
from fastapi.testclient import TestClient

from cineresolver.infrastructure.config.schema import AppConfig
from cineresolver.infrastructure.resolvers.goodstream import GoodstreamApiResolver
from cineresolver.interfaces.composition import build_direct_resolvers
from cineresolver.interfaces.main import build_app


def _config(**overrides) -> AppConfig:
    data = {
        "browser_max_sessions": 2,
        "providers": {
            "goodstream": {
                "base_url": "https://goodstream.one",
                "api_key": "k",
                "direct_api": True,
            }
        },
    }
    data.update(overrides)
    return AppConfig.model_validate(data)


class TestBuildDirectResolvers:
    def test_goodstream_registered(self) -> None:
        resolvers = build_direct_resolvers(_config(), httpx.AsyncClient())
        assert len(resolvers) == 1
        assert isinstance(resolvers[0], GoodstreamApiResolver)

    def test_registered_without_key(self) -> None:
        config = _config(
            providers={
                "goodstream": {
                    "base_url": "https://goodstream.one",
                    "direct_api": True,
                }
            }
        )
        resolvers = build_direct_resolvers(config, httpx.AsyncClient())
        assert [r.name for r in resolvers] == ["goodstream"]

    def test_direct_api_disabled(self) -> None:
        config = _config(
            providers={"goodstream": {"base_url": "https://goodstream.one"}}
        )
        assert build_direct_resolvers(config, httpx.AsyncClient()) == []

    def test_unsupported_direct_provider_skipped(self) -> None:
        config = _config(
            providers={
                "vidhide": {
                    "base_url": "https://vidhide.example",
                    "direct_api": True,
                }
            }
        )
        assert build_direct_resolvers(config, httpx.AsyncClient()) == []


class TestLifespan:
    def test_resources_initialized(self) -> None:
        app = build_app(_config())
        with TestClient(app) as client:
            assert client.get("/healthz").json() == {"status": "ok"}
            state = app.state
            assert state.browser_slots.size == 2
            assert state.resolver.direct_providers == ["goodstream"]
            assert isinstance(state.http_client, httpx.AsyncClient)

            stats = client.get("/stats/resolver").json()
            assert stats["browser_slots"]["size"] == 2
            assert stats["cache"]["ttl_seconds"] == 3600

        assert state.http_client.is_closed

    def test_browser_sessions_auto_sized(self) -> None:
        app = build_app(_config(browser_max_sessions=None))
        with patch(
            "cineresolver.interfaces.composition.recommend_browser_sessions",
            return_value=3,
        ) as mock_recommend:
            with TestClient(app):
                assert app.state.browser_slots.size == 3
        mock_recommend.assert_called_once()

    def test_cache_ttl_from_config(self) -> None:
        app = build_app(_config(cache={"ttl_seconds": 30}))
        with TestClient(app):
            assert app.state.cache.ttl_seconds == 30
