"""Tests for resolution value objects."""

from __future__ import annotations

import dataclasses

import pytest

from cineresolver.domain.entities.resolution import (
    QualityVariant,
    ResolutionReference,
    ResolutionResult,
    ResolutionStrategy,
    is_manifest_url,
)
from cineresolver.domain.exceptions import InvalidReferenceError, ResolverError


class TestIsManifestUrl:
    @pytest.mark.parametrize(
        "url",
        [
            "https://cdn.example.net/hls/master.m3u8",
            "https://cdn.example.net/hls/index.M3U8",
            "https://cdn.example.net/hls/master.m3u8?token=abc&e=123",
            "https://cdn.example.net/list.m3u",
        ],
    )
    def test_manifest_paths(self, url: str) -> None:
        assert is_manifest_url(url) is True

    @pytest.mark.parametrize(
        "url",
        [
            "https://cdn.example.net/video.mp4",
            "https://cdn.example.net/seg-001.ts",
            "https://cdn.example.net/player?src=master.m3u8",
            "https://cdn.example.net/master.m3u8.js",
            "",
        ],
    )
    def test_non_manifest_paths(self, url: str) -> None:
        assert is_manifest_url(url) is False


class TestResolutionReference:
    def test_normalizes_provider_and_target(self) -> None:
        ref = ResolutionReference(provider="  GoodStream ", target=" abc123def456 ")
        assert ref.provider == "goodstream"
        assert ref.target == "abc123def456"

    def test_empty_target_rejected(self) -> None:
        with pytest.raises(InvalidReferenceError):
            ResolutionReference(provider="goodstream", target="   ")

    def test_invalid_reference_is_resolver_error(self) -> None:
        with pytest.raises(ResolverError):
            ResolutionReference(provider="goodstream", target="")

    def test_blank_api_key_becomes_none(self) -> None:
        ref = ResolutionReference(provider="goodstream", target="x", api_key="  ")
        assert ref.api_key is None

    def test_api_key_is_stripped(self) -> None:
        ref = ResolutionReference(provider="goodstream", target="x", api_key=" k1 ")
        assert ref.api_key == "k1"

    def test_is_url_for_http_target(self) -> None:
        ref = ResolutionReference(
            provider="streamwish", target="https://streamwish.to/e/abc"
        )
        assert ref.is_url is True

    def test_is_url_false_for_file_code(self) -> None:
        ref = ResolutionReference(provider="goodstream", target="abc123def456")
        assert ref.is_url is False

    def test_is_url_false_for_other_schemes(self) -> None:
        ref = ResolutionReference(provider="x", target="ftp://host/file")
        assert ref.is_url is False

    def test_cache_key_ignores_api_key(self) -> None:
        a = ResolutionReference(provider="goodstream", target="abc", api_key="k1")
        b = ResolutionReference(provider="GOODSTREAM", target="abc", api_key="k2")
        assert a.cache_key == b.cache_key == "goodstream:abc"

    def test_frozen(self) -> None:
        ref = ResolutionReference(provider="goodstream", target="abc")
        with pytest.raises(dataclasses.FrozenInstanceError):
            ref.target = "other"  # type: ignore[misc]


class TestResolutionResult:
    def test_defaults(self) -> None:
        result = ResolutionResult(url="https://cdn.example.net/v.mp4")
        assert result.strategy is ResolutionStrategy.DIRECT
        assert result.headers == {}
        assert result.is_degraded is False
        assert result.is_hls is False

    def test_empty_url_rejected(self) -> None:
        with pytest.raises(ValueError, match="url"):
            ResolutionResult(url="")

    def test_intercepted_requires_referer(self) -> None:
        with pytest.raises(ValueError, match="Referer"):
            ResolutionResult(
                url="https://cdn.example.net/master.m3u8",
                headers={"User-Agent": "UA"},
                strategy=ResolutionStrategy.INTERCEPTED,
            )

    def test_intercepted_with_referer(self) -> None:
        result = ResolutionResult(
            url="https://cdn.example.net/master.m3u8",
            headers={"Referer": "https://player.example.net/e/1"},
            strategy=ResolutionStrategy.INTERCEPTED,
        )
        assert result.is_hls is True
        assert result.is_degraded is False

    def test_fallback_is_degraded(self) -> None:
        result = ResolutionResult(
            url="https://goodstream.one/embed-abc123def456.html",
            strategy=ResolutionStrategy.FALLBACK_EMBED,
        )
        assert result.is_degraded is True

    def test_to_dict(self) -> None:
        result = ResolutionResult(
            url="https://cdn.example.net/master.m3u8",
            headers={"Referer": "https://player.example.net/e/1", "User-Agent": "UA"},
            strategy=ResolutionStrategy.INTERCEPTED,
        )
        assert result.to_dict() == {
            "url": "https://cdn.example.net/master.m3u8",
            "headers": {
                "Referer": "https://player.example.net/e/1",
                "User-Agent": "UA",
            },
            "strategy": "intercepted",
            "is_hls": True,
        }

    def test_strategy_values_are_strings(self) -> None:
        assert ResolutionStrategy.FALLBACK_EMBED == "fallback_embed"


class TestQualityVariant:
    def test_equality(self) -> None:
        assert QualityVariant("h", "https://a") == QualityVariant("h", "https://a")
