"""Normalization of XFS direct-link API payloads.

Goodstream answers ``/api/file/direct_link`` in one of two dialects::

    {"result":    {"versions":  [{"name": "h", "url": "..."}, ...]}}
    {"resultado": {"versiones": [{"name": "h", "url": "..."}, ...]}}

The container and the list are looked up independently (English spelling
first), so mixed payloads such as ``{"resultado": {"versions": [...]}}``
normalize too. Selection logic only ever sees ``QualityVariant`` lists.
"""

from __future__ import annotations

from typing import Any, Mapping

from cineresolver.domain.entities.resolution import QualityVariant

_CONTAINER_KEYS: tuple[str, ...] = ("result", "resultado")
_VERSION_KEYS: tuple[str, ...] = ("versions", "versiones")

# Best first: "h" (high), "n" (normal), then whatever the API listed first
QUALITY_PREFERENCE: tuple[str, ...] = ("h", "n")


def _first_present(data: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    """Return the first non-empty value among *keys*, else None."""
    for key in keys:
        value = data.get(key)
        if value:
            return value
    return None


def normalize_versions(payload: Any) -> list[QualityVariant]:
    """Turn a raw API payload into an ordered list of quality variants.

    Returns ``[]`` when no container or no variant list is present; that is
    a valid "no variants" outcome, not an error.
    """
    if not isinstance(payload, Mapping):
        return []

    container = _first_present(payload, _CONTAINER_KEYS)
    if not isinstance(container, Mapping):
        return []

    versions = _first_present(container, _VERSION_KEYS)
    if not isinstance(versions, list):
        return []

    variants: list[QualityVariant] = []
    for item in versions:
        if not isinstance(item, Mapping):
            continue
        url = item.get("url")
        if not isinstance(url, str) or not url.strip():
            continue
        name = item.get("name")
        variants.append(
            QualityVariant(
                name=name if isinstance(name, str) else "",
                url=url.strip(),
            )
        )
    return variants


def select_variant(variants: list[QualityVariant]) -> QualityVariant | None:
    """Pick the variant named "h", else "n", else the first one."""
    for preferred in QUALITY_PREFERENCE:
        for variant in variants:
            if variant.name == preferred:
                return variant
    return variants[0] if variants else None
