"""Stream resolver implementations for turning references into playable URLs."""

from __future__ import annotations

from .goodstream import GoodstreamApiResolver, extract_file_code
from .interceptor import ManifestInterceptor
from .registry import StreamResolverRegistry
from .schema import normalize_versions, select_variant

__all__ = [
    "GoodstreamApiResolver",
    "ManifestInterceptor",
    "StreamResolverRegistry",
    "extract_file_code",
    "normalize_versions",
    "select_variant",
]
