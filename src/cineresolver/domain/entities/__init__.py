from .resolution import (
    MANIFEST_SUFFIXES,
    QualityVariant,
    ResolutionReference,
    ResolutionResult,
    ResolutionStrategy,
    is_manifest_url,
)

__all__ = [
    "MANIFEST_SUFFIXES",
    "QualityVariant",
    "ResolutionReference",
    "ResolutionResult",
    "ResolutionStrategy",
    "is_manifest_url",
]
