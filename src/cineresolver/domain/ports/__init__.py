from .cache import ResultCachePort
from .concurrency import BrowserSlotPort
from .stream_resolver import DirectLinkResolverPort, ManifestInterceptorPort

__all__ = [
    "BrowserSlotPort",
    "DirectLinkResolverPort",
    "ManifestInterceptorPort",
    "ResultCachePort",
]
