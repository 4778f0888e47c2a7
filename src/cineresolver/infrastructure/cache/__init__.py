"""Cache Infrastructure - result cache implementations."""

from .memory import CacheEntry, MemoryResultCache

__all__ = ["CacheEntry", "MemoryResultCache"]
