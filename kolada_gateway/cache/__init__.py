"""Read-through caching for Kolada catalog and data lookups.

This module provides:
- DataCache: in-memory TTL cache with get_or_fetch and single-flight misses
- CacheJanitor: periodic eviction of expired entries
- build_key: order-independent cache keys from endpoint + params
"""

from kolada_gateway.cache.data_cache import (
    DEFAULT_TTL,
    MISSING,
    CacheEntry,
    CacheStats,
    DataCache,
)
from kolada_gateway.cache.janitor import CacheJanitor
from kolada_gateway.cache.keys import build_key

__all__ = [
    "DataCache",
    "CacheEntry",
    "CacheStats",
    "CacheJanitor",
    "MISSING",
    "DEFAULT_TTL",
    "build_key",
]
