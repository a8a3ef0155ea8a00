"""HTTP response cache module.

Provides the tiered memory/disk response cache and the httpx transport that
serves requests from it.
"""

from .disk import DiskCacheTier
from .entry import CacheEntry, build_cache_key
from .service import CacheService, CachingTransport, TieredHTTPCache, create_http_cache

__all__ = [
    "CacheEntry",
    "CacheService",
    "CachingTransport",
    "DiskCacheTier",
    "TieredHTTPCache",
    "build_cache_key",
    "create_http_cache",
]
