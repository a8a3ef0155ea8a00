"""HTTP response cache service implementation.

This module provides an abstract cache service interface and a concrete
two-tier implementation (memory LRU in front of a SQLite disk tier) used
beneath every Wikipedia/Commons request.

Contract:
- ``get(request)`` returns the stored entry without any network access,
  or None on a miss.
- ``put(request, response)`` stores a fetched response; the caller fetches
  on a miss.
- Capacity-driven eviction only; entries never expire by age.
- Safe to share between concurrent fetches; duplicate in-flight fetches for
  the same key are allowed (no request coalescing).
"""

import logging
import sqlite3
import threading
from abc import ABC, abstractmethod

import httpx

from nearby.utils.cache import LRUCache

from .disk import DiskCacheTier
from .entry import CacheEntry, build_cache_key

logger = logging.getLogger(__name__)


class CacheService(ABC):
    """Abstract base class for HTTP cache services.

    Defines the synchronous get/put interface. Cache checks never suspend,
    so implementations must not perform network I/O.
    """

    @abstractmethod
    def get(self, request: httpx.Request) -> CacheEntry | None:
        """Retrieve a cached response for a request.

        Args:
            request: The outgoing request.

        Returns:
            The cached entry if found, None otherwise.
        """
        pass

    @abstractmethod
    def put(self, request: httpx.Request, response: httpx.Response | CacheEntry) -> None:
        """Store a response for a request.

        Args:
            request: The request the response answers.
            response: A response whose body has been read, or a ready entry.
        """
        pass

    @abstractmethod
    def clear(self) -> None:
        """Remove every entry from the cache."""
        pass

    @staticmethod
    def build_key(request: httpx.Request) -> str:
        """Generate the canonical cache key for a request (URL + relevant headers)."""
        return build_cache_key(request)


class TieredHTTPCache(CacheService):
    """Memory-then-disk read-through cache.

    Each key lives in exactly one tier. New entries go to memory; entries
    evicted from memory are demoted to disk; a disk hit is promoted back to
    memory. Both tiers evict least-recently-used entries first.

    Attributes:
        hits: Number of lookups served from either tier.
        misses: Number of lookups that found nothing.
    """

    def __init__(self, memory_bytes: int, disk: DiskCacheTier | None = None) -> None:
        """Initialize the cache.

        Args:
            memory_bytes: Capacity of the memory tier in bytes.
            disk: Optional disk tier. Without one, memory evictions are dropped.
        """
        self._memory: LRUCache[CacheEntry] = LRUCache(memory_bytes, sizeof=lambda entry: entry.size)
        self._disk = disk
        self._lock = threading.RLock()
        self.hits = 0
        self.misses = 0

    @property
    def memory(self) -> LRUCache[CacheEntry]:
        return self._memory

    @property
    def disk(self) -> DiskCacheTier | None:
        return self._disk

    def get(self, request: httpx.Request) -> CacheEntry | None:
        return self.get_by_key(self.build_key(request))

    def get_by_key(self, key: str) -> CacheEntry | None:
        with self._lock:
            entry = self._memory.get(key)
            if entry is not None:
                self.hits += 1
                logger.debug(f"[CACHE] HIT (memory) {key[:80]}")
                return entry

            if self._disk is not None:
                entry = self._disk.get(key)
                if entry is not None:
                    self.hits += 1
                    logger.debug(f"[CACHE] HIT (disk) {key[:80]}")
                    self._disk.delete(key)
                    self._store_in_memory(key, entry)
                    return entry

            self.misses += 1
            return None

    def put(self, request: httpx.Request, response: httpx.Response | CacheEntry) -> None:
        entry = response if isinstance(response, CacheEntry) else CacheEntry.from_response(response)
        self.put_by_key(self.build_key(request), entry)

    def put_by_key(self, key: str, entry: CacheEntry) -> None:
        with self._lock:
            if self._disk is not None and key in self._disk:
                self._disk.delete(key)
            self._store_in_memory(key, entry)

    def _store_in_memory(self, key: str, entry: CacheEntry) -> None:
        for evicted_key, evicted in self._memory.set(key, entry):
            if self._disk is not None:
                logger.debug(f"[CACHE] Demoting {evicted_key[:80]} to disk ({evicted.size} bytes)")
                self._disk.put(evicted_key, evicted)

    def flush(self) -> None:
        """Demote every memory entry to disk so it survives a restart."""
        if self._disk is None:
            return
        with self._lock:
            for key in self._memory.keys():
                entry = self._memory.pop(key)
                if entry is not None:
                    self._disk.put(key, entry)

    def clear(self) -> None:
        with self._lock:
            self._memory.clear()
            if self._disk is not None:
                self._disk.clear()

    def close(self) -> None:
        self.flush()
        if self._disk is not None:
            self._disk.close()


def is_cacheable(response: httpx.Response) -> bool:
    """Only successful responses that are not MediaWiki API errors are stored.

    MediaWiki reports errors such as maxlag with a 200 status and a
    ``MediaWiki-API-Error`` header.
    """
    if not 200 <= response.status_code < 300:
        return False
    return "mediawiki-api-error" not in response.headers


class CachingTransport(httpx.AsyncBaseTransport):
    """httpx transport that answers GET requests from a ``CacheService``.

    Hits are returned without touching the wrapped transport and carry an
    ``X-Cache: HIT`` header. Successful (2xx) misses are stored after the
    body is read. A failing disk tier never fails the request: lookups fall
    through to the network and stores are skipped.
    """

    def __init__(
        self,
        cache: CacheService,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._cache = cache
        self._transport = transport or httpx.AsyncHTTPTransport()

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        if request.method == "GET":
            try:
                entry = self._cache.get(request)
            except sqlite3.Error as e:
                logger.warning(f"[CACHE] Lookup failed, fetching from network: {e}")
                entry = None
            if entry is not None:
                return httpx.Response(
                    status_code=entry.status_code,
                    headers={**entry.headers, "X-Cache": "HIT"},
                    content=entry.body,
                    request=request,
                )

        response = await self._transport.handle_async_request(request)
        if request.method == "GET" and is_cacheable(response):
            await response.aread()
            try:
                self._cache.put(request, response)
            except sqlite3.Error as e:
                logger.warning(f"[CACHE] Store failed, response not cached: {e}")
        return response

    async def aclose(self) -> None:
        await self._transport.aclose()


def create_http_cache(memory_bytes: int, disk_bytes: int, disk_path: str | None) -> TieredHTTPCache:
    """Build the default two-tier cache; ``disk_path=None`` keeps it memory-only."""
    disk = DiskCacheTier(disk_path, disk_bytes) if disk_path else None
    return TieredHTTPCache(memory_bytes, disk)
