"""
In-process TTL cache for upstream API responses.

Entries are keyed by the endpoint path and live for ``API_CACHE_TTL_SECONDS``
(one hour by default). The cache belongs to a single worker process; there
is no coherence between processes.

Usage::

    from services.api_cache import api_cache

    data = await api_cache.get_or_fetch("/api/spacex/upcoming", client.spacex_upcoming)
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any, Optional

from infrastructure.config.settings import settings

logger = logging.getLogger(__name__)


class _CacheEntry:
    __slots__ = ("value", "expires_at")

    def __init__(self, value: Any, expires_at: float) -> None:
        self.value = value
        self.expires_at = expires_at


class ApiCache:
    """Simple in-memory TTL cache."""

    def __init__(
        self,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds if ttl_seconds is not None else settings.api_cache_ttl_seconds
        self._clock = clock
        self._entries: dict[str, _CacheEntry] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None when missing or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at <= self._clock():
            del self._entries[key]
            return None
        return entry.value

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        lifetime = self.ttl_seconds if ttl is None else ttl
        now = self._clock()
        self._sweep(now)
        self._entries[key] = _CacheEntry(value, now + lifetime)

    def _sweep(self, now: float) -> None:
        """Drop expired entries so per-query keys do not pile up."""
        expired = [key for key, entry in self._entries.items() if entry.expires_at <= now]
        for key in expired:
            del self._entries[key]

    def invalidate(self, key: Optional[str] = None) -> None:
        """Drop one entry, or everything when *key* is None."""
        if key is None:
            self._entries.clear()
        else:
            self._entries.pop(key, None)

    async def get_or_fetch(
        self,
        key: str,
        fetcher: Callable[[], Awaitable[Any]],
        ttl: Optional[float] = None,
    ) -> Any:
        """
        Return the cached value for *key*, calling *fetcher* on a miss.

        Concurrent misses for the same key share one upstream call. Fetch
        errors propagate and nothing is cached.
        """
        cached = self.get(key)
        if cached is not None:
            return cached

        lock = self._locks.setdefault(key, asyncio.Lock())
        try:
            async with lock:
                cached = self.get(key)
                if cached is not None:
                    return cached

                logger.debug("Cache miss for %s", key)
                value = await fetcher()
                self.set(key, value, ttl)
                return value
        finally:
            # Waiters keep their reference; the next miss starts a new lock
            if self._locks.get(key) is lock:
                del self._locks[key]

    def __len__(self) -> int:
        return len(self._entries)


# Process-wide cache used by the space data routes
api_cache = ApiCache()
