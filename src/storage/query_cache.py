# src/storage/query_cache.py

"""In-memory read cache keyed by logical query identity."""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, TypeVar

from src.config.settings import Settings

logger = logging.getLogger("price_tracker.cache")

T = TypeVar("T")


@dataclass
class CacheEntry:
    """The last settled result for one query key."""

    key: str
    data: Any
    fetched_at: float
    stale: bool = False
    generation: int = 0


def _copy(data: Any) -> Any:
    """Shallow-copy list results so callers can't mutate the cache."""
    return list(data) if isinstance(data, list) else data


class QueryCache:
    """Cache of read results with manual invalidation.

    Rules:
    1. A fresh entry (not invalidated, younger than the TTL) is
       returned without calling the loader.
    2. Concurrent reads of a key that misses share one in-flight
       load; the loader runs once.
    3. ``invalidate(key)`` marks the entry stale and detaches any
       in-flight load, so the next read issues a new request.  A
       detached load still settles for its own awaiters but its
       result is stored stale, and never over a newer entry.
    4. Failed loads are never cached.
    """

    def __init__(self, ttl: float | None = None) -> None:
        self._entries: dict[str, CacheEntry] = {}
        self._in_flight: dict[str, asyncio.Task[Any]] = {}
        self._generations: dict[str, int] = {}
        self._ttl: float = (
            ttl if ttl is not None else Settings.QUERY_CACHE_TTL
        )

    async def fetch(
        self, key: str, loader: Callable[[], Awaitable[T]],
    ) -> T:
        """Return the cached result for *key*, loading it on a miss."""
        entry = self._fresh_entry(key)
        if entry is not None:
            logger.debug("Cache hit for '%s'", key)
            result: T = _copy(entry.data)
            return result

        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._load(key, loader))
            self._in_flight[key] = task
        else:
            logger.debug("Coalescing read of '%s' onto in-flight load", key)

        data: T = await asyncio.shield(task)
        return _copy(data)

    async def _load(
        self, key: str, loader: Callable[[], Awaitable[T]],
    ) -> T:
        generation = self._generations.get(key, 0)
        this_task = asyncio.current_task()
        try:
            data = await loader()
        finally:
            if self._in_flight.get(key) is this_task:
                del self._in_flight[key]

        stale = self._generations.get(key, 0) != generation
        existing = self._entries.get(key)
        if stale and existing is not None and existing.generation > generation:
            logger.debug("Dropping late result for '%s'", key)
            return data
        self._entries[key] = CacheEntry(
            key=key,
            data=_copy(data),
            fetched_at=time.time(),
            stale=stale,
            generation=generation,
        )
        logger.info(
            "Cached '%s'%s",
            key,
            " (invalidated while loading)" if stale else "",
        )
        return data

    def _fresh_entry(self, key: str) -> CacheEntry | None:
        entry = self._entries.get(key)
        if entry is None or entry.stale:
            return None
        if time.time() - entry.fetched_at >= self._ttl:
            logger.debug("Cache entry '%s' expired", key)
            return None
        return entry

    def peek(self, key: str) -> Any | None:
        """Return fresh cached data for *key* without loading."""
        entry = self._fresh_entry(key)
        return _copy(entry.data) if entry is not None else None

    def is_stale(self, key: str) -> bool:
        """True when the next read of *key* will hit the backend."""
        return self._fresh_entry(key) is None

    def invalidate(self, key: str) -> bool:
        """Mark *key* stale so the next read refetches.

        Returns True if a cached entry or in-flight load existed.
        """
        self._generations[key] = self._generations.get(key, 0) + 1
        entry = self._entries.get(key)
        had_entry = entry is not None
        if entry is not None:
            entry.stale = True
        detached = self._in_flight.pop(key, None) is not None
        logger.info(
            "Invalidated '%s' (entry=%s, in_flight=%s)",
            key,
            had_entry,
            detached,
        )
        return had_entry or detached

    def clear(self) -> int:
        """Purge all cached entries.

        Returns the number of entries that were removed.
        """
        count = len(self._entries)
        self._entries.clear()
        for key in list(self._in_flight):
            self._generations[key] = self._generations.get(key, 0) + 1
        self._in_flight.clear()
        logger.info("Cache purged (%d entries removed)", count)
        return count
