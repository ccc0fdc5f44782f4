"""In-memory TTL store with read-through and single-flight support.

Entries are never removed. Staleness is a pure function of the clock:
an entry is fresh while ``now - stored_at < ttl``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar, cast

from socialcache.duration import parse_duration
from socialcache.types import CacheEntry, Clock, Duration

logger = logging.getLogger(__name__)

T = TypeVar("T")


def wall_clock_ms() -> int:
    """Current wall-clock time in milliseconds."""
    return int(time.time() * 1000)


class TTLStore:
    """Async key -> (value, timestamp) store with a fixed freshness window."""

    def __init__(
        self,
        *,
        ttl: Duration = "30s",
        clock: Clock = wall_clock_ms,
        single_flight: bool = False,
    ) -> None:
        self._ttl = parse_duration(ttl)
        self._clock = clock
        self._single_flight = single_flight
        self._entries: dict[str, CacheEntry[Any]] = {}
        self._in_flight: dict[str, asyncio.Future[Any]] = {}
        self._lock = asyncio.Lock()

    @property
    def ttl(self) -> int:
        """Freshness window in milliseconds."""
        return self._ttl

    def _fresh(self, entry: CacheEntry[Any] | None) -> bool:
        return entry is not None and entry.age(self._clock()) < self._ttl

    async def entry(self, key: str) -> CacheEntry[Any] | None:
        """Get the raw entry for a key, fresh or not."""
        async with self._lock:
            return self._entries.get(key)

    async def is_fresh(self, key: str) -> bool:
        """Check whether the key was written less than one TTL ago."""
        async with self._lock:
            return self._fresh(self._entries.get(key))

    async def get(self, key: str) -> Any | None:
        """Get the last stored value, ignoring freshness."""
        async with self._lock:
            entry = self._entries.get(key)
            return entry.value if entry is not None else None

    async def put(self, key: str, value: Any) -> None:
        """Store a value, restarting its freshness window now."""
        async with self._lock:
            self._entries[key] = CacheEntry(value=value, stored_at=self._clock())

    async def keys(self) -> list[str]:
        async with self._lock:
            return list(self._entries)

    async def read_through(
        self,
        key: str,
        fetch: Callable[[], Awaitable[T]],
        *,
        check_freshness: bool = True,
    ) -> T:
        """Return the cached value, or fetch, store and return a new one.

        With ``check_freshness=False`` any stored value is a hit, however
        old. A failed fetch propagates and leaves the slot as it was; the
        previous value is not served in its place.
        """
        async with self._lock:
            entry = self._entries.get(key)
            if entry is not None and (not check_freshness or self._fresh(entry)):
                return cast(T, entry.value)

        if entry is None:
            logger.debug("Cache miss for %s", key)
        else:
            logger.debug("Cache entry for %s is stale, refreshing", key)

        async def refresh() -> T:
            value = await fetch()
            await self.put(key, value)
            return value

        if self._single_flight:
            return await self._coalesce(key, refresh)
        return await refresh()

    async def _coalesce(self, key: str, fetch: Callable[[], Awaitable[T]]) -> T:
        """Coalesce concurrent refreshes of the same key into one fetch."""
        while True:
            async with self._lock:
                existing = self._in_flight.get(key)
                if existing is None:
                    future: asyncio.Future[T] = asyncio.get_running_loop().create_future()
                    self._in_flight[key] = future

            if existing is None:
                break

            # Wait for the leader outside the lock
            try:
                return cast(T, await asyncio.shield(existing))
            except asyncio.CancelledError:
                # The leader was cancelled, not us: take over the fetch
                if existing.cancelled():
                    continue
                raise

        try:
            result = await fetch()
        except asyncio.CancelledError:
            self._release(key, future)
            future.cancel()
            raise
        except BaseException as exc:
            self._release(key, future)
            future.set_exception(exc)
            # Nobody may be waiting; mark the exception as retrieved
            future.exception()
            raise
        self._release(key, future)
        future.set_result(result)
        return result

    def _release(self, key: str, future: asyncio.Future[Any]) -> None:
        # Unregister before waiters wake, so a retry never sees a finished future
        if self._in_flight.get(key) is future:
            del self._in_flight[key]


__all__ = ["TTLStore", "wall_clock_ms"]
