"""Time-bounded caching of externally fetched state.

The planner core never caches; callers that poll pool state wrap their
fetcher in a TtlCache so that reads within the TTL share one snapshot and
concurrent refreshes share one fetch.
"""

from __future__ import annotations

import asyncio
import functools
import time
from collections.abc import Awaitable, Callable, Hashable
from dataclasses import dataclass
from typing import Generic, TypeVar

import structlog

logger = structlog.get_logger()

T = TypeVar("T")


class SingleFlight(Generic[T]):
    """Deduplicate concurrent calls for the same key.

    The first caller for a key starts the work; callers arriving while it is
    still running await the same task and receive the same result or
    exception. The key is released as soon as the task finishes.
    """

    def __init__(self) -> None:
        self._in_flight: dict[Hashable, asyncio.Future[T]] = {}

    def in_flight(self, key: Hashable) -> bool:
        task = self._in_flight.get(key)
        return task is not None and not task.done()

    async def run(self, key: Hashable, fn: Callable[[], Awaitable[T]]) -> T:
        task = self._in_flight.get(key)
        if task is None or task.done():
            task = asyncio.ensure_future(fn())
            self._in_flight[key] = task
            task.add_done_callback(functools.partial(self._release, key))
        else:
            logger.debug("single_flight_joined", key=key)
        # A cancelled waiter must not cancel the shared fetch
        return await asyncio.shield(task)

    def _release(self, key: Hashable, task: asyncio.Future[T]) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]


@dataclass(frozen=True)
class CachedValue(Generic[T]):
    """A fetched value and the clock reading it was fetched at."""

    value: T
    fetched_at: float

    def age(self, now: float) -> float:
        return now - self.fetched_at


class TtlCache(Generic[T]):
    """Cache a single fetched value for a bounded time.

    Staleness is explicit: `is_stale()` reports it, `refresh()` always
    fetches, `refresh_if_stale()` and `get()` fetch only when needed.

    Args:
        fetch: Coroutine function producing a fresh value
        ttl_seconds: Maximum age before the value counts as stale
        clock: Monotonic time source, injectable for tests
        name: Label used in log events
    """

    def __init__(
        self,
        fetch: Callable[[], Awaitable[T]],
        ttl_seconds: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        name: str = "cache",
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError(f"ttl_seconds must be positive, got {ttl_seconds}")
        self._fetch = fetch
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._name = name
        self._entry: CachedValue[T] | None = None
        self._flight: SingleFlight[T] = SingleFlight()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl_seconds

    def peek(self) -> CachedValue[T] | None:
        """Current entry without fetching, stale or not."""
        return self._entry

    def is_stale(self) -> bool:
        if self._entry is None:
            return True
        return self._entry.age(self._clock()) >= self._ttl_seconds

    def invalidate(self) -> None:
        self._entry = None

    async def refresh(self) -> T:
        """Fetch a new value, sharing the fetch with concurrent refreshes."""
        return await self._flight.run(self._name, self._fetch_and_store)

    async def refresh_if_stale(self) -> T:
        entry = self._entry
        if entry is not None and not self.is_stale():
            return entry.value
        logger.debug("cache_stale", cache=self._name, has_value=entry is not None)
        return await self.refresh()

    async def get(self) -> T:
        return await self.refresh_if_stale()

    async def _fetch_and_store(self) -> T:
        value = await self._fetch()
        self._entry = CachedValue(value=value, fetched_at=self._clock())
        logger.debug("cache_refreshed", cache=self._name, ttl_seconds=self._ttl_seconds)
        return value


__all__ = ["SingleFlight", "CachedValue", "TtlCache"]
