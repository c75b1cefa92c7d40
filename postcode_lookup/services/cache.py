"""In-process caches for postcode geography, places results and suggestions.

TTL per cache (from config):
  - Postcode details / suggestions: 5 minutes, bounded at 1000 entries
  - Places results: 10 minutes

Expiry is lazy on read and eager on the periodic sweep run by CacheSweeper.
Concurrent misses on the same key may both fetch upstream; the last write wins.
"""

import asyncio
import logging
import math
import time
from collections.abc import Callable
from typing import Any

from cachetools import TTLCache

from postcode_lookup.config import Settings

logger = logging.getLogger(__name__)


class _OldestFirstTTLCache(TTLCache):
    """TTLCache that evicts by storage age instead of recency of use.

    Iteration order of a TTLCache follows expiry time, and every item shares
    one TTL, so the first key yielded is the one stored longest ago.
    """

    def popitem(self):
        with self.timer as now:
            self.expire(now)
            try:
                key = next(iter(self))
            except StopIteration:
                raise KeyError(f"{type(self).__name__} is empty") from None
            return key, self.pop(key)


class TimedCache:
    """Named key/value cache with a fixed TTL and an optional size bound."""

    def __init__(
        self,
        name: str,
        ttl: float,
        maxsize: int | None = None,
        timer: Callable[[], float] = time.monotonic,
    ):
        self.name = name
        self.ttl = ttl
        self.maxsize = maxsize
        self._store = _OldestFirstTTLCache(
            maxsize=maxsize if maxsize is not None else math.inf,
            ttl=ttl,
            timer=timer,
        )

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None when absent or expired."""
        value = self._store.get(key)
        if value is not None:
            logger.debug("Cache HIT | cache=%s | key=%s", self.name, key)
        return value

    def put(self, key: str, value: Any) -> None:
        self._store[key] = value

    def sweep(self) -> int:
        """Drop every expired entry. Returns the number removed."""
        return len(self._store.expire())

    def __len__(self) -> int:
        return len(self._store)


class AddressCaches:
    """The two caches used by the aggregator."""

    def __init__(self, settings: Settings, timer: Callable[[], float] = time.monotonic):
        self.postcodes = TimedCache(
            "postcode",
            ttl=settings.cache_ttl_postcode,
            maxsize=settings.cache_max_postcodes,
            timer=timer,
        )
        self.places = TimedCache("places", ttl=settings.cache_ttl_places, timer=timer)

    def sweep(self) -> int:
        removed = self.postcodes.sweep() + self.places.sweep()
        if removed:
            logger.info(
                "Cache sweep | removed=%d | postcode=%d | places=%d",
                removed, len(self.postcodes), len(self.places),
            )
        return removed

    def sizes(self) -> dict[str, int]:
        return {"postcodeCache": len(self.postcodes), "placesCache": len(self.places)}


class CacheSweeper:
    """Runs AddressCaches.sweep() on a fixed interval in a background task.

    Also prunes ended windows from the given rate limiters.
    """

    def __init__(self, caches: AddressCaches, interval: float = 60.0, limiters: tuple = ()):
        self.caches = caches
        self.limiters = limiters
        self.interval = interval
        self._task: asyncio.Task | None = None

    def start(self) -> None:
        if self._task is None:
            self._task = asyncio.create_task(self._run(), name="cache-sweeper")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            try:
                self.caches.sweep()
                for limiter in self.limiters:
                    limiter.prune()
            except Exception as e:
                logger.error("Cache sweep failed: %s", str(e)[:200])
