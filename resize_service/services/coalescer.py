"""Request coalescing on top of the bounded cache."""

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable

from resize_service.services.cache import BoundedCache, CacheEntry

logger = logging.getLogger(__name__)

ComputeFn = Callable[[], Awaitable[CacheEntry]]


class CacheStatus(str, Enum):
    HIT = "HIT"
    MISS = "MISS"
    COALESCED = "COALESCED"


class RequestCoalescer:
    """
    Ensures at most one in-flight computation per cache key.

    The first caller for a cold key starts a task running ``compute_fn``;
    callers arriving while it runs await that same task. Waiters are shielded,
    so a cancelled caller does not cancel the shared computation.

    The task registry is separate from the cache lock, so computations for
    different keys never wait on each other.
    """

    def __init__(self, cache: BoundedCache):
        self.cache = cache
        self._in_flight: dict[str, asyncio.Task] = {}

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    async def get_or_compute(self, key: str, compute_fn: ComputeFn) -> CacheEntry:
        """Return the live entry for ``key``, computing it at most once."""
        entry, _ = await self.resolve(key, compute_fn)
        return entry

    async def resolve(self, key: str, compute_fn: ComputeFn) -> tuple[CacheEntry, CacheStatus]:
        """Like :meth:`get_or_compute`, also reporting how the entry was obtained."""
        entry = self.cache.get(key)
        if entry is not None:
            return entry, CacheStatus.HIT

        task = self._in_flight.get(key)
        if task is not None:
            logger.info(f"Joining in-flight computation for {key[:8]}...")
            return await asyncio.shield(task), CacheStatus.COALESCED

        task = asyncio.ensure_future(self._compute(key, compute_fn))
        task.add_done_callback(_consume_exception)
        self._in_flight[key] = task
        return await asyncio.shield(task), CacheStatus.MISS

    async def _compute(self, key: str, compute_fn: ComputeFn) -> CacheEntry:
        try:
            entry = await compute_fn()
            self.cache.put(key, entry)
            return entry
        except Exception as e:
            logger.warning(f"Computation for {key[:8]}... failed: {e}")
            raise
        finally:
            self._in_flight.pop(key, None)


def _consume_exception(task: asyncio.Task) -> None:
    # Marks the error retrieved when no waiter is left to re-raise it.
    if not task.cancelled():
        task.exception()
