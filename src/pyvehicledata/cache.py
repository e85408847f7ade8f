"""In-process response cache keyed by an operator-chosen version tag."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Generic, TypeVar

_logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class CacheEntry(Generic[T]):
    """A cached value and when it stops being served."""

    key: str
    value: T
    ttl: float
    stored_at: float

    def is_fresh(self, now: float) -> bool:
        return now - self.stored_at < self.ttl


class ResponseCache(Generic[T]):
    """Serve a computed value until its TTL elapses.

    Invalidation is key based only: callers embed a version tag in the key
    and bump it to force a recompute. Entries under other keys are pruned
    once they expire.

    Concurrent misses on the same key wait for one computation.
    """

    def __init__(self, *, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock
        self._entries: dict[str, CacheEntry[T]] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: str) -> T | None:
        """Return the fresh value under *key*, or ``None``."""
        entry = self._entries.get(key)
        if entry is None or not entry.is_fresh(self._clock()):
            return None
        return entry.value

    def put(self, key: str, value: T, ttl: float) -> CacheEntry[T]:
        now = self._clock()
        self._prune(now)
        entry = CacheEntry(key=key, value=value, ttl=ttl, stored_at=now)
        self._entries[key] = entry
        return entry

    def _prune(self, now: float) -> None:
        for key in [k for k, e in self._entries.items() if not e.is_fresh(now)]:
            del self._entries[key]
            lock = self._locks.get(key)
            if lock is not None and not lock.locked():
                del self._locks[key]

    async def get_or_compute(self, key: str, ttl: float, compute: Callable[[], Awaitable[T]]) -> T:
        """Return the cached value for *key*, computing and storing it on a miss."""
        value = self.get(key)
        if value is not None:
            _logger.debug("Cache hit for %s", key)
            return value

        lock = self._locks.setdefault(key, asyncio.Lock())
        async with lock:
            value = self.get(key)
            if value is not None:
                _logger.debug("Cache hit for %s after waiting", key)
                return value
            _logger.info("Cache miss for %s, recomputing", key)
            try:
                value = await compute()
            except BaseException:
                if self._locks.get(key) is lock:
                    del self._locks[key]
                raise
            self.put(key, value, ttl)
            return value
