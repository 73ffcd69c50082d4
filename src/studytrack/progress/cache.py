"""In-process rollup cache.

TTL-bounded read-through cache for daily rollups keyed by (user, date).
Task mutations invalidate affected days and bump their generation; a write
computed before an invalidation carries the old generation and is dropped.
"""

import logging
import threading
import time
from collections.abc import Callable, Iterable, Mapping
from datetime import date

from .rollup import DailyRollup

logger = logging.getLogger(__name__)


class InMemoryRollupCache:
    """Thread-safe in-memory rollup cache with expiry."""

    def __init__(
        self,
        ttl_seconds: float = 300.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize cache.

        Args:
            ttl_seconds: How long an entry stays fresh
            clock: Monotonic time source in seconds
        """
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[tuple[str, date], tuple[float, DailyRollup]] = {}
        self._generations: dict[tuple[str, date], int] = {}
        self._lock = threading.Lock()

    def get_many(self, user_id: str, days: list[date]) -> dict[date, DailyRollup]:
        now = self._clock()
        found: dict[date, DailyRollup] = {}
        with self._lock:
            for day in days:
                entry = self._entries.get((user_id, day))
                if entry is None:
                    continue
                stored_at, rollup = entry
                if now - stored_at >= self._ttl:
                    del self._entries[(user_id, day)]
                    continue
                found[day] = rollup
        return found

    def generations(self, user_id: str, days: list[date]) -> dict[date, int]:
        with self._lock:
            return {day: self._generations.get((user_id, day), 0) for day in days}

    def set_many(
        self,
        user_id: str,
        rollups: Iterable[DailyRollup],
        generations: Mapping[date, int] | None = None,
    ) -> None:
        now = self._clock()
        with self._lock:
            for rollup in rollups:
                key = (user_id, rollup.date)
                if generations is not None and self._generations.get(key, 0) != generations.get(
                    rollup.date, 0
                ):
                    logger.debug("Dropped stale rollup for %s on %s", user_id, rollup.date)
                    continue
                self._entries[key] = (now, rollup)

    def invalidate(self, user_id: str, days: Iterable[date]) -> None:
        with self._lock:
            for day in days:
                key = (user_id, day)
                self._generations[key] = self._generations.get(key, 0) + 1
                if self._entries.pop(key, None) is not None:
                    logger.debug("Invalidated cached rollup for %s on %s", user_id, day)

    def clear(self) -> None:
        """Drop every cached rollup."""
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


__all__ = ["InMemoryRollupCache"]
