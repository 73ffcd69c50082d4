"""Daily progress cache for MongoDB storage.

Persists computed daily rollups per (user, date). Entries are a cache of
values derived from task records and expire after a TTL.
"""

import logging
from collections.abc import Callable, Iterable, Mapping
from datetime import UTC, date, datetime, timedelta
from typing import Any

from pymongo import ASCENDING
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError

from studytrack.progress.rollup import DailyRollup

from .client import retry_on_connection_failure, to_naive_utc

logger = logging.getLogger(__name__)


def _cache_key(user_id: str, day: date) -> str:
    return f"{user_id}:{day.isoformat()}"


class MongoRollupCache:
    """Rollup cache backed by the daily_progress collection.

    Writes are last-writer-wins per (user, date). Each document carries an
    invalidation generation so a write computed before an invalidation is
    dropped.
    """

    def __init__(
        self,
        collection: Collection[dict[str, Any]],
        ttl_seconds: float = 300.0,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize cache with MongoDB collection.

        Args:
            collection: MongoDB collection for daily progress.
            ttl_seconds: How long a cached rollup stays fresh.
            clock: Returns the current time (defaults to UTC now).
        """
        self._collection = collection
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock or (lambda: datetime.now(UTC))
        self._ensure_indexes()

    def _ensure_indexes(self) -> None:
        """Create indexes for efficient queries."""
        self._collection.create_index([("user_id", ASCENDING), ("date", ASCENDING)])

    @retry_on_connection_failure()
    def get_many(self, user_id: str, days: list[date]) -> dict[date, DailyRollup]:
        """Return fresh cached rollups for the requested days.

        Args:
            user_id: Owner of the rollups.
            days: Days to look up.

        Returns:
            Mapping of cached day to rollup (missing or stale days omitted).
        """
        if not days:
            return {}
        cutoff = to_naive_utc(self._clock() - self._ttl)
        cursor = self._collection.find(
            {
                "user_id": user_id,
                "date": {"$in": [day.isoformat() for day in days]},
                "computed_at": {"$gt": cutoff},
            }
        )
        found: dict[date, DailyRollup] = {}
        for doc in cursor:
            day = date.fromisoformat(doc["date"])
            found[day] = DailyRollup(
                date=day,
                completed_count=doc.get("completed_count", 0),
                total_count=doc.get("total_count", 0),
            )
        return found

    @retry_on_connection_failure()
    def generations(self, user_id: str, days: list[date]) -> dict[date, int]:
        """Return the invalidation generation of each day.

        Days with no document report generation 0.
        """
        keys = {_cache_key(user_id, day): day for day in days}
        found = {day: 0 for day in days}
        if not keys:
            return found
        for doc in self._collection.find({"_id": {"$in": list(keys)}}, {"generation": 1}):
            found[keys[doc["_id"]]] = doc.get("generation", 0)
        return found

    @retry_on_connection_failure()
    def set_many(
        self,
        user_id: str,
        rollups: Iterable[DailyRollup],
        generations: Mapping[date, int] | None = None,
    ) -> None:
        """Upsert rollups.

        With generations, each write is conditional on the stored generation
        still matching. A mismatch makes the upsert collide on _id, and that
        day is skipped.

        Args:
            user_id: Owner of the rollups.
            rollups: Rollups to store.
            generations: Generations read before the rollups were computed.
        """
        now = to_naive_utc(self._clock())
        for rollup in rollups:
            key = _cache_key(user_id, rollup.date)
            fields = {
                "user_id": user_id,
                "date": rollup.date.isoformat(),
                "completed_count": rollup.completed_count,
                "total_count": rollup.total_count,
                "computed_at": now,
            }
            if generations is None:
                self._collection.update_one(
                    {"_id": key},
                    {"$set": fields, "$setOnInsert": {"generation": 0}},
                    upsert=True,
                )
                continue
            try:
                self._collection.update_one(
                    {"_id": key, "generation": generations.get(rollup.date, 0)},
                    {"$set": fields},
                    upsert=True,
                )
            except DuplicateKeyError:
                logger.debug("Dropped stale rollup for %s on %s", user_id, rollup.date)

    @retry_on_connection_failure()
    def invalidate(self, user_id: str, days: Iterable[date]) -> None:
        """Mark cached rollups stale and bump their generation."""
        days = list(days)
        for day in days:
            self._collection.update_one(
                {"_id": _cache_key(user_id, day)},
                {
                    "$inc": {"generation": 1},
                    "$unset": {"computed_at": ""},
                    "$setOnInsert": {"user_id": user_id, "date": day.isoformat()},
                },
                upsert=True,
            )
        if days:
            logger.debug("Invalidated %d cached rollups for %s", len(days), user_id)


__all__ = ["MongoRollupCache"]
