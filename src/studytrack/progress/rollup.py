"""Daily completion rollups.

Counts tasks due on a calendar day and how many of them are completed.
Rollups are always derived from task records; any stored copy is a cache.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import UTC, date, datetime, tzinfo
from typing import Any, Protocol

from studytrack.tasks.models import Task

from .days import day_bounds, iter_days, local_day, range_bounds

logger = logging.getLogger(__name__)


def completion_percentage(completed: int, total: int) -> int:
    """Whole-number completion percentage, rounded half up.

    Returns 0 when there is nothing to complete.
    """
    if total <= 0:
        return 0
    # Integer arithmetic keeps x.5 rounding exact
    return (200 * completed + total) // (2 * total)


@dataclass(frozen=True)
class DailyRollup:
    """Completion counts for a single calendar day."""

    date: date
    completed_count: int = 0
    total_count: int = 0

    @property
    def percentage(self) -> int:
        return completion_percentage(self.completed_count, self.total_count)

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "completedCount": self.completed_count,
            "totalCount": self.total_count,
            "percentage": self.percentage,
        }


class TaskSource(Protocol):
    """Protocol for reading task records in a time window."""

    def list_due_in_range(self, user_id: str, start: datetime, end: datetime) -> list[Task]:
        """Tasks whose due date falls in [start, end)."""
        ...

    def list_completed_in_range(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[Task]:
        """Completed tasks whose completion time falls in [start, end)."""
        ...


class RollupCache(Protocol):
    """Protocol for a per-(user, date) rollup cache."""

    def get_many(self, user_id: str, days: list[date]) -> dict[date, DailyRollup]:
        """Return fresh cached rollups for whichever of days are cached."""
        ...

    def generations(self, user_id: str, days: list[date]) -> dict[date, int]:
        """Return the invalidation generation of each day (0 if never invalidated)."""
        ...

    def set_many(
        self,
        user_id: str,
        rollups: Iterable[DailyRollup],
        generations: Mapping[date, int] | None = None,
    ) -> None:
        """Store rollups, replacing existing entries.

        When generations is given, a day whose generation has moved on since
        it was read is skipped.
        """
        ...

    def invalidate(self, user_id: str, days: Iterable[date]) -> None:
        """Drop cached rollups for the given days and bump their generation."""
        ...


def aggregate_rollups(tasks: Iterable[Task], days: list[date], tz: tzinfo = UTC) -> dict[date, DailyRollup]:
    """Group tasks by due day and count completions.

    Args:
        tasks: Task snapshot (tasks without a due date are ignored)
        days: Calendar days to report, in output order
        tz: Reference timezone defining day boundaries

    Returns:
        Mapping of every requested day to its rollup (zeros when no tasks)
    """
    completed: dict[date, int] = {day: 0 for day in days}
    total: dict[date, int] = {day: 0 for day in days}

    for task in tasks:
        if task.due_date is None:
            continue
        day = local_day(task.due_date, tz)
        if day not in total:
            continue
        total[day] += 1
        if task.completed:
            completed[day] += 1

    return {
        day: DailyRollup(date=day, completed_count=completed[day], total_count=total[day])
        for day in days
    }


class DailyRollupCalculator:
    """Computes daily rollups from a task source.

    Reads go through an optional cache. A range is served from the cache
    only when every day in it is cached; otherwise the whole range is
    recomputed from one task query so the result is a single snapshot.
    """

    def __init__(
        self,
        source: TaskSource,
        timezone: tzinfo = UTC,
        cache: RollupCache | None = None,
    ) -> None:
        """Initialize calculator.

        Args:
            source: Task store to read from
            timezone: Reference timezone for day boundaries
            cache: Optional rollup cache
        """
        self._source = source
        self._tz = timezone
        self._cache = cache

    @property
    def timezone(self) -> tzinfo:
        return self._tz

    def compute(self, user_id: str, day: date) -> DailyRollup:
        """Compute the rollup for one day.

        Args:
            user_id: Owner of the tasks
            day: Calendar day in the reference timezone

        Returns:
            DailyRollup (all zeros when no tasks are due)
        """
        return self.compute_range(user_id, day, day)[day]

    def compute_range(self, user_id: str, first_day: date, last_day: date) -> dict[date, DailyRollup]:
        """Compute rollups for every day from first_day to last_day inclusive.

        Returns:
            Ordered mapping of day to rollup, oldest first
        """
        days = iter_days(first_day, last_day)
        if not days:
            return {}

        generations = None
        if self._cache is not None:
            cached = self._cache.get_many(user_id, days)
            if len(cached) == len(days):
                logger.debug("Rollup cache hit for %s (%d days)", user_id, len(days))
                return {day: cached[day] for day in days}
            # Generations must be read before the task snapshot.
            generations = self._cache.generations(user_id, days)

        start, end = range_bounds(first_day, last_day, self._tz)
        tasks = self._source.list_due_in_range(user_id, start, end)
        rollups = aggregate_rollups(tasks, days, self._tz)

        if self._cache is not None:
            self._cache.set_many(user_id, rollups.values(), generations)

        return rollups

    def day_window(self, day: date) -> tuple[datetime, datetime]:
        """Return the [start, end) UTC window of a day in the reference timezone."""
        return day_bounds(day, self._tz)


__all__ = [
    "DailyRollup",
    "DailyRollupCalculator",
    "RollupCache",
    "TaskSource",
    "aggregate_rollups",
    "completion_percentage",
]
