"""Weekly completion series.

Builds the seven-day series shown on the dashboard for the week
containing today.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from typing import Any

from .days import local_day, week_start, weekday_name
from .rollup import DailyRollupCalculator, completion_percentage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WeeklyStatsEntry:
    """One day of the weekly series."""

    date: date
    day: str  # Short weekday name, e.g. "Mon"
    completed_count: int
    total_count: int

    @property
    def percentage(self) -> int:
        return completion_percentage(self.completed_count, self.total_count)

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "day": self.day,
            "completedCount": self.completed_count,
            "totalCount": self.total_count,
            "percentage": self.percentage,
        }


class WeeklySeriesBuilder:
    """Builds a zero-filled seven-day rollup series.

    The week starts on the configured weekday (Sunday by default).
    """

    def __init__(
        self,
        calculator: DailyRollupCalculator,
        first_day: str = "sunday",
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize builder.

        Args:
            calculator: Daily rollup calculator (one batched read per week)
            first_day: 'sunday' or 'monday'
            clock: Returns the current time (defaults to UTC now)
        """
        self._calculator = calculator
        self._first_day = first_day
        self._clock = clock or (lambda: datetime.now(UTC))
        # Fail fast on a bad week start
        week_start(date.today(), first_day)

    def week_of(self, today: date) -> list[date]:
        """Return the seven dates of the week containing today."""
        start = week_start(today, self._first_day)
        return [start + timedelta(days=i) for i in range(7)]

    def build(self, user_id: str, today: date | None = None) -> list[WeeklyStatsEntry]:
        """Build the weekly series.

        Args:
            user_id: Owner of the tasks
            today: Reference date (defaults to today in the reference timezone)

        Returns:
            Exactly seven entries, week start first
        """
        today = today or local_day(self._clock(), self._calculator.timezone)
        days = self.week_of(today)
        rollups = self._calculator.compute_range(user_id, days[0], days[-1])

        entries = []
        for day in days:
            rollup = rollups[day]
            entries.append(
                WeeklyStatsEntry(
                    date=day,
                    day=weekday_name(day),
                    completed_count=rollup.completed_count,
                    total_count=rollup.total_count,
                )
            )
        return entries


__all__ = ["WeeklySeriesBuilder", "WeeklyStatsEntry"]
