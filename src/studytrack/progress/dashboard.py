"""Dashboard composition.

Combines today's rollup, today's completed tasks, the weekly series and
the summary sentence into the dashboard payload.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, date, datetime
from typing import Any

from studytrack.tasks.models import Task

from .days import local_day
from .rollup import DailyRollupCalculator, TaskSource
from .summary import build_summary
from .weekly import WeeklySeriesBuilder, WeeklyStatsEntry

logger = logging.getLogger(__name__)


@dataclass
class Dashboard:
    """Everything the dashboard shows for one user and day."""

    date: date
    completed_today: list[Task]
    completed_count: int
    total_today: int
    week_stats: list[WeeklyStatsEntry]
    summary: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to the JSON payload consumed by the dashboard."""
        return {
            "completedToday": [
                {
                    "id": task.id,
                    "title": task.title,
                    "subject": task.subject,
                    "completedAt": task.completed_at.isoformat() if task.completed_at else None,
                }
                for task in self.completed_today
            ],
            "completedCount": self.completed_count,
            "totalToday": self.total_today,
            "weekStats": [entry.to_dict() for entry in self.week_stats],
            "summary": self.summary,
        }


class DashboardService:
    """Builds dashboard data for a user.

    completedCount and totalToday come from today's due-date rollup, the
    same definition used by the weekly series and the calendar. The
    completedToday list and the summary use completion timestamps, so a
    task due yesterday but finished today still appears there.
    """

    def __init__(
        self,
        source: TaskSource,
        calculator: DailyRollupCalculator,
        weekly: WeeklySeriesBuilder,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize service.

        Args:
            source: Task store for today's completed tasks
            calculator: Daily rollup calculator
            weekly: Weekly series builder
            clock: Returns the current time (defaults to UTC now)
        """
        self._source = source
        self._calculator = calculator
        self._weekly = weekly
        self._clock = clock or (lambda: datetime.now(UTC))

    def build(self, user_id: str, today: date | None = None) -> Dashboard:
        """Build the dashboard for a user.

        Args:
            user_id: Owner of the tasks
            today: Reference day (defaults to today in the reference timezone)

        Returns:
            Dashboard
        """
        today = today or local_day(self._clock(), self._calculator.timezone)

        start, end = self._calculator.day_window(today)
        completed_today = sorted(
            self._source.list_completed_in_range(user_id, start, end),
            key=lambda t: t.completed_at or start,
        )
        week_stats = self._weekly.build(user_id, today)
        # Today's counts come from the same read as the weekly series
        today_stats = next(entry for entry in week_stats if entry.date == today)

        logger.debug(
            "Dashboard for %s on %s: %d/%d due, %d completed",
            user_id,
            today,
            today_stats.completed_count,
            today_stats.total_count,
            len(completed_today),
        )

        return Dashboard(
            date=today,
            completed_today=completed_today,
            completed_count=today_stats.completed_count,
            total_today=today_stats.total_count,
            week_stats=week_stats,
            summary=build_summary(completed_today),
        )


__all__ = ["Dashboard", "DashboardService"]
