"""Daily study metrics.

Turns today's study sessions and completed tasks into the learning
metrics card: study time, tasks completed and topics covered.
"""

import logging
import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, date, datetime, tzinfo
from typing import Any, Protocol

from studytrack.progress.days import day_bounds, local_day
from studytrack.progress.rollup import TaskSource

from .models import LearningSession, SessionStatus

logger = logging.getLogger(__name__)

_HOURS_PATTERN = re.compile(r"(\d+(?:\.\d+)?)\s*(?:hour|hr)", re.IGNORECASE)
_MINUTES_PATTERN = re.compile(r"(\d+)\s*(?:minute|min)", re.IGNORECASE)


def parse_duration(duration: str) -> float:
    """Parse a free-text duration into minutes.

    Understands "2 hours", "1.5 hours", "30 minutes", "1 hr 15 min".
    Unrecognised text counts as zero.

    Args:
        duration: Duration text

    Returns:
        Duration in minutes
    """
    total = 0.0
    hours = _HOURS_PATTERN.search(duration or "")
    if hours:
        total += float(hours.group(1)) * 60
    minutes = _MINUTES_PATTERN.search(duration or "")
    if minutes:
        total += int(minutes.group(1))
    return total


@dataclass
class StudyMetrics:
    """Study metrics for a single day."""

    date: date
    study_minutes: float
    tasks_completed: int
    topics_covered: list[str]

    @property
    def study_hours(self) -> float:
        """Study time in hours, rounded to one decimal."""
        return round(self.study_minutes / 60, 1)

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "studyHours": self.study_hours,
            "todayStudyTime": self.study_minutes,
            "problemsSolved": self.tasks_completed,
            "topicsCovered": self.topics_covered,
        }


class SessionSource(Protocol):
    """Protocol for fetching study sessions."""

    def list_for_date(self, user_id: str, target_date: date) -> list[LearningSession]:
        """Get all sessions on a calendar day."""
        ...


class StudyMetricsCalculator:
    """Computes a day's study metrics."""

    def __init__(
        self,
        sessions: SessionSource,
        tasks: TaskSource,
        timezone: tzinfo = UTC,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize calculator.

        Args:
            sessions: Source of study sessions
            tasks: Source of completed tasks
            timezone: Reference timezone for day boundaries
            clock: Returns the current time (defaults to UTC now)
        """
        self._sessions = sessions
        self._tasks = tasks
        self._tz = timezone
        self._clock = clock or (lambda: datetime.now(UTC))

    def compute(self, user_id: str, target_date: date | None = None) -> StudyMetrics:
        """Compute metrics for a day.

        Only completed sessions count toward study time; topics come from
        every session of the day, deduplicated in order of first appearance.

        Args:
            user_id: Owner of the data
            target_date: Day to summarize (defaults to today)

        Returns:
            StudyMetrics
        """
        target_date = target_date or local_day(self._clock(), self._tz)
        sessions = self._sessions.list_for_date(user_id, target_date)

        study_minutes = sum(
            parse_duration(s.duration) for s in sessions if s.status == SessionStatus.COMPLETED
        )

        topics: list[str] = []
        for session in sessions:
            if session.topic and session.topic not in topics:
                topics.append(session.topic)

        start, end = day_bounds(target_date, self._tz)
        completed = self._tasks.list_completed_in_range(user_id, start, end)

        return StudyMetrics(
            date=target_date,
            study_minutes=study_minutes,
            tasks_completed=len(completed),
            topics_covered=topics,
        )


__all__ = [
    "SessionSource",
    "StudyMetrics",
    "StudyMetricsCalculator",
    "parse_duration",
]
