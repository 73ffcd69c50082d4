"""Application wiring for StudyTrack.

Builds the task service and progress builders from configuration and a
storage backend.
"""

import logging
from collections.abc import Callable
from datetime import UTC, date, datetime
from typing import Any, Protocol

from .config import TrackerConfig
from .progress import (
    CalendarEntry,
    CalendarRangeBuilder,
    DailyRollupCalculator,
    Dashboard,
    DashboardService,
    InMemoryRollupCache,
    RollupCache,
    WeeklySeriesBuilder,
    WeeklyStatsEntry,
)
from .progress.days import resolve_timezone
from .sessions import LearningSession, SessionStatus, StudyMetrics, StudyMetricsCalculator
from .storage import InMemorySessionRepository, InMemoryTaskRepository, MongoStorageClient
from .tasks import TaskService
from .tasks.validation import parse_date

logger = logging.getLogger(__name__)


class TaskStore(Protocol):
    """Everything StudyTrack needs from task persistence."""

    def insert(self, task: Any) -> str: ...

    def get(self, task_id: str, user_id: str) -> Any: ...

    def update(self, task: Any) -> bool: ...

    def delete(self, task_id: str, user_id: str) -> bool: ...

    def find(self, user_id: str, **filters: Any) -> list[Any]: ...

    def list_due_in_range(self, user_id: str, start: datetime, end: datetime) -> list[Any]: ...

    def list_completed_in_range(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[Any]: ...


class SessionStore(Protocol):
    """Everything StudyTrack needs from session persistence."""

    def insert(self, session: LearningSession) -> str: ...

    def list_for_date(self, user_id: str, target_date: date) -> list[LearningSession]: ...

    def get_recent(self, user_id: str, limit: int = 10) -> list[LearningSession]: ...


class StudyTrack:
    """Facade over task management and progress aggregation."""

    def __init__(
        self,
        tasks: TaskStore,
        sessions: SessionStore,
        config: TrackerConfig | None = None,
        cache: RollupCache | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize the facade.

        Args:
            tasks: Task persistence
            sessions: Study session persistence
            config: Tracker settings (timezone, week start, calendar window)
            cache: Optional rollup cache, invalidated on every task mutation
            clock: Returns the current time (defaults to UTC now)
        """
        self._config = config or TrackerConfig()
        self._tasks = tasks
        self._sessions = sessions
        self._cache = cache
        self._clock = clock or (lambda: datetime.now(UTC))
        self._tz = resolve_timezone(self._config.timezone)

        self._calculator = DailyRollupCalculator(tasks, timezone=self._tz, cache=cache)
        self._weekly = WeeklySeriesBuilder(
            self._calculator, first_day=self._config.week_start, clock=self._clock
        )
        self._calendar = CalendarRangeBuilder(
            self._calculator, default_days=self._config.calendar_days, clock=self._clock
        )
        self._dashboard = DashboardService(tasks, self._calculator, self._weekly, clock=self._clock)
        self._metrics = StudyMetricsCalculator(sessions, tasks, timezone=self._tz, clock=self._clock)

    @classmethod
    def in_memory(
        cls,
        config: TrackerConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> "StudyTrack":
        """Create an instance backed by in-memory stores."""
        config = config or TrackerConfig()
        cache = InMemoryRollupCache(ttl_seconds=config.cache_ttl_seconds) if config.cache_enabled else None
        return cls(InMemoryTaskRepository(), InMemorySessionRepository(), config, cache, clock)

    @classmethod
    def from_storage(
        cls,
        storage: MongoStorageClient,
        config: TrackerConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> "StudyTrack":
        """Create an instance backed by a connected MongoDB client."""
        config = config or TrackerConfig()
        cache = storage.daily_progress if config.cache_enabled else None
        return cls(storage.tasks, storage.sessions, config, cache, clock)

    def task_service(self, user_id: str) -> TaskService:
        """Get a task service for one user."""
        return TaskService(
            self._tasks,
            invalidator=self._cache,
            user_id=user_id,
            timezone=self._tz,
            clock=self._clock,
        )

    def today(self) -> date:
        """Today's date in the reference timezone."""
        return self._clock().astimezone(self._tz).date()

    def dashboard(self, user_id: str) -> Dashboard:
        """Build today's dashboard."""
        return self._dashboard.build(user_id, self.today())

    def weekly_stats(self, user_id: str, today: date | None = None) -> list[WeeklyStatsEntry]:
        """Build the seven-day series for the current week."""
        return self._weekly.build(user_id, today or self.today())

    def calendar(
        self,
        user_id: str,
        end: str | date | None = None,
        days: int | None = None,
    ) -> list[CalendarEntry]:
        """Build calendar heatmap entries.

        Raises:
            ValidationError: On a malformed end date or non-positive days.
        """
        end_day = parse_date(end, "end") if end is not None else None
        return self._calendar.build(user_id, end=end_day, days=days)

    def add_session(
        self,
        user_id: str,
        topic: str,
        subject: str,
        duration: str,
        status: str = SessionStatus.PLANNED.value,
        session_date: str | date | None = None,
        notes: str = "",
    ) -> LearningSession:
        """Record a study session.

        Raises:
            ValueError: On an unknown status or malformed date.
        """
        session = LearningSession(
            topic=topic,
            subject=subject,
            duration=duration,
            session_date=parse_date(session_date) if session_date is not None else self.today(),
            status=SessionStatus(status),
            notes=notes,
            user_id=user_id,
        )
        self._sessions.insert(session)
        logger.info(f"Recorded {session.status.value} session '{topic}' for {user_id}")
        return session

    def recent_sessions(self, user_id: str, limit: int = 10) -> list[LearningSession]:
        """Get a user's most recent study sessions."""
        return self._sessions.get_recent(user_id, limit)

    def study_metrics(self, user_id: str, day: str | date | None = None) -> StudyMetrics:
        """Compute study metrics for a day (defaults to today)."""
        target = parse_date(day) if day is not None else self.today()
        return self._metrics.compute(user_id, target)


__all__ = ["SessionStore", "StudyTrack", "TaskStore"]
