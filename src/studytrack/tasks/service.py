"""Task management service.

Provides create/update/delete for study tasks and keeps cached daily
rollups in step with every mutation.
"""

import copy
import logging
from collections.abc import Callable, Iterable
from datetime import UTC, date, datetime, tzinfo
from typing import Any, Protocol

from studytrack.errors import TaskNotFoundError
from studytrack.progress.days import day_bounds, local_day

from .models import Task
from .validation import parse_create_request, parse_date, parse_update_request

logger = logging.getLogger(__name__)


class TaskRepository(Protocol):
    """Protocol for task persistence."""

    def insert(self, task: Task) -> str:
        """Insert task and return its ID."""
        ...

    def get(self, task_id: str, user_id: str) -> Task | None:
        """Get a user's task by ID."""
        ...

    def update(self, task: Task) -> bool:
        """Replace a stored task. Returns False if it does not exist."""
        ...

    def delete(self, task_id: str, user_id: str) -> bool:
        """Delete a user's task. Returns False if it does not exist."""
        ...

    def find(
        self,
        user_id: str,
        completed: bool | None = None,
        subject: str | None = None,
        due_start: datetime | None = None,
        due_end: datetime | None = None,
    ) -> list[Task]:
        """Find a user's tasks matching the filters, in listing order."""
        ...


class RollupInvalidator(Protocol):
    """Protocol for dropping derived rollups when tasks change."""

    def invalidate(self, user_id: str, days: Iterable[date]) -> None:
        """Invalidate rollups for the given days."""
        ...


def affected_days(before: Task | None, after: Task | None, tz: tzinfo) -> set[date]:
    """Days whose rollups change when a task goes from before to after.

    Includes the old and new due days and the old and new completion days.
    Returns an empty set when neither the due day nor the completion status
    changed.
    """
    def due_day(task: Task | None) -> date | None:
        if task is None or task.due_date is None:
            return None
        return local_day(task.due_date, tz)

    def done_day(task: Task | None) -> date | None:
        if task is None or not task.completed or task.completed_at is None:
            return None
        return local_day(task.completed_at, tz)

    status_before = (due_day(before), before is not None and before.completed)
    status_after = (due_day(after), after is not None and after.completed)
    if before is not None and after is not None and status_before == status_after:
        return set()

    days = {due_day(before), due_day(after), done_day(before), done_day(after)}
    return {day for day in days if day is not None}


class TaskService:
    """Manages a user's study tasks.

    Every mutation that moves a task's due day or flips its completion
    status invalidates the rollups of the affected days.
    """

    def __init__(
        self,
        repository: TaskRepository,
        invalidator: RollupInvalidator | None = None,
        user_id: str = "default",
        timezone: tzinfo = UTC,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize service.

        Args:
            repository: Task persistence
            invalidator: Optional rollup cache to invalidate on mutation
            user_id: User whose tasks are managed
            timezone: Reference timezone for day boundaries
            clock: Returns the current time (defaults to UTC now)
        """
        self._repository = repository
        self._invalidator = invalidator
        self._user_id = user_id
        self._tz = timezone
        self._clock = clock or (lambda: datetime.now(UTC))

    @property
    def user_id(self) -> str:
        return self._user_id

    def create(self, payload: dict[str, Any]) -> Task:
        """Create a task from a request payload.

        Args:
            payload: Dict with title and optional subject, description,
                     dueDate (ISO-8601) and priority

        Returns:
            The stored task

        Raises:
            ValidationError: If the payload is invalid
        """
        request = parse_create_request(payload)
        task = Task(
            title=request.title,
            user_id=self._user_id,
            subject=request.subject,
            description=request.description,
            due_date=request.due_date,
            priority=request.priority,
            created_at=self._clock(),
        )
        task.id = self._repository.insert(task)
        logger.info(f"Created task '{task.title}' ({task.id}) for {self._user_id}")

        self._invalidate(affected_days(None, task, self._tz))
        return task

    def update(self, task_id: str, payload: dict[str, Any]) -> Task:
        """Apply a partial update to a task.

        Setting completed to true stamps the completion time; setting it to
        false clears it. Other edits leave the completion time untouched.

        Raises:
            ValidationError: If the payload is invalid
            TaskNotFoundError: If the task does not exist for this user
        """
        request = parse_update_request(payload)
        before = self.get(task_id)
        task = copy.copy(before)
        now = self._clock()

        if request.has("title"):
            task.title = request.title or task.title
        if request.has("subject"):
            task.subject = request.subject
        if request.has("description"):
            task.description = request.description
        if request.has("due_date"):
            task.due_date = request.due_date
        if request.has("priority") and request.priority is not None:
            task.priority = request.priority
        if request.has("completed"):
            if request.completed:
                task.complete(now)
            else:
                task.reopen()
        task.updated_at = now

        if not self._repository.update(task):
            raise TaskNotFoundError(task_id)
        logger.info(f"Updated task {task_id} ({', '.join(sorted(request.provided)) or 'no fields'})")

        self._invalidate(affected_days(before, task, self._tz))
        return task

    def delete(self, task_id: str) -> Task:
        """Delete a task.

        Returns:
            The deleted task

        Raises:
            TaskNotFoundError: If the task does not exist for this user
        """
        task = self.get(task_id)
        if not self._repository.delete(task_id, self._user_id):
            raise TaskNotFoundError(task_id)
        logger.info(f"Deleted task {task_id}")

        self._invalidate(affected_days(task, None, self._tz))
        return task

    def get(self, task_id: str) -> Task:
        """Get one of the user's tasks.

        Raises:
            TaskNotFoundError: If the task does not exist for this user
        """
        task = self._repository.get(task_id, self._user_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    def list_tasks(
        self,
        completed: bool | None = None,
        subject: str | None = None,
        due_date: str | date | None = None,
    ) -> list[Task]:
        """List the user's tasks.

        Args:
            completed: Only completed (True) or pending (False) tasks
            subject: Case-insensitive substring of the subject
            due_date: Only tasks due on this day (YYYY-MM-DD)

        Returns:
            Pending first, then by due date, priority and recency

        Raises:
            ValidationError: If due_date is malformed
        """
        due_start = due_end = None
        if due_date is not None:
            due_start, due_end = day_bounds(parse_date(due_date, "dueDate"), self._tz)
        return self._repository.find(
            self._user_id,
            completed=completed,
            subject=subject or None,
            due_start=due_start,
            due_end=due_end,
        )

    def mark_complete(self, task_id: str) -> Task:
        """Mark a task as completed."""
        return self.update(task_id, {"completed": True})

    def mark_incomplete(self, task_id: str) -> Task:
        """Mark a task as pending again."""
        return self.update(task_id, {"completed": False})

    def _invalidate(self, days: set[date]) -> None:
        if self._invalidator is None or not days:
            return
        self._invalidator.invalidate(self._user_id, sorted(days))
        logger.debug(f"Invalidated rollups for {self._user_id}: {', '.join(d.isoformat() for d in sorted(days))}")


__all__ = [
    "RollupInvalidator",
    "TaskRepository",
    "TaskService",
    "affected_days",
]
