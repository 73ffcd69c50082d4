"""In-memory storage for StudyTrack.

Dict-backed repositories with the same interface as the MongoDB ones, for
tests and for running without a database.
"""

import copy
import threading
from datetime import date, datetime

from studytrack.progress.days import ensure_aware
from studytrack.sessions.models import LearningSession
from studytrack.tasks.models import Task, sort_tasks


def _in_window(value: datetime | None, start: datetime | None, end: datetime | None) -> bool:
    if value is None:
        return False
    value = ensure_aware(value)
    if start is not None and value < ensure_aware(start):
        return False
    if end is not None and value >= ensure_aware(end):
        return False
    return True


class InMemoryTaskRepository:
    """Task repository backed by a dict.

    Stored tasks are copied on the way in and out so callers never share
    state with the store.
    """

    def __init__(self) -> None:
        self._tasks: dict[str, Task] = {}
        self._lock = threading.Lock()

    def insert(self, task: Task) -> str:
        with self._lock:
            self._tasks[task.id] = copy.copy(task)
        return task.id

    def get(self, task_id: str, user_id: str) -> Task | None:
        with self._lock:
            task = self._tasks.get(task_id)
        if task is None or task.user_id != user_id:
            return None
        return copy.copy(task)

    def update(self, task: Task) -> bool:
        with self._lock:
            existing = self._tasks.get(task.id)
            if existing is None or existing.user_id != task.user_id:
                return False
            self._tasks[task.id] = copy.copy(task)
        return True

    def delete(self, task_id: str, user_id: str) -> bool:
        with self._lock:
            existing = self._tasks.get(task_id)
            if existing is None or existing.user_id != user_id:
                return False
            del self._tasks[task_id]
        return True

    def _snapshot(self, user_id: str) -> list[Task]:
        with self._lock:
            return [copy.copy(t) for t in self._tasks.values() if t.user_id == user_id]

    def find(
        self,
        user_id: str,
        completed: bool | None = None,
        subject: str | None = None,
        due_start: datetime | None = None,
        due_end: datetime | None = None,
    ) -> list[Task]:
        tasks = self._snapshot(user_id)
        if completed is not None:
            tasks = [t for t in tasks if t.completed == completed]
        if subject:
            needle = subject.lower()
            tasks = [t for t in tasks if t.subject and needle in t.subject.lower()]
        if due_start is not None or due_end is not None:
            tasks = [t for t in tasks if _in_window(t.due_date, due_start, due_end)]
        return sort_tasks(tasks)

    def list_due_in_range(self, user_id: str, start: datetime, end: datetime) -> list[Task]:
        tasks = [t for t in self._snapshot(user_id) if _in_window(t.due_date, start, end)]
        return sorted(tasks, key=lambda t: ensure_aware(t.due_date))

    def list_completed_in_range(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[Task]:
        tasks = [
            t
            for t in self._snapshot(user_id)
            if t.completed and _in_window(t.completed_at, start, end)
        ]
        return sorted(tasks, key=lambda t: ensure_aware(t.completed_at))


class InMemorySessionRepository:
    """Study session repository backed by a list."""

    def __init__(self) -> None:
        self._sessions: list[LearningSession] = []
        self._lock = threading.Lock()

    def insert(self, session: LearningSession) -> str:
        with self._lock:
            self._sessions.append(copy.copy(session))
        return session.id

    def list_for_date(self, user_id: str, target_date: date) -> list[LearningSession]:
        with self._lock:
            return [
                copy.copy(s)
                for s in self._sessions
                if s.user_id == user_id and s.session_date == target_date
            ]

    def get_recent(self, user_id: str, limit: int = 10) -> list[LearningSession]:
        with self._lock:
            mine = [copy.copy(s) for s in self._sessions if s.user_id == user_id]
        mine.sort(key=lambda s: s.session_date, reverse=True)
        return mine[:limit]


__all__ = ["InMemorySessionRepository", "InMemoryTaskRepository"]
