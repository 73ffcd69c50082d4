"""Task repository for MongoDB storage.

Stores study tasks and answers the day-window queries used by progress
aggregation.
"""

import logging
import re
from datetime import datetime
from typing import Any

from pymongo import ASCENDING
from pymongo.collection import Collection

from studytrack.tasks.models import Task, sort_tasks

from .client import retry_on_connection_failure, to_naive_utc

logger = logging.getLogger(__name__)

_DATETIME_FIELDS = ("due_date", "completed_at", "created_at", "updated_at")


def _to_document(task: Task) -> dict[str, Any]:
    doc = task.to_dict()
    for name in _DATETIME_FIELDS:
        doc[name] = to_naive_utc(doc[name])
    return doc


class MongoTaskRepository:
    """Repository for study task storage operations."""

    def __init__(self, collection: Collection[dict[str, Any]]) -> None:
        """Initialize repository with MongoDB collection.

        Args:
            collection: MongoDB collection for tasks.
        """
        self._collection = collection
        self._ensure_indexes()

    def _ensure_indexes(self) -> None:
        """Create indexes for efficient queries."""
        self._collection.create_index([("user_id", ASCENDING), ("due_date", ASCENDING)])
        self._collection.create_index([("user_id", ASCENDING), ("completed_at", ASCENDING)])
        self._collection.create_index([("user_id", ASCENDING), ("completed", ASCENDING)])

    @retry_on_connection_failure()
    def insert(self, task: Task) -> str:
        """Save a new task and return its ID.

        Args:
            task: The task to save.

        Returns:
            The task ID.
        """
        self._collection.insert_one(_to_document(task))
        return task.id

    @retry_on_connection_failure()
    def get(self, task_id: str, user_id: str) -> Task | None:
        """Retrieve a user's task by ID.

        Args:
            task_id: The task ID.
            user_id: Owner of the task.

        Returns:
            The task or None if not found.
        """
        doc = self._collection.find_one({"_id": task_id, "user_id": user_id})
        if doc is None:
            return None
        return Task.from_dict(doc)

    @retry_on_connection_failure()
    def update(self, task: Task) -> bool:
        """Replace an existing task.

        Args:
            task: The task to store (matched by id and user).

        Returns:
            True if the task exists, False otherwise.
        """
        result = self._collection.replace_one(
            {"_id": task.id, "user_id": task.user_id}, _to_document(task)
        )
        return result.matched_count > 0

    @retry_on_connection_failure()
    def delete(self, task_id: str, user_id: str) -> bool:
        """Delete a user's task.

        Returns:
            True if a task was deleted.
        """
        result = self._collection.delete_one({"_id": task_id, "user_id": user_id})
        return result.deleted_count > 0

    @retry_on_connection_failure()
    def find(
        self,
        user_id: str,
        completed: bool | None = None,
        subject: str | None = None,
        due_start: datetime | None = None,
        due_end: datetime | None = None,
    ) -> list[Task]:
        """Find a user's tasks.

        Args:
            user_id: Owner of the tasks.
            completed: Filter on completion status.
            subject: Case-insensitive substring of the subject.
            due_start: Due on or after this instant.
            due_end: Due before this instant.

        Returns:
            Tasks in listing order.
        """
        query: dict[str, Any] = {"user_id": user_id}
        if completed is not None:
            query["completed"] = completed
        if subject:
            query["subject"] = {"$regex": re.escape(subject), "$options": "i"}
        due: dict[str, Any] = {}
        if due_start is not None:
            due["$gte"] = to_naive_utc(due_start)
        if due_end is not None:
            due["$lt"] = to_naive_utc(due_end)
        if due:
            query["due_date"] = due

        return sort_tasks([Task.from_dict(doc) for doc in self._collection.find(query)])

    @retry_on_connection_failure()
    def list_due_in_range(self, user_id: str, start: datetime, end: datetime) -> list[Task]:
        """Get tasks due within [start, end).

        Args:
            user_id: Owner of the tasks.
            start: Window start (inclusive).
            end: Window end (exclusive).

        Returns:
            Tasks ordered by due date.
        """
        cursor = self._collection.find(
            {
                "user_id": user_id,
                "due_date": {"$gte": to_naive_utc(start), "$lt": to_naive_utc(end)},
            }
        ).sort("due_date", ASCENDING)
        return [Task.from_dict(doc) for doc in cursor]

    @retry_on_connection_failure()
    def list_completed_in_range(
        self, user_id: str, start: datetime, end: datetime
    ) -> list[Task]:
        """Get tasks completed within [start, end).

        Returns:
            Tasks ordered by completion time.
        """
        cursor = self._collection.find(
            {
                "user_id": user_id,
                "completed": True,
                "completed_at": {"$gte": to_naive_utc(start), "$lt": to_naive_utc(end)},
            }
        ).sort("completed_at", ASCENDING)
        return [Task.from_dict(doc) for doc in cursor]


__all__ = ["MongoTaskRepository"]
