"""Data models for study task tracking.

Defines the Task entity and Priority enum.
"""

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class Priority(Enum):
    """Priority of a study task."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def rank(self) -> int:
        """Numeric rank used for ordering (higher is more urgent)."""
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    Priority.LOW: 0,
    Priority.MEDIUM: 1,
    Priority.HIGH: 2,
}


def _utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


@dataclass
class Task:
    """A study task owned by a single user.

    Attributes:
        title: What to study or do (non-empty)
        user_id: Owner of the task
        subject: Optional subject label (e.g., "DSA")
        description: Optional free-text details
        due_date: When the task is due (None = untracked in rollups)
        priority: Low, medium or high
        completed: Whether the task is done
        completed_at: When the task was completed (None while pending)
        id: Unique identifier assigned at creation
        created_at: Creation time
        updated_at: Last modification time
    """

    title: str
    user_id: str = "default"
    subject: str | None = None
    description: str | None = None
    due_date: datetime | None = None
    priority: Priority = Priority.MEDIUM
    completed: bool = False
    completed_at: datetime | None = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime | None = None

    def complete(self, when: datetime | None = None) -> None:
        """Mark the task as completed.

        Completing an already completed task keeps the original timestamp.

        Args:
            when: Completion time (defaults to now)
        """
        if self.completed:
            return
        self.completed = True
        self.completed_at = when or datetime.now(UTC)

    def reopen(self) -> None:
        """Mark the task as pending again and clear the completion time."""
        self.completed = False
        self.completed_at = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for MongoDB storage."""
        return {
            "_id": self.id,
            "user_id": self.user_id,
            "title": self.title,
            "subject": self.subject,
            "description": self.description,
            "due_date": self.due_date,
            "priority": self.priority.value,
            "completed": self.completed,
            "completed_at": self.completed_at,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def to_payload(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dict for API consumers."""
        return {
            "id": self.id,
            "userId": self.user_id,
            "title": self.title,
            "subject": self.subject,
            "description": self.description,
            "dueDate": self.due_date.isoformat() if self.due_date else None,
            "priority": self.priority.value,
            "completed": self.completed,
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Task":
        """Create from MongoDB document."""
        completed = bool(data.get("completed", False))
        completed_at = _utc(data.get("completed_at"))
        return cls(
            id=str(data.get("_id") or data.get("id") or uuid.uuid4()),
            user_id=data.get("user_id", "default"),
            title=data.get("title", ""),
            subject=data.get("subject"),
            description=data.get("description"),
            due_date=_utc(data.get("due_date")),
            priority=Priority(data.get("priority", "medium")),
            completed=completed,
            completed_at=completed_at if completed else None,
            created_at=_utc(data.get("created_at")) or datetime.now(UTC),
            updated_at=_utc(data.get("updated_at")),
        )


def _sort_key(task: Task) -> tuple[bool, bool, float, int, float]:
    due = task.due_date.timestamp() if task.due_date else 0.0
    return (
        task.completed,
        task.due_date is None,
        due,
        -task.priority.rank,
        -task.created_at.timestamp(),
    )


def sort_tasks(tasks: list[Task]) -> list[Task]:
    """Order tasks for listing.

    Pending before completed, then by due date (undated last), then higher
    priority first, then newest first.
    """
    return sorted(tasks, key=_sort_key)


__all__ = ["Priority", "Task", "sort_tasks"]
