"""Data models for study sessions.

Defines the LearningSession entity and SessionStatus enum.
"""

import uuid
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any


class SessionStatus(Enum):
    """Status of a study session."""

    PLANNED = "planned"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


@dataclass
class LearningSession:
    """A scheduled or finished block of study time.

    Attributes:
        topic: What was studied (e.g., "Binary Trees")
        subject: Subject label (e.g., "DSA")
        duration: Free-text duration (e.g., "1.5 hours", "30 minutes")
        session_date: Calendar day of the session
        status: Planned, in progress or completed
        time: Free-text start time (e.g., "9:00 AM")
        notes: Free-text notes
        user_id: Owner of the session
        id: Unique identifier
    """

    topic: str
    subject: str
    duration: str
    session_date: date
    status: SessionStatus = SessionStatus.PLANNED
    time: str = ""
    notes: str = ""
    user_id: str = "default"
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for MongoDB storage."""
        return {
            "_id": self.id,
            "user_id": self.user_id,
            "topic": self.topic,
            "subject": self.subject,
            "duration": self.duration,
            "date": self.session_date.isoformat(),
            "status": self.status.value,
            "time": self.time,
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LearningSession":
        """Create from MongoDB document."""
        return cls(
            id=str(data.get("_id") or uuid.uuid4()),
            user_id=data.get("user_id", "default"),
            topic=data.get("topic", ""),
            subject=data.get("subject", ""),
            duration=data.get("duration", ""),
            session_date=date.fromisoformat(data["date"]),
            status=SessionStatus(data.get("status", "planned")),
            time=data.get("time", ""),
            notes=data.get("notes", ""),
        )


__all__ = ["LearningSession", "SessionStatus"]
