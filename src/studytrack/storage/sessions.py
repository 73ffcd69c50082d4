"""Study session repository for MongoDB storage."""

import logging
from datetime import date
from typing import Any

from pymongo import ASCENDING, DESCENDING
from pymongo.collection import Collection

from studytrack.sessions.models import LearningSession

from .client import retry_on_connection_failure

logger = logging.getLogger(__name__)


class MongoSessionRepository:
    """Repository for study session storage operations."""

    def __init__(self, collection: Collection[dict[str, Any]]) -> None:
        """Initialize repository with MongoDB collection.

        Args:
            collection: MongoDB collection for sessions.
        """
        self._collection = collection
        self._ensure_indexes()

    def _ensure_indexes(self) -> None:
        """Create indexes for efficient queries."""
        self._collection.create_index([("user_id", ASCENDING), ("date", DESCENDING)])

    @retry_on_connection_failure()
    def insert(self, session: LearningSession) -> str:
        """Save a session and return its ID."""
        self._collection.insert_one(session.to_dict())
        return session.id

    @retry_on_connection_failure()
    def list_for_date(self, user_id: str, target_date: date) -> list[LearningSession]:
        """Get all sessions on a calendar day.

        Args:
            user_id: Owner of the sessions.
            target_date: The day to query.

        Returns:
            Sessions in insertion order.
        """
        cursor = self._collection.find({"user_id": user_id, "date": target_date.isoformat()})
        return [LearningSession.from_dict(doc) for doc in cursor]

    @retry_on_connection_failure()
    def get_recent(self, user_id: str, limit: int = 10) -> list[LearningSession]:
        """Get the most recent sessions for a user.

        Returns:
            Sessions, most recent day first.
        """
        cursor = (
            self._collection.find({"user_id": user_id})
            .sort("date", DESCENDING)
            .limit(limit)
        )
        return [LearningSession.from_dict(doc) for doc in cursor]


__all__ = ["MongoSessionRepository"]
