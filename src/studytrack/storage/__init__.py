"""Storage module for StudyTrack.

Provides MongoDB persistence for tasks, study sessions and cached daily
progress, plus in-memory equivalents.
"""

from .client import MongoStorageClient, retry_on_connection_failure
from .memory import InMemorySessionRepository, InMemoryTaskRepository
from .progress import MongoRollupCache
from .sessions import MongoSessionRepository
from .tasks import MongoTaskRepository

__all__ = [
    "InMemorySessionRepository",
    "InMemoryTaskRepository",
    "MongoRollupCache",
    "MongoSessionRepository",
    "MongoStorageClient",
    "MongoTaskRepository",
    "retry_on_connection_failure",
]
