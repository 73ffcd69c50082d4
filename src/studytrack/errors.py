"""Error types for StudyTrack.

Custom exceptions raised by task management and progress aggregation.
"""


class StudyTrackError(Exception):
    """Base exception for StudyTrack errors."""

    pass


class ValidationError(StudyTrackError, ValueError):
    """Raised when a request payload or argument is invalid."""

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize validation error.

        Args:
            message: Error message.
            field: Name of the offending field, if any.
        """
        super().__init__(message)
        self.field = field


class TaskNotFoundError(StudyTrackError, LookupError):
    """Raised when a task does not exist for the requesting user."""

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task not found: {task_id}")
        self.task_id = task_id


class ConfigError(StudyTrackError):
    """Raised when configuration is malformed."""

    pass


__all__ = [
    "ConfigError",
    "StudyTrackError",
    "TaskNotFoundError",
    "ValidationError",
]
