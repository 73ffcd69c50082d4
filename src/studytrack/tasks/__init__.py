"""Tasks module for StudyTrack.

Provides study task models, payload validation and the task service.
"""

from .models import Priority, Task, sort_tasks
from .service import RollupInvalidator, TaskRepository, TaskService, affected_days
from .validation import (
    CreateTaskRequest,
    UpdateTaskRequest,
    parse_create_request,
    parse_update_request,
)

__all__ = [
    "CreateTaskRequest",
    "Priority",
    "RollupInvalidator",
    "Task",
    "TaskRepository",
    "TaskService",
    "UpdateTaskRequest",
    "affected_days",
    "parse_create_request",
    "parse_update_request",
    "sort_tasks",
]
