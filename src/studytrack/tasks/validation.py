"""Request payload validation for task operations.

Parses raw dict payloads (as decoded from JSON) into typed requests.
"""

from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from typing import Any

from studytrack.errors import ValidationError

from .models import Priority

_CREATE_FIELDS = {"title", "subject", "description", "dueDate", "priority"}
_UPDATE_FIELDS = _CREATE_FIELDS | {"completed"}


@dataclass
class CreateTaskRequest:
    """Validated payload for creating a task."""

    title: str
    subject: str | None = None
    description: str | None = None
    due_date: datetime | None = None
    priority: Priority = Priority.MEDIUM


@dataclass
class UpdateTaskRequest:
    """Validated payload for a partial task update.

    Only fields named in `provided` were present in the payload.
    """

    title: str | None = None
    subject: str | None = None
    description: str | None = None
    due_date: datetime | None = None
    priority: Priority | None = None
    completed: bool | None = None
    provided: set[str] = field(default_factory=set)

    def has(self, name: str) -> bool:
        """Check whether a field was supplied."""
        return name in self.provided


def parse_datetime(value: Any, field_name: str = "dueDate") -> datetime:
    """Parse an ISO-8601 datetime string.

    Naive values are interpreted as UTC.

    Raises:
        ValidationError: If the value is not an ISO-8601 datetime.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError as e:
            raise ValidationError(f"Invalid datetime for {field_name}: '{value}'", field=field_name) from e
    else:
        raise ValidationError(f"{field_name} must be an ISO-8601 datetime string", field=field_name)

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed.astimezone(UTC)


def parse_date(value: Any, field_name: str = "date") -> date:
    """Parse a YYYY-MM-DD calendar date.

    Raises:
        ValidationError: If the value is not a valid date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a YYYY-MM-DD string", field=field_name)
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError as e:
        raise ValidationError(f"Invalid date for {field_name}: '{value}'. Use YYYY-MM-DD.", field=field_name) from e


def _check_unknown(payload: dict[str, Any], allowed: set[str]) -> None:
    unknown = set(payload) - allowed
    if unknown:
        raise ValidationError(f"Unknown fields: {', '.join(sorted(unknown))}")


def _title(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("title must be a non-empty string", field="title")
    return value.strip()


def _optional_text(value: Any, field_name: str) -> str | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field_name} must be a string", field=field_name)
    return value.strip() or None


def _priority(value: Any) -> Priority:
    try:
        return Priority(value)
    except ValueError as e:
        allowed = ", ".join(p.value for p in Priority)
        raise ValidationError(f"priority must be one of {allowed}", field="priority") from e


def parse_create_request(payload: dict[str, Any]) -> CreateTaskRequest:
    """Validate a create-task payload.

    Args:
        payload: Decoded JSON body with camelCase keys.

    Returns:
        CreateTaskRequest

    Raises:
        ValidationError: On missing title, bad types or unknown fields.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Payload must be an object")
    _check_unknown(payload, _CREATE_FIELDS)

    due = payload.get("dueDate")
    return CreateTaskRequest(
        title=_title(payload.get("title")),
        subject=_optional_text(payload.get("subject"), "subject"),
        description=_optional_text(payload.get("description"), "description"),
        due_date=parse_datetime(due) if due is not None else None,
        priority=_priority(payload.get("priority", Priority.MEDIUM.value)),
    )


def parse_update_request(payload: dict[str, Any]) -> UpdateTaskRequest:
    """Validate a partial update payload.

    Explicit nulls clear subject, description and dueDate.

    Raises:
        ValidationError: On bad types or unknown fields.
    """
    if not isinstance(payload, dict):
        raise ValidationError("Payload must be an object")
    _check_unknown(payload, _UPDATE_FIELDS)

    request = UpdateTaskRequest(provided=set())
    if "title" in payload:
        request.title = _title(payload["title"])
        request.provided.add("title")
    if "subject" in payload:
        request.subject = _optional_text(payload["subject"], "subject")
        request.provided.add("subject")
    if "description" in payload:
        request.description = _optional_text(payload["description"], "description")
        request.provided.add("description")
    if "dueDate" in payload:
        due = payload["dueDate"]
        request.due_date = parse_datetime(due) if due is not None else None
        request.provided.add("due_date")
    if "priority" in payload:
        request.priority = _priority(payload["priority"])
        request.provided.add("priority")
    if "completed" in payload:
        if not isinstance(payload["completed"], bool):
            raise ValidationError("completed must be a boolean", field="completed")
        request.completed = payload["completed"]
        request.provided.add("completed")
    return request


__all__ = [
    "CreateTaskRequest",
    "UpdateTaskRequest",
    "parse_create_request",
    "parse_date",
    "parse_datetime",
    "parse_update_request",
]
