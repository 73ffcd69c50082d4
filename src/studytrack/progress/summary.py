"""Natural-language summary of today's completed tasks."""

from collections.abc import Mapping, Sequence
from typing import Any

NO_TASKS_MESSAGE = "No tasks completed today. Ready to start your learning journey!"
FALLBACK_SUBJECTS = "various topics"


def _subject_of(task: Any) -> str | None:
    if isinstance(task, Mapping):
        return task.get("subject")
    return getattr(task, "subject", None)


def distinct_subjects(tasks: Sequence[Any]) -> list[str]:
    """Non-empty subjects in order of first occurrence, without duplicates."""
    seen: list[str] = []
    for task in tasks:
        subject = _subject_of(task)
        if subject and subject not in seen:
            seen.append(subject)
    return seen


def build_summary(completed_tasks: Sequence[Any]) -> str:
    """Summarize today's completed tasks in one sentence.

    Args:
        completed_tasks: Tasks (or task dicts) completed today, in display order

    Returns:
        Summary sentence for the dashboard
    """
    if not completed_tasks:
        return NO_TASKS_MESSAGE

    count = len(completed_tasks)
    subjects = distinct_subjects(completed_tasks)
    subject_text = ", ".join(subjects) if subjects else FALLBACK_SUBJECTS

    return (
        f"Great progress today! Completed {count} task{'s' if count > 1 else ''} "
        f"in {subject_text}. Keep up the momentum!"
    )


__all__ = ["FALLBACK_SUBJECTS", "NO_TASKS_MESSAGE", "build_summary", "distinct_subjects"]
