"""Unit tests for TaskService.

Tests the completion state machine, validation and rollup invalidation.
"""

from datetime import UTC, date, datetime, timedelta
from unittest.mock import MagicMock
from zoneinfo import ZoneInfo

import pytest

from studytrack.errors import TaskNotFoundError, ValidationError
from studytrack.progress.cache import InMemoryRollupCache
from studytrack.progress.rollup import DailyRollupCalculator
from studytrack.storage.memory import InMemoryTaskRepository
from studytrack.tasks.models import Priority, Task
from studytrack.tasks.service import TaskService, affected_days

NOW = datetime(2024, 1, 15, 12, 0, tzinfo=UTC)


class FakeClock:
    """Settable clock for tests."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class CompletingTaskSource:
    """Task source that runs a mutation right after its first snapshot."""

    def __init__(self, repository: InMemoryTaskRepository, mutate) -> None:
        self._repository = repository
        self._mutate = mutate

    def list_due_in_range(self, user_id: str, start: datetime, end: datetime) -> list[Task]:
        tasks = self._repository.list_due_in_range(user_id, start, end)
        if self._mutate is not None:
            mutate, self._mutate = self._mutate, None
            mutate()
        return tasks

    def list_completed_in_range(self, user_id: str, start: datetime, end: datetime) -> list[Task]:
        return self._repository.list_completed_in_range(user_id, start, end)


class TestTaskServiceCreate:
    """Tests for task creation."""

    @pytest.fixture
    def repository(self) -> InMemoryTaskRepository:
        """Create an in-memory task store."""
        return InMemoryTaskRepository()

    @pytest.fixture
    def invalidator(self) -> MagicMock:
        """Create a mock rollup cache."""
        return MagicMock()

    @pytest.fixture
    def service(self, repository: InMemoryTaskRepository, invalidator: MagicMock) -> TaskService:
        """Create service with fixed clock."""
        return TaskService(repository, invalidator, user_id="test-user", clock=lambda: NOW)

    def test_create_minimal(self, service: TaskService) -> None:
        """Test a task needs only a title."""
        task = service.create({"title": "Read chapter 3"})

        assert task.title == "Read chapter 3"
        assert task.user_id == "test-user"
        assert task.completed is False
        assert task.completed_at is None
        assert task.priority == Priority.MEDIUM
        assert task.created_at == NOW

    def test_create_is_persisted(self, service: TaskService) -> None:
        """Test a created task can be read back."""
        task = service.create({"title": "Graphs", "subject": "DSA"})

        assert service.get(task.id).subject == "DSA"

    def test_create_with_due_date_invalidates_day(
        self, service: TaskService, invalidator: MagicMock
    ) -> None:
        """Test creating a dated task invalidates its due day."""
        service.create({"title": "Graphs", "dueDate": "2024-01-16T09:00:00Z"})

        invalidator.invalidate.assert_called_once_with("test-user", [date(2024, 1, 16)])

    def test_create_without_due_date_skips_invalidation(
        self, service: TaskService, invalidator: MagicMock
    ) -> None:
        """Test undated tasks affect no rollup."""
        service.create({"title": "Someday"})

        invalidator.invalidate.assert_not_called()

    def test_create_rejects_empty_title(self, service: TaskService) -> None:
        """Test a blank title is rejected."""
        with pytest.raises(ValidationError) as exc_info:
            service.create({"title": "   "})
        assert exc_info.value.field == "title"

    def test_create_rejects_bad_priority(self, service: TaskService) -> None:
        """Test an unknown priority is rejected."""
        with pytest.raises(ValidationError):
            service.create({"title": "x", "priority": "urgent"})


class TestTaskServiceCompletion:
    """Tests for the pending/completed state machine."""

    @pytest.fixture
    def clock(self) -> FakeClock:
        """Create a settable clock."""
        return FakeClock(NOW)

    @pytest.fixture
    def invalidator(self) -> MagicMock:
        """Create a mock rollup cache."""
        return MagicMock()

    @pytest.fixture
    def service(self, invalidator: MagicMock, clock: FakeClock) -> TaskService:
        """Create service with settable clock."""
        return TaskService(InMemoryTaskRepository(), invalidator, user_id="test-user", clock=clock)

    @pytest.fixture
    def task(self, service: TaskService, invalidator: MagicMock) -> Task:
        """Create a pending task due tomorrow."""
        task = service.create({"title": "Trees", "subject": "DSA", "dueDate": "2024-01-16T09:00:00Z"})
        invalidator.reset_mock()
        return task

    def test_complete_stamps_time(self, service: TaskService, task: Task) -> None:
        """Test completing a task records the completion time."""
        updated = service.mark_complete(task.id)

        assert updated.completed is True
        assert updated.completed_at == NOW
        assert service.get(task.id).completed_at == NOW

    def test_reopen_clears_time(self, service: TaskService, task: Task) -> None:
        """Test reopening a task clears the completion time."""
        service.mark_complete(task.id)

        reopened = service.mark_incomplete(task.id)

        assert reopened.completed is False
        assert reopened.completed_at is None

    def test_complete_twice_keeps_first_time(
        self, service: TaskService, task: Task, clock: FakeClock
    ) -> None:
        """Test completing an already completed task keeps the original stamp."""
        service.mark_complete(task.id)
        clock.now = NOW + timedelta(hours=2)

        again = service.update(task.id, {"completed": True})

        assert again.completed_at == NOW

    def test_edit_preserves_completion_time(
        self, service: TaskService, task: Task, clock: FakeClock
    ) -> None:
        """Test editing other fields does not touch completed_at."""
        service.mark_complete(task.id)
        clock.now = NOW + timedelta(days=1)

        edited = service.update(task.id, {"title": "Balanced trees"})

        assert edited.title == "Balanced trees"
        assert edited.completed is True
        assert edited.completed_at == NOW
        assert edited.updated_at == clock.now

    def test_complete_invalidates_due_and_completion_days(
        self, service: TaskService, task: Task, invalidator: MagicMock
    ) -> None:
        """Test completion invalidates the due day and the completion day."""
        service.mark_complete(task.id)

        invalidator.invalidate.assert_called_once_with(
            "test-user", [date(2024, 1, 15), date(2024, 1, 16)]
        )

    def test_title_edit_skips_invalidation(
        self, service: TaskService, task: Task, invalidator: MagicMock
    ) -> None:
        """Test edits that move nothing leave the cache alone."""
        service.update(task.id, {"title": "Renamed", "priority": "high"})

        invalidator.invalidate.assert_not_called()

    def test_due_change_invalidates_old_and_new_day(
        self, service: TaskService, task: Task, invalidator: MagicMock
    ) -> None:
        """Test moving a task invalidates both days."""
        service.update(task.id, {"dueDate": "2024-01-20T09:00:00Z"})

        invalidator.invalidate.assert_called_once_with(
            "test-user", [date(2024, 1, 16), date(2024, 1, 20)]
        )

    def test_clear_due_date(self, service: TaskService, task: Task) -> None:
        """Test an explicit null removes the due date."""
        updated = service.update(task.id, {"dueDate": None})

        assert updated.due_date is None

    def test_delete_invalidates_due_day(
        self, service: TaskService, task: Task, invalidator: MagicMock
    ) -> None:
        """Test deleting a dated task invalidates its day."""
        deleted = service.delete(task.id)

        assert deleted.id == task.id
        invalidator.invalidate.assert_called_once_with("test-user", [date(2024, 1, 16)])
        with pytest.raises(TaskNotFoundError):
            service.get(task.id)


class TestTaskServiceNotFound:
    """Tests for missing and foreign tasks."""

    @pytest.fixture
    def repository(self) -> InMemoryTaskRepository:
        """Create an in-memory task store."""
        return InMemoryTaskRepository()

    def test_update_missing(self, repository: InMemoryTaskRepository) -> None:
        """Test updating an unknown ID raises TaskNotFoundError."""
        service = TaskService(repository, user_id="test-user")

        with pytest.raises(TaskNotFoundError) as exc_info:
            service.update("missing", {"completed": True})
        assert exc_info.value.task_id == "missing"
        assert str(exc_info.value) == "Task not found: missing"

    def test_delete_missing(self, repository: InMemoryTaskRepository) -> None:
        """Test deleting an unknown ID raises TaskNotFoundError."""
        with pytest.raises(TaskNotFoundError):
            TaskService(repository, user_id="test-user").delete("missing")

    def test_other_users_task_invisible(self, repository: InMemoryTaskRepository) -> None:
        """Test a user cannot touch another user's task."""
        task = TaskService(repository, user_id="alice").create({"title": "Mine"})
        mallory = TaskService(repository, user_id="mallory")

        with pytest.raises(TaskNotFoundError):
            mallory.mark_complete(task.id)
        with pytest.raises(TaskNotFoundError):
            mallory.delete(task.id)

    def test_invalid_payload_before_lookup(self, repository: InMemoryTaskRepository) -> None:
        """Test malformed updates fail validation."""
        task = TaskService(repository, user_id="test-user").create({"title": "x"})

        with pytest.raises(ValidationError):
            TaskService(repository, user_id="test-user").update(task.id, {"completed": "yes"})


class TestTaskServiceList:
    """Tests for listing and filtering tasks."""

    @pytest.fixture
    def service(self) -> TaskService:
        """Create service with a few tasks."""
        service = TaskService(InMemoryTaskRepository(), user_id="test-user", clock=lambda: NOW)
        service.create({"title": "Graphs", "subject": "DSA", "dueDate": "2024-01-16T09:00:00Z"})
        service.create({"title": "Paging", "subject": "Operating Systems", "dueDate": "2024-01-15T09:00:00Z"})
        done = service.create({"title": "Heaps", "subject": "DSA", "dueDate": "2024-01-14T09:00:00Z"})
        service.mark_complete(done.id)
        service.create({"title": "Someday", "priority": "high"})
        return service

    def test_list_all_ordering(self, service: TaskService) -> None:
        """Test pending first by due date, undated last, completed at the end."""
        titles = [t.title for t in service.list_tasks()]

        assert titles == ["Paging", "Graphs", "Someday", "Heaps"]

    def test_filter_completed(self, service: TaskService) -> None:
        """Test the completed filter."""
        assert [t.title for t in service.list_tasks(completed=True)] == ["Heaps"]
        assert len(service.list_tasks(completed=False)) == 3

    def test_filter_subject_case_insensitive(self, service: TaskService) -> None:
        """Test subject filtering is a case-insensitive substring match."""
        assert [t.title for t in service.list_tasks(subject="operating")] == ["Paging"]
        assert len(service.list_tasks(subject="dsa")) == 2

    def test_filter_due_date(self, service: TaskService) -> None:
        """Test filtering by due day."""
        assert [t.title for t in service.list_tasks(due_date="2024-01-16")] == ["Graphs"]

    def test_filter_bad_due_date(self, service: TaskService) -> None:
        """Test a malformed due filter is rejected."""
        with pytest.raises(ValidationError):
            service.list_tasks(due_date="16/01/2024")


class TestRollupConsistency:
    """Tests that cached rollups follow task mutations."""

    def test_cached_rollup_refreshes_after_completion(self) -> None:
        """Test completing a task is visible through a warm cache."""
        repository = InMemoryTaskRepository()
        cache = InMemoryRollupCache(ttl_seconds=3600)
        calculator = DailyRollupCalculator(repository, cache=cache)
        service = TaskService(repository, cache, user_id="test-user", clock=lambda: NOW)
        task = service.create({"title": "Tries", "dueDate": "2024-01-15T18:00:00Z"})

        assert calculator.compute("test-user", date(2024, 1, 15)).completed_count == 0

        service.mark_complete(task.id)

        rollup = calculator.compute("test-user", date(2024, 1, 15))
        assert (rollup.completed_count, rollup.total_count) == (1, 1)

    def test_completion_during_recompute_is_not_overwritten(self) -> None:
        """Test a rollup computed from a pre-completion snapshot is not cached."""
        repository = InMemoryTaskRepository()
        cache = InMemoryRollupCache(ttl_seconds=3600)
        service = TaskService(repository, cache, user_id="test-user", clock=lambda: NOW)
        task = service.create({"title": "Tries", "dueDate": "2024-01-15T18:00:00Z"})
        source = CompletingTaskSource(repository, lambda: service.mark_complete(task.id))
        calculator = DailyRollupCalculator(source, cache=cache)

        stale = calculator.compute("test-user", date(2024, 1, 15))
        assert stale.completed_count == 0

        rollup = calculator.compute("test-user", date(2024, 1, 15))
        assert (rollup.completed_count, rollup.total_count) == (1, 1)


class TestAffectedDays:
    """Tests for affected_days."""

    def _task(self, due: datetime | None, completed_at: datetime | None = None) -> Task:
        task = Task(title="t", due_date=due)
        if completed_at is not None:
            task.complete(completed_at)
        return task

    def test_create(self) -> None:
        """Test a new dated task affects its due day."""
        after = self._task(datetime(2024, 1, 15, 9, 0, tzinfo=UTC))

        assert affected_days(None, after, UTC) == {date(2024, 1, 15)}

    def test_unchanged_returns_empty(self) -> None:
        """Test an edit that moves nothing affects no day."""
        before = self._task(datetime(2024, 1, 15, 9, 0, tzinfo=UTC))
        after = self._task(datetime(2024, 1, 15, 17, 0, tzinfo=UTC))

        assert affected_days(before, after, UTC) == set()

    def test_reopen_includes_old_completion_day(self) -> None:
        """Test reopening affects the day it had been completed on."""
        before = self._task(
            datetime(2024, 1, 15, 9, 0, tzinfo=UTC), completed_at=datetime(2024, 1, 17, 9, 0, tzinfo=UTC)
        )
        after = self._task(datetime(2024, 1, 15, 9, 0, tzinfo=UTC))

        assert affected_days(before, after, UTC) == {date(2024, 1, 15), date(2024, 1, 17)}

    def test_uses_timezone(self) -> None:
        """Test days are computed in the reference timezone."""
        after = self._task(datetime(2024, 1, 15, 20, 0, tzinfo=UTC))

        assert affected_days(None, after, ZoneInfo("Asia/Tokyo")) == {date(2024, 1, 16)}
