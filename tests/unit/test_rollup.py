"""Unit tests for daily rollup calculation.

Tests percentage rounding, day grouping and cache read-through.
"""

from datetime import UTC, date, datetime, timedelta
from unittest.mock import MagicMock
from zoneinfo import ZoneInfo

import pytest

from studytrack.progress.rollup import (
    DailyRollup,
    DailyRollupCalculator,
    aggregate_rollups,
    completion_percentage,
)
from studytrack.storage.memory import InMemoryTaskRepository
from studytrack.tasks.models import Task

DAY = date(2024, 1, 15)


def make_task(
    due: datetime | None,
    completed: bool = False,
    subject: str | None = None,
    user_id: str = "test-user",
) -> Task:
    """Create a task due at the given time."""
    task = Task(title="study", user_id=user_id, subject=subject, due_date=due)
    if completed:
        task.complete(due or datetime(2024, 1, 15, 12, 0, tzinfo=UTC))
    return task


class TestCompletionPercentage:
    """Tests for completion_percentage."""

    def test_zero_total_is_zero(self) -> None:
        """Test nothing due gives 0%."""
        assert completion_percentage(0, 0) == 0

    def test_rounds_to_nearest(self) -> None:
        """Test typical ratios round to whole percentages."""
        assert completion_percentage(2, 3) == 67
        assert completion_percentage(1, 3) == 33
        assert completion_percentage(3, 3) == 100

    def test_rounds_half_up(self) -> None:
        """Test exact halves round up."""
        assert completion_percentage(1, 8) == 13  # 12.5%
        assert completion_percentage(5, 8) == 63  # 62.5%
        assert completion_percentage(1, 200) == 1  # 0.5%

    def test_bounded(self) -> None:
        """Test percentages stay within 0..100."""
        for total in range(1, 25):
            for completed in range(total + 1):
                assert 0 <= completion_percentage(completed, total) <= 100


class TestAggregateRollups:
    """Tests for grouping tasks into day rollups."""

    def test_missing_days_are_zero(self) -> None:
        """Test days without tasks default to zero."""
        rollups = aggregate_rollups([], [DAY])

        assert rollups[DAY] == DailyRollup(date=DAY, completed_count=0, total_count=0)
        assert rollups[DAY].percentage == 0

    def test_counts_due_and_completed(self) -> None:
        """Test completed tasks are counted among those due."""
        due = datetime(2024, 1, 15, 9, 0, tzinfo=UTC)
        tasks = [make_task(due, completed=True), make_task(due, completed=True), make_task(due)]

        rollup = aggregate_rollups(tasks, [DAY])[DAY]

        assert rollup.completed_count == 2
        assert rollup.total_count == 3
        assert rollup.percentage == 67

    def test_ignores_undated_tasks(self) -> None:
        """Test tasks without a due date never count."""
        tasks = [make_task(None), make_task(None, completed=True)]

        rollup = aggregate_rollups(tasks, [DAY])[DAY]

        assert rollup.total_count == 0
        assert rollup.completed_count == 0

    def test_ignores_days_outside_request(self) -> None:
        """Test tasks due on other days are ignored."""
        tasks = [make_task(datetime(2024, 1, 16, 9, 0, tzinfo=UTC))]

        rollups = aggregate_rollups(tasks, [DAY])

        assert list(rollups) == [DAY]
        assert rollups[DAY].total_count == 0

    def test_uses_reference_timezone(self) -> None:
        """Test day boundaries follow the reference timezone."""
        # 20:00 UTC on the 15th is 01:30 on the 16th in Kolkata
        task = make_task(datetime(2024, 1, 15, 20, 0, tzinfo=UTC))
        days = [DAY, DAY + timedelta(days=1)]

        rollups = aggregate_rollups([task], days, ZoneInfo("Asia/Kolkata"))

        assert rollups[DAY].total_count == 0
        assert rollups[DAY + timedelta(days=1)].total_count == 1

    def test_completed_never_exceeds_total(self) -> None:
        """Test completed count is bounded by total count."""
        due = datetime(2024, 1, 15, 9, 0, tzinfo=UTC)
        tasks = [make_task(due, completed=i % 2 == 0) for i in range(7)]

        rollup = aggregate_rollups(tasks, [DAY])[DAY]

        assert rollup.completed_count <= rollup.total_count

    def test_to_dict(self) -> None:
        """Test rollup serialization."""
        rollup = DailyRollup(date=DAY, completed_count=1, total_count=4)

        assert rollup.to_dict() == {
            "date": "2024-01-15",
            "completedCount": 1,
            "totalCount": 4,
            "percentage": 25,
        }


class TestDailyRollupCalculator:
    """Tests for DailyRollupCalculator."""

    @pytest.fixture
    def repository(self) -> InMemoryTaskRepository:
        """Create an in-memory task store."""
        return InMemoryTaskRepository()

    @pytest.fixture
    def calculator(self, repository: InMemoryTaskRepository) -> DailyRollupCalculator:
        """Create calculator without a cache."""
        return DailyRollupCalculator(repository)

    def test_no_data_returns_zero_rollup(self, calculator: DailyRollupCalculator) -> None:
        """Test a user with no tasks gets an all-zero rollup."""
        rollup = calculator.compute("nobody", DAY)

        assert rollup == DailyRollup(date=DAY)
        assert rollup.percentage == 0

    def test_round_trip_scenario(
        self, calculator: DailyRollupCalculator, repository: InMemoryTaskRepository
    ) -> None:
        """Test two of three tasks completed gives 67%."""
        due = datetime(2024, 1, 15, 18, 0, tzinfo=UTC)
        repository.insert(make_task(due, completed=True, subject="DSA"))
        repository.insert(make_task(due, completed=True, subject="DSA"))
        repository.insert(make_task(due, subject="OS"))

        rollup = calculator.compute("test-user", DAY)

        assert (rollup.completed_count, rollup.total_count, rollup.percentage) == (2, 3, 67)

    def test_other_users_excluded(
        self, calculator: DailyRollupCalculator, repository: InMemoryTaskRepository
    ) -> None:
        """Test rollups only count the requesting user's tasks."""
        due = datetime(2024, 1, 15, 18, 0, tzinfo=UTC)
        repository.insert(make_task(due, user_id="someone-else"))

        assert calculator.compute("test-user", DAY).total_count == 0

    def test_recompute_is_idempotent(
        self, calculator: DailyRollupCalculator, repository: InMemoryTaskRepository
    ) -> None:
        """Test computing twice from the same data gives identical results."""
        due = datetime(2024, 1, 15, 8, 0, tzinfo=UTC)
        repository.insert(make_task(due, completed=True))
        repository.insert(make_task(due))

        assert calculator.compute("test-user", DAY) == calculator.compute("test-user", DAY)

    def test_range_is_ordered_and_complete(self, calculator: DailyRollupCalculator) -> None:
        """Test a range covers every day, oldest first."""
        rollups = calculator.compute_range("test-user", DAY, DAY + timedelta(days=4))

        assert list(rollups) == [DAY + timedelta(days=i) for i in range(5)]

    def test_empty_range(self, calculator: DailyRollupCalculator) -> None:
        """Test an inverted range yields nothing."""
        assert calculator.compute_range("test-user", DAY, DAY - timedelta(days=1)) == {}

    def test_range_uses_single_query(self) -> None:
        """Test a range is fetched with one task query."""
        source = MagicMock()
        source.list_due_in_range.return_value = []
        calculator = DailyRollupCalculator(source)

        calculator.compute_range("test-user", DAY, DAY + timedelta(days=6))

        source.list_due_in_range.assert_called_once()
        _, start, end = source.list_due_in_range.call_args.args
        assert start == datetime(2024, 1, 15, tzinfo=UTC)
        assert end == datetime(2024, 1, 22, tzinfo=UTC)

    def test_full_cache_hit_skips_source(self) -> None:
        """Test a fully cached range does not touch the task store."""
        source = MagicMock()
        cache = MagicMock()
        cached = DailyRollup(date=DAY, completed_count=1, total_count=2)
        cache.get_many.return_value = {DAY: cached}
        calculator = DailyRollupCalculator(source, cache=cache)

        assert calculator.compute("test-user", DAY) is cached
        source.list_due_in_range.assert_not_called()

    def test_partial_cache_recomputes_whole_range(self) -> None:
        """Test a partially cached range is recomputed and stored."""
        source = MagicMock()
        source.list_due_in_range.return_value = []
        cache = MagicMock()
        cache.get_many.return_value = {DAY: DailyRollup(date=DAY, completed_count=5, total_count=5)}
        calculator = DailyRollupCalculator(source, cache=cache)

        rollups = calculator.compute_range("test-user", DAY, DAY + timedelta(days=1))

        assert rollups[DAY].total_count == 0
        source.list_due_in_range.assert_called_once()
        stored = list(cache.set_many.call_args.args[1])
        assert [r.date for r in stored] == [DAY, DAY + timedelta(days=1)]
