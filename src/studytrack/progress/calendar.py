"""Calendar heatmap data.

Turns daily rollups over a trailing window into heatmap cells with an
intensity level from 0 to 4.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from typing import Any

from studytrack.errors import ValidationError

from .days import local_day
from .rollup import DailyRollupCalculator

logger = logging.getLogger(__name__)

DEFAULT_CALENDAR_DAYS = 365
MAX_CALENDAR_DAYS = 3650

# (minimum completion percentage, level), highest first
HEATMAP_LEVELS = (
    (90, 4),
    (70, 3),
    (50, 2),
    (25, 1),
)


def heatmap_level(completed: int, total: int) -> int:
    """Bucket a day's completion ratio into a heatmap level.

    Lower bounds are inclusive: exactly 90% is level 4, 89% is level 3.
    """
    if total <= 0:
        return 0
    for threshold, level in HEATMAP_LEVELS:
        # completed / total * 100 >= threshold, without float error
        if completed * 100 >= threshold * total:
            return level
    return 0


@dataclass(frozen=True)
class CalendarEntry:
    """One heatmap cell."""

    date: date
    count: int
    level: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date.isoformat(),
            "count": self.count,
            "level": self.level,
        }


def validate_days(days: Any) -> int:
    """Check a calendar window length.

    Raises:
        ValidationError: If days is not an integer in 1..MAX_CALENDAR_DAYS.
    """
    if isinstance(days, bool) or not isinstance(days, int):
        raise ValidationError(f"days must be an integer, got {days!r}", field="days")
    if days < 1:
        raise ValidationError(f"days must be at least 1, got {days}", field="days")
    if days > MAX_CALENDAR_DAYS:
        raise ValidationError(
            f"days must be at most {MAX_CALENDAR_DAYS}, got {days}", field="days"
        )
    return days


class CalendarRangeBuilder:
    """Builds heatmap entries for a trailing window of days."""

    def __init__(
        self,
        calculator: DailyRollupCalculator,
        default_days: int = DEFAULT_CALENDAR_DAYS,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """Initialize builder.

        Args:
            calculator: Daily rollup calculator
            default_days: Window length when none is requested
            clock: Returns the current time (defaults to UTC now)
        """
        self._calculator = calculator
        self._default_days = validate_days(default_days)
        self._clock = clock or (lambda: datetime.now(UTC))

    def build(
        self,
        user_id: str,
        end: date | None = None,
        days: int | None = None,
    ) -> list[CalendarEntry]:
        """Build heatmap entries for [end - days, end].

        Args:
            user_id: Owner of the tasks
            end: Last day of the window (defaults to today)
            days: Window length (defaults to the configured length)

        Returns:
            days + 1 entries, oldest first; days without tasks are level 0

        Raises:
            ValidationError: If days is out of range, or the window would
                start before the first representable date.
        """
        days = validate_days(self._default_days if days is None else days)
        end = end or local_day(self._clock(), self._calculator.timezone)
        if end >= date.max:
            raise ValidationError(f"end must be before {date.max.isoformat()}", field="end")
        if days > (end - date.min).days:
            raise ValidationError(f"days reaches before {date.min.isoformat()}", field="days")
        start = end - timedelta(days=days)

        rollups = self._calculator.compute_range(user_id, start, end)
        logger.debug("Built calendar for %s: %s..%s", user_id, start, end)

        return [
            CalendarEntry(
                date=day,
                count=rollup.completed_count,
                level=heatmap_level(rollup.completed_count, rollup.total_count),
            )
            for day, rollup in rollups.items()
        ]


__all__ = [
    "CalendarEntry",
    "CalendarRangeBuilder",
    "DEFAULT_CALENDAR_DAYS",
    "HEATMAP_LEVELS",
    "MAX_CALENDAR_DAYS",
    "heatmap_level",
    "validate_days",
]
