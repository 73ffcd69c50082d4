"""Calendar-day helpers for progress aggregation.

Maps timestamps onto calendar days in a reference timezone and back to
half-open UTC windows suitable for storage queries.
"""

from datetime import UTC, date, datetime, time, timedelta, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from studytrack.errors import ValidationError

# date.weekday() value of the first day of the week
_WEEK_START_WEEKDAY = {
    "monday": 0,
    "sunday": 6,
}

# Indexed by date.weekday(); independent of the process locale
WEEKDAY_NAMES = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def resolve_timezone(name: str) -> tzinfo:
    """Resolve a timezone name such as 'UTC' or 'Asia/Kolkata'.

    Raises:
        ValidationError: If the timezone is unknown.
    """
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValidationError(f"Unknown timezone '{name}'", field="timezone") from e


def ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC (MongoDB returns naive datetimes)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def local_day(value: datetime, tz: tzinfo) -> date:
    """Return the calendar day a timestamp falls on in the given timezone."""
    return ensure_aware(value).astimezone(tz).date()


def day_bounds(day: date, tz: tzinfo) -> tuple[datetime, datetime]:
    """Return the [start, end) UTC instants of a calendar day in tz."""
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
    return start.astimezone(UTC), end.astimezone(UTC)


def range_bounds(first_day: date, last_day: date, tz: tzinfo) -> tuple[datetime, datetime]:
    """Return the [start, end) UTC instants covering first_day..last_day inclusive."""
    start, _ = day_bounds(first_day, tz)
    _, end = day_bounds(last_day, tz)
    return start, end


def week_start(reference: date, first_day: str = "sunday") -> date:
    """Return the first day of the week containing reference.

    Args:
        reference: Any date within the week.
        first_day: 'sunday' or 'monday'.

    Raises:
        ValidationError: If first_day is not recognised.
    """
    try:
        start_weekday = _WEEK_START_WEEKDAY[first_day.lower()]
    except KeyError as e:
        raise ValidationError(
            f"Week start must be 'sunday' or 'monday', got '{first_day}'",
            field="week_start",
        ) from e
    offset = (reference.weekday() - start_weekday) % 7
    return reference - timedelta(days=offset)


def weekday_name(day: date) -> str:
    """Short English weekday name, e.g. "Mon"."""
    return WEEKDAY_NAMES[day.weekday()]


def iter_days(first_day: date, last_day: date) -> list[date]:
    """List every date from first_day to last_day inclusive."""
    count = (last_day - first_day).days + 1
    return [first_day + timedelta(days=i) for i in range(max(count, 0))]


__all__ = [
    "day_bounds",
    "ensure_aware",
    "iter_days",
    "local_day",
    "range_bounds",
    "resolve_timezone",
    "WEEKDAY_NAMES",
    "week_start",
    "weekday_name",
]
