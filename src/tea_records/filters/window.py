"""Calendar window filter for production records.

Classifies a record date against a named reporting window relative to an
explicit reference date. Boundaries are calendar days:
    - all: every parseable date
    - today: same year, month and day as the reference
    - this_week: the 7-day week containing the reference, starting on the
      configured weekday (Monday by default)
    - this_month: same year and month as the reference
"""

from datetime import date, datetime, timedelta
from enum import Enum, IntEnum
from typing import Any

from tea_records.models import InvalidDate

__all__ = [
    "WeekStart",
    "WindowFilter",
    "in_window",
    "parse_record_date",
    "parse_window",
    "reference_date",
    "window_bounds",
]


class WindowFilter(str, Enum):
    """Named reporting window."""

    ALL = "all"
    TODAY = "today"
    THIS_WEEK = "this_week"
    THIS_MONTH = "this_month"


class WeekStart(IntEnum):
    """First day of the reporting week, numbered like date.weekday()."""

    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6

    @classmethod
    def from_name(cls, name: str) -> "WeekStart":
        """Look up a week start by weekday name (case-insensitive)."""
        try:
            return cls[name.strip().upper()]
        except KeyError as e:
            msg = f"Unknown week start '{name}'"
            raise ValueError(msg) from e


_WINDOW_ALIASES = {
    "all": WindowFilter.ALL,
    "today": WindowFilter.TODAY,
    "week": WindowFilter.THIS_WEEK,
    "this_week": WindowFilter.THIS_WEEK,
    "month": WindowFilter.THIS_MONTH,
    "this_month": WindowFilter.THIS_MONTH,
}


def parse_window(name: str) -> WindowFilter:
    """Parse a window name such as "week" or "this_month".

    Raises:
        ValueError: If the name is not a known window.
    """
    key = name.strip().lower().replace("-", "_").replace(" ", "_")
    if key not in _WINDOW_ALIASES:
        msg = f"Unknown window '{name}'. Expected one of: all, today, week, month"
        raise ValueError(msg)
    return _WINDOW_ALIASES[key]


def parse_record_date(value: Any) -> date:
    """Read a record date as a calendar date.

    Args:
        value: date, datetime, or ISO text ("2024-06-10" or a full ISO
            datetime, of which only the date part is used).

    Returns:
        Calendar date.

    Raises:
        InvalidDate: If the value is not a readable calendar date.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
        except ValueError as e:
            raise InvalidDate(value) from e
    raise InvalidDate(value)


def reference_date(now: date | datetime) -> date:
    """Calendar date of the reference instant, in the instant's own calendar."""
    if isinstance(now, datetime):
        return now.date()
    return now


def _week_start(d: date, week_start: WeekStart) -> date:
    """Get the first day of the week containing d."""
    offset = (d.weekday() - int(week_start)) % 7
    # Weeks that begin before date.min are cut off at date.min
    return d - timedelta(days=min(offset, (d - date.min).days))


def _week_end(start: date) -> date:
    """Get the last day of the week starting at start, capped at date.max."""
    return start + timedelta(days=min(6, (date.max - start).days))


def _month_end(d: date) -> date:
    """Get the last day of the month containing d."""
    if d.month == 12:
        return date(d.year, 12, 31)
    next_month_start = date(d.year, d.month + 1, 1)
    return next_month_start - timedelta(days=1)


def window_bounds(
    now: date | datetime,
    window: WindowFilter,
    week_start: WeekStart = WeekStart.MONDAY,
) -> tuple[date, date] | None:
    """Get the inclusive calendar bounds of a window.

    Args:
        now: Reference instant.
        window: Reporting window.
        week_start: First day of the week for THIS_WEEK.

    Returns:
        (first_day, last_day), or None for ALL which is unbounded.
    """
    today = reference_date(now)

    if window is WindowFilter.ALL:
        return None
    if window is WindowFilter.TODAY:
        return today, today
    if window is WindowFilter.THIS_WEEK:
        start = _week_start(today, week_start)
        return start, _week_end(start)
    if window is WindowFilter.THIS_MONTH:
        return date(today.year, today.month, 1), _month_end(today)

    msg = f"Unsupported window: {window!r}"
    raise ValueError(msg)


def in_window(
    record_date: Any,
    now: date | datetime,
    window: WindowFilter,
    week_start: WeekStart = WeekStart.MONDAY,
) -> bool:
    """Check whether a record date falls in a reporting window.

    Args:
        record_date: The record's date (see parse_record_date).
        now: Reference instant. Never read from the clock here.
        window: Reporting window.
        week_start: First day of the week for THIS_WEEK.

    Returns:
        True if the date is inside the window.

    Raises:
        InvalidDate: If record_date is not a readable calendar date, for every
            window including ALL.
    """
    day = parse_record_date(record_date)
    bounds = window_bounds(now, window, week_start)
    if bounds is None:
        return True
    first, last = bounds
    return first <= day <= last
