"""Reporting window filters."""

from tea_records.filters.window import (
    WeekStart,
    WindowFilter,
    in_window,
    parse_record_date,
    parse_window,
    reference_date,
    window_bounds,
)

__all__ = [
    "WeekStart",
    "WindowFilter",
    "in_window",
    "parse_record_date",
    "parse_window",
    "reference_date",
    "window_bounds",
]
