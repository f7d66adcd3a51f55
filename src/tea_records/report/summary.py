"""Window summary across report rows.

Totals are summed from the records themselves and ratios are weighted by
those totals (total GL / total input, not the mean of daily recoveries).
Flagged rows are counted but excluded from totals.
"""

import logging
from dataclasses import dataclass

from tea_records.metrics.calculator import divide, numeric_field, total_hours
from tea_records.models import InvalidRecordField
from tea_records.report.aggregator import ReportResult

logger = logging.getLogger(__name__)

__all__ = ["WindowSummary", "summarize"]


@dataclass(frozen=True)
class WindowSummary:
    """Totals and weighted ratios for one report window."""

    record_count: int
    flagged_count: int
    input_kg: float
    tea_made_gl: float
    tea_made_ors: float
    coal_kg: float
    electricity_units: float
    mandays: float
    total_hours: float
    recovery_gl: float
    recovery_ors: float
    coal_ratio: float
    electric_ratio: float


def summarize(result: ReportResult) -> WindowSummary:
    """Summarize the valid rows of a report.

    Args:
        result: Aggregated report.

    Returns:
        WindowSummary at full precision. Ratios over a zero total follow the
        same inf/nan policy as per-record metrics.
    """
    totals = {
        "input_kg": 0.0,
        "tea_made_gl": 0.0,
        "tea_made_ors": 0.0,
        "coal_kg": 0.0,
        "electricity_units": 0.0,
        "mandays": 0.0,
    }
    hours = 0.0
    mandays_missing = 0

    valid_rows = result.valid_rows
    for row in valid_rows:
        for name in totals:
            if name == "mandays":
                # Not needed by any metric, so a valid row may lack it
                try:
                    totals[name] += numeric_field(row.record, name)
                except InvalidRecordField:
                    mandays_missing += 1
                continue
            totals[name] += numeric_field(row.record, name)
        hours += total_hours(row.record)

    if mandays_missing:
        logger.debug("%d rows without mandays excluded from mandays total", mandays_missing)

    return WindowSummary(
        record_count=len(valid_rows),
        flagged_count=len(result.rows) - len(valid_rows),
        input_kg=totals["input_kg"],
        tea_made_gl=totals["tea_made_gl"],
        tea_made_ors=totals["tea_made_ors"],
        coal_kg=totals["coal_kg"],
        electricity_units=totals["electricity_units"],
        mandays=totals["mandays"],
        total_hours=hours,
        recovery_gl=divide(totals["tea_made_gl"], totals["input_kg"]) * 100,
        recovery_ors=divide(totals["tea_made_ors"], totals["input_kg"]) * 100,
        coal_ratio=divide(totals["coal_kg"], totals["tea_made_gl"]),
        electric_ratio=divide(totals["electricity_units"], totals["tea_made_gl"]),
    )
