"""Windowed report aggregation.

Filters records by reporting window and projects each surviving record into a
table row and a chart point, in input order. Records that cannot be reported
on are flagged per row instead of failing the report:
    - InvalidDate: flagged row, no chart point, emitted for every window
    - InvalidRecordField: flagged row, chart point with no metric values
"""

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import ROUND_HALF_UP, Context, Decimal
from typing import Any

from tea_records.filters.window import (
    WeekStart,
    WindowFilter,
    in_window,
    parse_record_date,
    reference_date,
)
from tea_records.metrics.calculator import DerivedMetrics, calculate_metrics
from tea_records.models import (
    FIELD_COLUMNS,
    InvalidDate,
    InvalidRecordField,
    ProductionRecord,
)

logger = logging.getLogger(__name__)

__all__ = [
    "ChartPoint",
    "ReportResult",
    "ReportRow",
    "aggregate",
    "round_metric",
]

DISPLAY_PLACES = 2
# Wide enough for every finite float quantized to DISPLAY_PLACES
_ROUNDING_CONTEXT = Context(prec=400)
UNAVAILABLE_PREFIX = "metrics unavailable"

# Report table column order: raw fields interleaved with derived metrics
ROW_COLUMNS: tuple[str, ...] = (
    "date",
    "inputKg",
    "teaMadeGL",
    "teaMadeORS",
    "recoveryGL",
    "recoveryORS",
    "ctcHours",
    "dryerHours",
    "heaterHours",
    "totalHours",
    "coalKg",
    "coalRatio",
    "electricityUnits",
    "electricRatio",
    "mandays",
    "status",
)

METRIC_COLUMNS: dict[str, str] = {
    "recoveryGL": "recovery_gl",
    "recoveryORS": "recovery_ors",
    "totalHours": "total_hours",
    "coalRatio": "coal_ratio",
    "electricRatio": "electric_ratio",
}

CHART_SERIES: dict[str, str] = {
    "RecoveryGL": "recovery_gl",
    "RecoveryORS": "recovery_ors",
    "CoalRatio": "coal_ratio",
    "ElectricRatio": "electric_ratio",
}


def round_metric(value: float, places: int = DISPLAY_PLACES) -> float:
    """Round a metric for display.

    Rounds half away from zero on the exact binary value of the float, so
    1.005 (stored as 1.00499...) becomes 1.0 and 0.125 becomes 0.13.
    Non-finite values are returned unchanged; finite values of any
    magnitude are rounded.
    """
    if not math.isfinite(value):
        return value
    quantum = Decimal(1).scaleb(-places)
    return float(
        Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP, context=_ROUNDING_CONTEXT)
    )


def _rounded(metrics: DerivedMetrics) -> DerivedMetrics:
    return DerivedMetrics(
        recovery_gl=round_metric(metrics.recovery_gl),
        recovery_ors=round_metric(metrics.recovery_ors),
        coal_ratio=round_metric(metrics.coal_ratio),
        electric_ratio=round_metric(metrics.electric_ratio),
        total_hours=round_metric(metrics.total_hours),
    )


def _display_value(value: Any) -> Any:
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return value


@dataclass(frozen=True)
class ReportRow:
    """One record's raw fields with its rounded metrics.

    Attributes:
        record: Source record.
        metrics: Metrics rounded for display, or None when flagged.
        error: "metrics unavailable: <reason>" when flagged, else None.
    """

    record: ProductionRecord
    metrics: DerivedMetrics | None = None
    error: str | None = None

    @property
    def is_flagged(self) -> bool:
        """Whether metrics could not be derived for this row."""
        return self.error is not None

    def as_dict(self) -> dict[str, Any]:
        """Flatten to report table columns (see ROW_COLUMNS)."""
        raw = {
            column: _display_value(getattr(self.record, name))
            for name, column in FIELD_COLUMNS.items()
        }
        row: dict[str, Any] = {}
        for column in ROW_COLUMNS:
            if column in METRIC_COLUMNS:
                row[column] = (
                    None if self.metrics is None else getattr(self.metrics, METRIC_COLUMNS[column])
                )
            elif column == "status":
                row[column] = self.error or "ok"
            else:
                row[column] = raw[column]
        return row


@dataclass(frozen=True)
class ChartPoint:
    """Chart series values for one filtered record.

    Metric values are None for records whose metrics could not be derived.
    """

    date: str
    recovery_gl: float | None
    recovery_ors: float | None
    coal_ratio: float | None
    electric_ratio: float | None

    def as_dict(self) -> dict[str, Any]:
        """Convert to chart series keys (date, RecoveryGL, ...)."""
        point: dict[str, Any] = {"date": self.date}
        for key, attr in CHART_SERIES.items():
            point[key] = getattr(self, attr)
        return point


@dataclass(frozen=True)
class ReportResult:
    """Rows and chart points for one window."""

    window: WindowFilter
    reference_date: date
    rows: list[ReportRow] = field(default_factory=list)
    chart_points: list[ChartPoint] = field(default_factory=list)

    @property
    def valid_rows(self) -> list[ReportRow]:
        """Rows with derived metrics."""
        return [row for row in self.rows if not row.is_flagged]

    @property
    def flagged_rows(self) -> list[ReportRow]:
        """Rows marked metrics unavailable."""
        return [row for row in self.rows if row.is_flagged]


def aggregate(
    records: Sequence[ProductionRecord],
    window: WindowFilter,
    now: date | datetime,
    week_start: WeekStart = WeekStart.MONDAY,
) -> ReportResult:
    """Build report rows and chart points for a window.

    Single pass in input order; no sorting or deduplication. Per-record
    errors are flagged on the row and never raised.

    Args:
        records: Records already fetched from the store.
        window: Reporting window.
        now: Reference instant for the window.
        week_start: First day of the week for THIS_WEEK.

    Returns:
        ReportResult with one row per reported record.
    """
    rows: list[ReportRow] = []
    chart_points: list[ChartPoint] = []

    for index, record in enumerate(records):
        try:
            if not in_window(record.date, now, window, week_start):
                continue
        except InvalidDate as e:
            logger.warning("Record %d flagged: %s", index, e)
            rows.append(ReportRow(record=record, error=f"{UNAVAILABLE_PREFIX}: {e}"))
            continue

        chart_date = parse_record_date(record.date).isoformat()

        try:
            metrics = _rounded(calculate_metrics(record))
        except InvalidRecordField as e:
            logger.warning("Record %d (%s) flagged: %s", index, chart_date, e)
            rows.append(ReportRow(record=record, error=f"{UNAVAILABLE_PREFIX}: {e}"))
            chart_points.append(ChartPoint(chart_date, None, None, None, None))
            continue

        rows.append(ReportRow(record=record, metrics=metrics))
        chart_points.append(
            ChartPoint(
                date=chart_date,
                recovery_gl=metrics.recovery_gl,
                recovery_ors=metrics.recovery_ors,
                coal_ratio=metrics.coal_ratio,
                electric_ratio=metrics.electric_ratio,
            )
        )

    logger.debug(
        "Aggregated %d of %d records for window %s (%d flagged)",
        len(rows),
        len(records),
        window.value,
        sum(1 for row in rows if row.is_flagged),
    )

    return ReportResult(
        window=window,
        reference_date=reference_date(now),
        rows=rows,
        chart_points=chart_points,
    )
