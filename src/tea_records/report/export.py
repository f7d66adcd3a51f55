"""Export report rows and chart series.

Output formats:
    json - {"window", "reference_date", "rows", "chart", "summary"}
    csv - report rows, one line per row
    parquet - report rows

JSON files stay strict JSON: non-finite metrics (a zero denominator) are
written as the text "Infinity", "-Infinity" or "NaN".
"""

import json
import logging
import math
from dataclasses import asdict
from pathlib import Path
from typing import Any, Literal

import polars as pl

from tea_records.report.aggregator import (
    CHART_SERIES,
    METRIC_COLUMNS,
    ROW_COLUMNS,
    ReportResult,
)
from tea_records.report.summary import WindowSummary, summarize

logger = logging.getLogger(__name__)

__all__ = [
    "ExportFormat",
    "chart_to_frame",
    "export_chart",
    "export_report",
    "format_metric",
    "rows_to_frame",
]

ExportFormat = Literal["json", "csv", "parquet"]


def format_metric(value: float | None) -> str:
    """Format a metric with 2 decimal places for display.

    Non-finite values read "Infinity", "-Infinity" or "NaN"; a missing
    value is an empty string.
    """
    if value is None:
        return ""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    return f"{value:.2f}"


def _json_number(value: Any) -> Any:
    if isinstance(value, float) and not math.isfinite(value):
        return format_metric(value)
    return value


def _json_safe(data: dict[str, Any]) -> dict[str, Any]:
    return {key: _json_number(value) for key, value in data.items()}


def _raw_text(value: Any) -> str | None:
    if value is None:
        return None
    return str(value)


def rows_to_frame(result: ReportResult) -> pl.DataFrame:
    """Build a DataFrame of report rows.

    Raw fields are kept as text since flagged rows may hold non-numeric
    values; derived metrics are Float64 (null for flagged rows).

    Args:
        result: Aggregated report.

    Returns:
        DataFrame with ROW_COLUMNS in table order.
    """
    schema: dict[str, Any] = {
        column: pl.Float64 if column in METRIC_COLUMNS else pl.Utf8 for column in ROW_COLUMNS
    }
    data: dict[str, list[Any]] = {column: [] for column in ROW_COLUMNS}

    for row in result.rows:
        flat = row.as_dict()
        for column in ROW_COLUMNS:
            value = flat[column]
            data[column].append(value if column in METRIC_COLUMNS else _raw_text(value))

    return pl.DataFrame(data, schema=schema)


def chart_to_frame(result: ReportResult) -> pl.DataFrame:
    """Build a DataFrame of chart points (date plus one column per series)."""
    schema: dict[str, Any] = {"date": pl.Utf8}
    schema.update({key: pl.Float64 for key in CHART_SERIES})
    points = [point.as_dict() for point in result.chart_points]
    data = {column: [point[column] for point in points] for column in schema}
    return pl.DataFrame(data, schema=schema)


def _summary_dict(summary: WindowSummary) -> dict[str, Any]:
    return _json_safe(asdict(summary))


def export_report(
    result: ReportResult,
    output_path: Path,
    fmt: ExportFormat = "json",
) -> Path:
    """Write a report to disk.

    Args:
        result: Aggregated report.
        output_path: Destination file; parent directories are created.
        fmt: Output format.

    Returns:
        Path written.

    Raises:
        ValueError: If fmt is not a supported format.
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)

    if fmt == "json":
        payload = {
            "window": result.window.value,
            "reference_date": result.reference_date.isoformat(),
            "rows": [_json_safe(row.as_dict()) for row in result.rows],
            "chart": [_json_safe(point.as_dict()) for point in result.chart_points],
            "summary": _summary_dict(summarize(result)),
        }
        with output_path.open("w") as f:
            json.dump(payload, f, indent=2, allow_nan=False)
    elif fmt == "csv":
        rows_to_frame(result).write_csv(output_path)
    elif fmt == "parquet":
        rows_to_frame(result).write_parquet(output_path)
    else:
        msg = f"Unsupported export format: {fmt}"
        raise ValueError(msg)

    logger.info("Wrote %d report rows (%s) to %s", len(result.rows), fmt, output_path)
    return output_path


def export_chart(result: ReportResult, output_path: Path) -> Path:
    """Write the chart series as a JSON array of points.

    Args:
        result: Aggregated report.
        output_path: Destination JSON file.

    Returns:
        Path written.
    """
    output_path.parent.mkdir(parents=True, exist_ok=True)
    points = [_json_safe(point.as_dict()) for point in result.chart_points]
    with output_path.open("w") as f:
        json.dump(points, f, indent=2, allow_nan=False)

    logger.info("Wrote %d chart points to %s", len(points), output_path)
    return output_path
