"""Windowed reports: aggregation, summaries and export.

Modules:
    aggregator: Window filtering and row/chart projection
    summary: Weighted totals across a report window
    export: JSON, CSV and Parquet output
"""

from .aggregator import ChartPoint, ReportResult, ReportRow, aggregate, round_metric
from .export import export_chart, export_report, format_metric
from .summary import WindowSummary, summarize

__all__ = [
    "ChartPoint",
    "ReportResult",
    "ReportRow",
    "WindowSummary",
    "aggregate",
    "export_chart",
    "export_report",
    "format_metric",
    "round_metric",
    "summarize",
]
