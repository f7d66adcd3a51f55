"""Tests for report export."""

import json
import math
from datetime import date
from pathlib import Path

import polars as pl
import pytest

from tea_records.filters.window import WindowFilter
from tea_records.report.aggregator import ROW_COLUMNS, ReportResult, aggregate
from tea_records.report.export import (
    chart_to_frame,
    export_chart,
    export_report,
    format_metric,
    rows_to_frame,
)

NOW = date(2024, 6, 12)


@pytest.fixture
def mixed_result(make_record) -> ReportResult:
    """Report with a valid row, a zero-input row and a flagged row."""
    records = [
        make_record(date="2024-06-10"),
        make_record(date="2024-06-11", inputKg=0, teaMadeGL=0),
        make_record(date="2024-06-12", dryerHours="broken"),
    ]
    return aggregate(records, WindowFilter.ALL, NOW)


class TestFormatMetric:
    """Tests for metric display text."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            (25.0, "25.00"),
            (0.4, "0.40"),
            (math.inf, "Infinity"),
            (-math.inf, "-Infinity"),
            (math.nan, "NaN"),
            (None, ""),
        ],
    )
    def test_format(self, value: float | None, expected: str) -> None:
        """Test two-decimal text and sentinel names."""
        assert format_metric(value) == expected


class TestFrames:
    """Tests for DataFrame projections."""

    def test_rows_frame(self, mixed_result: ReportResult) -> None:
        """Test row frame columns, types and null metrics for flagged rows."""
        df = rows_to_frame(mixed_result)

        assert df.columns == list(ROW_COLUMNS)
        assert df.height == 3
        assert df.schema["recoveryGL"] == pl.Float64
        assert df.schema["inputKg"] == pl.Utf8
        assert df["recoveryGL"][0] == 25.0
        assert math.isnan(df["recoveryGL"][1])
        assert df["recoveryGL"][2] is None
        assert df["dryerHours"][2] == "broken"

    def test_chart_frame(self, mixed_result: ReportResult) -> None:
        """Test chart frame has one row per chart point."""
        df = chart_to_frame(mixed_result)

        assert df.columns == ["date", "RecoveryGL", "RecoveryORS", "CoalRatio", "ElectricRatio"]
        assert df["date"].to_list() == ["2024-06-10", "2024-06-11", "2024-06-12"]
        assert df["CoalRatio"][1] == math.inf
        assert df["CoalRatio"][2] is None


class TestExportReport:
    """Tests for export_report."""

    def test_json_export(self, mixed_result: ReportResult, tmp_path: Path) -> None:
        """Test JSON export is strict JSON with sentinel text."""
        output = tmp_path / "out" / "report.json"

        export_report(mixed_result, output, "json")

        payload = json.loads(output.read_text())
        assert payload["window"] == "all"
        assert payload["reference_date"] == "2024-06-12"
        assert len(payload["rows"]) == 3
        assert payload["rows"][0]["recoveryGL"] == 25.0
        assert payload["rows"][1]["recoveryGL"] == "NaN"
        assert payload["rows"][1]["coalRatio"] == "Infinity"
        assert payload["rows"][2]["status"].startswith("metrics unavailable: dryerHours")
        assert payload["chart"][1]["CoalRatio"] == "Infinity"
        assert payload["summary"]["record_count"] == 2
        assert payload["summary"]["flagged_count"] == 1
        assert payload["summary"]["recovery_gl"] == pytest.approx(25.0)

    def test_csv_export(self, mixed_result: ReportResult, tmp_path: Path) -> None:
        """Test CSV export has a header and one line per row."""
        output = tmp_path / "report.csv"

        export_report(mixed_result, output, "csv")

        lines = output.read_text().strip().splitlines()
        assert lines[0].split(",") == list(ROW_COLUMNS)
        assert len(lines) == 4

    def test_parquet_export(self, mixed_result: ReportResult, tmp_path: Path) -> None:
        """Test Parquet export round-trips through polars."""
        output = tmp_path / "report.parquet"

        export_report(mixed_result, output, "parquet")

        df = pl.read_parquet(output)
        assert df.height == 3
        assert df["date"].to_list() == ["2024-06-10", "2024-06-11", "2024-06-12"]

    def test_unknown_format(self, mixed_result: ReportResult, tmp_path: Path) -> None:
        """Test an unsupported format raises ValueError."""
        with pytest.raises(ValueError, match="Unsupported export format"):
            export_report(mixed_result, tmp_path / "report.xml", "xml")  # type: ignore[arg-type]


def test_export_chart(mixed_result: ReportResult, tmp_path: Path) -> None:
    """Test chart export writes the series array."""
    output = export_chart(mixed_result, tmp_path / "chart.json")

    points = json.loads(output.read_text())
    assert [p["date"] for p in points] == ["2024-06-10", "2024-06-11", "2024-06-12"]
    assert points[0] == {
        "date": "2024-06-10",
        "RecoveryGL": 25.0,
        "RecoveryORS": 5.0,
        "CoalRatio": 0.4,
        "ElectricRatio": 2.0,
    }
    assert points[1]["RecoveryGL"] == "NaN"
    assert points[2]["RecoveryGL"] is None
