"""CLI entry point for tea-records.

Commands:
- add: Record one day of production measurements
- list: Show stored records
- report: Show or export derived metrics for a window
- chart: Export the chart series for a window
"""

import asyncio
from datetime import date, datetime
from pathlib import Path
from typing import Any

import click
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from tea_records import __version__
from tea_records.config import Config, load_config
from tea_records.filters.window import WindowFilter, parse_window
from tea_records.logging import get_logger, setup_logging
from tea_records.models import FIELD_COLUMNS, ProductionRecord
from tea_records.report.aggregator import ReportResult, aggregate
from tea_records.report.export import export_chart, export_report, format_metric
from tea_records.report.summary import summarize
from tea_records.store import StoreError, create_store, resolve_owner

console = Console()
logger = get_logger(__name__)

WINDOW_CHOICES = ["all", "today", "week", "month"]

# Report table headers, in column order
TABLE_HEADERS: dict[str, str] = {
    "date": "Date",
    "inputKg": "Input (Kg)",
    "teaMadeGL": "Tea Made GL (Kg)",
    "teaMadeORS": "Tea Made ORS (Kg)",
    "recoveryGL": "Recovery GL (%)",
    "recoveryORS": "Recovery ORS (%)",
    "ctcHours": "CTC Hours",
    "dryerHours": "Dryer Hours",
    "heaterHours": "Heater Hours",
    "totalHours": "Total Hours",
    "coalRatio": "Coal Ratio",
    "electricRatio": "Electric Ratio",
    "mandays": "Mandays",
}

METRIC_HEADERS = {"recoveryGL", "recoveryORS", "totalHours", "coalRatio", "electricRatio"}

config_option = click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    required=True,
    help="Path to config.yaml file",
)
owner_option = click.option(
    "--owner",
    type=str,
    default=None,
    help="Owner identity (overrides config owner.id)",
)
window_option = click.option(
    "--window",
    "-w",
    type=click.Choice(WINDOW_CHOICES, case_sensitive=False),
    default=None,
    help="Reporting window (default: reporting.default_window)",
)
now_option = click.option(
    "--now",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Reference date YYYY-MM-DD (default: today, local time)",
)


@click.group()
@click.version_option(version=__version__, prog_name="tea-records")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Enable verbose output")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """CTC Tea Manufacturing Record.

    Record daily production measurements and report recovery, coal and
    electricity ratios for today, this week, this month or all time.

    \b
    Quick Start:
        1. Add a day: tea-records add -c config.yaml --date 2024-06-10 ...
        2. Report this week: tea-records report -c config.yaml --window week
        3. Export the chart series: tea-records chart -c config.yaml -o chart.json
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    setup_logging(verbose=verbose)


def _load(config_path: Path) -> Config:
    try:
        return load_config(config_path)
    except (FileNotFoundError, ValidationError, yaml.YAMLError) as e:
        console.print(f"[bold red]Error:[/bold red] Invalid config {config_path}: {escape(str(e))}")
        raise click.Abort() from e


async def _insert(cfg: Config, record: ProductionRecord) -> ProductionRecord:
    store = create_store(cfg.store)
    try:
        return await store.insert(record)
    finally:
        await store.close()


async def _fetch(cfg: Config, owner_id: str) -> list[ProductionRecord]:
    store = create_store(cfg.store)
    try:
        return await store.query_by_owner(owner_id)
    finally:
        await store.close()


def _fetch_records(cfg: Config, owner: str | None) -> list[ProductionRecord]:
    try:
        owner_id = resolve_owner(cfg.owner, owner)
        return asyncio.run(_fetch(cfg, owner_id))
    except StoreError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise click.Abort() from e


def _resolve_window(cfg: Config, window: str | None) -> WindowFilter:
    if window is None:
        return cfg.reporting.window
    return parse_window(window)


def _reference(now: datetime | None) -> date:
    if now is None:
        return datetime.now().astimezone().date()
    return now.date()


def _build_report(
    cfg: Config,
    owner: str | None,
    window: str | None,
    now: datetime | None,
) -> ReportResult:
    records = _fetch_records(cfg, owner)
    window_filter = _resolve_window(cfg, window)
    reference = _reference(now)
    logger.debug(
        "Building %s report for %s from %d records", window_filter.value, reference, len(records)
    )
    return aggregate(records, window_filter, reference, cfg.reporting.week_start_day)


def _cell(value: Any) -> str:
    if value is None:
        return ""
    return str(value)


def _render_report(result: ReportResult) -> None:
    table = Table(title=f"Production report: {result.window.value} ({result.reference_date})")
    for column, header in TABLE_HEADERS.items():
        table.add_column(header, justify="right" if column != "date" else "left")

    for row in result.rows:
        flat = row.as_dict()
        cells = []
        for column in TABLE_HEADERS:
            if column in METRIC_HEADERS:
                cells.append(format_metric(flat[column]) if not row.is_flagged else "n/a")
            else:
                cells.append(_cell(flat[column]))
        table.add_row(*cells, style="yellow" if row.is_flagged else None)

    console.print(table)

    for row in result.flagged_rows:
        message = f"{_cell(row.record.date)}: {row.error}"
        console.print(f"[yellow]{escape(message)}[/yellow]")

    summary = summarize(result)
    console.print(
        f"[bold]{summary.record_count} records[/bold]"
        f" ({summary.flagged_count} flagged) | "
        f"Recovery GL {format_metric(summary.recovery_gl)}% | "
        f"Recovery ORS {format_metric(summary.recovery_ors)}% | "
        f"Coal ratio {format_metric(summary.coal_ratio)} | "
        f"Electric ratio {format_metric(summary.electric_ratio)} | "
        f"Total hours {format_metric(summary.total_hours)}"
    )


@main.command()
@config_option
@owner_option
@click.option("--date", "record_date", type=click.DateTime(formats=["%Y-%m-%d"]), required=True)
@click.option("--input-kg", type=float, required=True, help="Green leaf input (kg)")
@click.option("--tea-made-gl", type=float, required=True, help="GL made tea (kg)")
@click.option("--tea-made-ors", type=float, required=True, help="ORS made tea (kg)")
@click.option("--ctc-hours", type=float, required=True)
@click.option("--dryer-hours", type=float, required=True)
@click.option("--heater-hours", type=float, required=True)
@click.option("--coal-kg", type=float, required=True)
@click.option("--electricity-units", type=float, required=True)
@click.option("--mandays", type=float, required=True)
def add(config: Path, owner: str | None, record_date: datetime, **measurements: float) -> None:
    """Add one day of production measurements."""
    cfg = _load(config)

    try:
        owner_id = resolve_owner(cfg.owner, owner)
        record = ProductionRecord(
            date=record_date.date().isoformat(),
            owner_id=owner_id,
            **measurements,
        )
        stored = asyncio.run(_insert(cfg, record))
    except StoreError as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise click.Abort() from e

    console.print(f"[bold green]Record added for {stored.date}[/bold green]")


@main.command(name="list")
@config_option
@owner_option
def list_records(config: Path, owner: str | None) -> None:
    """Show stored records as entered."""
    cfg = _load(config)
    records = _fetch_records(cfg, owner)

    table = Table(title=f"Stored records ({len(records)})")
    for column in FIELD_COLUMNS.values():
        table.add_column(column)
    for record in records:
        mapping = record.to_mapping()
        table.add_row(*[_cell(mapping[column]) for column in FIELD_COLUMNS.values()])

    console.print(table)


@main.command()
@config_option
@owner_option
@window_option
@now_option
@click.option(
    "--format",
    "fmt",
    type=click.Choice(["table", "json", "csv", "parquet"]),
    default="table",
    help="Output format",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Output file (required for json, csv and parquet)",
)
def report(
    config: Path,
    owner: str | None,
    window: str | None,
    now: datetime | None,
    fmt: str,
    output: Path | None,
) -> None:
    """Show derived metrics for a reporting window."""
    cfg = _load(config)
    result = _build_report(cfg, owner, window, now)

    if fmt == "table":
        _render_report(result)
        return

    if output is None:
        console.print(f"[bold red]Error:[/bold red] --output is required for {fmt} format")
        raise click.Abort()

    export_report(result, output, fmt)  # type: ignore[arg-type]
    console.print(f"[bold green]Report written:[/bold green] {output} ({len(result.rows)} rows)")


@main.command()
@config_option
@owner_option
@window_option
@now_option
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    required=True,
    help="Output JSON file",
)
def chart(
    config: Path,
    owner: str | None,
    window: str | None,
    now: datetime | None,
    output: Path,
) -> None:
    """Export the chart series (RecoveryGL, RecoveryORS, CoalRatio, ElectricRatio)."""
    cfg = _load(config)
    result = _build_report(cfg, owner, window, now)

    export_chart(result, output)
    console.print(
        f"[bold green]Chart data written:[/bold green] {output} "
        f"({len(result.chart_points)} points)"
    )


if __name__ == "__main__":
    main()
