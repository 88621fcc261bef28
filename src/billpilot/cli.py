"""
BillPilot CLI — command-line interface.

Usage:
    billpilot budget --csv bills.csv --period quarterly
    billpilot history --csv bills.csv --start 2025-01-01 --end 2025-12-31
    billpilot trends --csv bills.csv --vendor acme-power --vendor city-water
    billpilot patterns --csv bills.csv
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import date, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from billpilot import __version__
from billpilot.models.forecast import DateBasis, PeriodType

if TYPE_CHECKING:
    from billpilot.pilot import BillPilot

app = typer.Typer(
    name="billpilot",
    help="🧾 BillPilot — bill tracking and budget forecasting",
    no_args_is_help=True,
    rich_markup_mode="rich",
)
console = Console()

_DATE_FORMATS = ["%Y-%m-%d"]


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"[bold]BillPilot[/bold] v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        help="Log engine decisions to the console",
    ),
) -> None:
    """🧾 BillPilot — know what your bills will cost before they arrive."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )


def _to_date(value: Optional[datetime]) -> Optional[date]:
    return value.date() if value else None


def _build_pilot(csv: Optional[str], config: Optional[str]) -> BillPilot:
    """Create a BillPilot from an optional config file plus an optional CSV."""
    from billpilot.config import BillPilotConfig, ConnectorConfig
    from billpilot.pilot import BillPilot

    config_path = config if config and Path(config).exists() else None
    settings = BillPilotConfig.load(config_path)
    if csv:
        settings.connectors.append(ConnectorConfig(type="csv", options={"file_path": csv}))

    if not settings.connectors:
        console.print("[red]Error: Provide --csv or a config file with connectors[/red]")
        raise typer.Exit(1)

    pilot = BillPilot(config=settings)
    pilot._setup()
    return pilot


def _run(coro):  # noqa: ANN001, ANN202
    """Run a pilot coroutine, turning expected failures into a clean exit."""
    try:
        with console.status("[bold green]Crunching bills...[/bold green]"):
            return asyncio.run(coro)
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from e


_CSV_OPTION = typer.Option(None, "--csv", help="Path to CSV file with bills")
_CONFIG_OPTION = typer.Option("billpilot.yaml", "--config", "-c", help="Path to config file")
_PERIOD_OPTION = typer.Option(None, "--period", "-p", case_sensitive=False, help="Bucket size")
_START_OPTION = typer.Option(None, "--start", formats=_DATE_FORMATS, help="Window start (YYYY-MM-DD)")
_END_OPTION = typer.Option(None, "--end", formats=_DATE_FORMATS, help="Window end (YYYY-MM-DD)")
_OUTPUT_OPTION = typer.Option(None, "--output", "-o", help="Output file path (.md, .json)")


@app.command()
def budget(
    csv: Optional[str] = _CSV_OPTION,
    config: str = _CONFIG_OPTION,
    period: Optional[PeriodType] = _PERIOD_OPTION,
    start: Optional[datetime] = _START_OPTION,
    end: Optional[datetime] = _END_OPTION,
    historic: bool = typer.Option(False, "--historic", help="Include last year's paid bills"),
    output: Optional[str] = _OUTPUT_OPTION,
) -> None:
    """Forecast recurring bills over the coming months."""
    console.print(Panel.fit(
        "[bold blue]🧾 BillPilot[/bold blue] — Budget Forecast",
        subtitle=f"v{__version__}",
    ))

    pilot = _build_pilot(csv, config)
    report = _run(pilot.budget_report(
        start=_to_date(start),
        end=_to_date(end),
        period_type=period,
        include_historic=historic or None,
    ))

    currency = pilot.config.currency
    table = Table(title="Budget Forecast", show_lines=True)
    table.add_column("Period", style="bold")
    table.add_column("Predicted", justify="right")
    table.add_column("Known", justify="right")
    table.add_column("Total", justify="right")
    for bucket in report.predictions:
        known = sum(1 for e in bucket.bills if getattr(e, "is_actual", False))
        table.add_row(
            bucket.period_label,
            str(bucket.bill_count - known),
            str(known),
            _money(bucket.total_amount, currency),
        )
    console.print(table)
    console.print(f"[bold]Forecast total:[/bold] {_money(report.total_predicted, currency)}")
    if report.historic is not None:
        console.print(f"[dim]Previous year paid: {_money(report.historic_total, currency)}[/dim]")

    if output:
        _save_report(report, output, currency)


@app.command()
def history(
    csv: Optional[str] = _CSV_OPTION,
    config: str = _CONFIG_OPTION,
    period: Optional[PeriodType] = _PERIOD_OPTION,
    start: Optional[datetime] = _START_OPTION,
    end: Optional[datetime] = _END_OPTION,
    by_paid: bool = typer.Option(False, "--by-paid", help="Bucket by paid date instead of due date"),
    output: Optional[str] = _OUTPUT_OPTION,
) -> None:
    """Summarize paid bills per period."""
    console.print(Panel.fit(
        "[bold blue]🧾 BillPilot[/bold blue] — Bill History",
        subtitle=f"v{__version__}",
    ))

    pilot = _build_pilot(csv, config)
    report = _run(pilot.history_report(
        start=_to_date(start),
        end=_to_date(end),
        period_type=period,
        date_basis=DateBasis.PAID if by_paid else DateBasis.DUE,
    ))

    currency = pilot.config.currency
    table = Table(title="Paid Bills", show_lines=True)
    table.add_column("Period", style="bold")
    table.add_column("Bills", justify="right")
    table.add_column("Total", justify="right")
    for bucket in report.buckets:
        table.add_row(bucket.period_label, str(bucket.bill_count), _money(bucket.total_amount, currency))
    console.print(table)
    console.print(f"[bold]Total paid:[/bold] {_money(report.total_amount, currency)}")

    if output:
        _save_report(report, output, currency)


@app.command()
def trends(
    vendor: list[str] = typer.Option(..., "--vendor", help="Vendor id (repeatable)"),
    csv: Optional[str] = _CSV_OPTION,
    config: str = _CONFIG_OPTION,
    period: Optional[PeriodType] = _PERIOD_OPTION,
    start: Optional[datetime] = _START_OPTION,
    end: Optional[datetime] = _END_OPTION,
    output: Optional[str] = _OUTPUT_OPTION,
) -> None:
    """Show spending per vendor per period."""
    from billpilot.exporters.markdown import render_vendor_trends

    pilot = _build_pilot(csv, config)
    result = _run(pilot.vendor_trends(
        vendor,
        start=_to_date(start),
        end=_to_date(end),
        period_type=period,
    ))

    currency = pilot.config.currency
    for trend in result:
        table = Table(title=trend.vendor_name)
        table.add_column("Period", style="bold")
        table.add_column("Bills", justify="right")
        table.add_column("Total", justify="right")
        for row in trend.periods:
            table.add_row(row.period_label, str(row.bill_count), _money(row.total_amount, currency))
        console.print(table)

    if output:
        path = Path(output)
        if path.suffix == ".json":
            content = json.dumps([t.model_dump(mode="json") for t in result], indent=2)
        else:
            content = render_vendor_trends(result, currency)
        path.write_text(content)
        console.print(f"[green]✓[/green] Report saved to [bold]{path}[/bold]")


@app.command()
def patterns(
    csv: Optional[str] = _CSV_OPTION,
    config: str = _CONFIG_OPTION,
) -> None:
    """Detect recurring bills that have no explicit schedule."""
    pilot = _build_pilot(csv, config)
    results = _run(pilot.detect_patterns())
    threshold = pilot.config.detection.min_reliable_confidence

    table = Table(title="Detected Patterns")
    table.add_column("Series", style="bold")
    table.add_column("Bills", justify="right")
    table.add_column("Frequency")
    table.add_column("Mean gap", justify="right")
    table.add_column("Confidence", justify="right")
    for series, estimate in results:
        frequency = estimate.frequency.value.lower() if estimate.frequency else "irregular"
        gap = f"{estimate.mean_gap_days:.0f}d" if estimate.mean_gap_days is not None else "-"
        color = "green" if estimate.is_reliable(threshold) else "dim"
        table.add_row(
            series.title,
            str(series.size),
            frequency,
            gap,
            f"[{color}]{estimate.confidence:.0%}[/{color}]",
        )
    console.print(table)


def _money(amount, currency: str) -> str:  # noqa: ANN001
    if currency == "USD":
        return f"${amount:,.2f}"
    return f"{amount:,.2f} {currency}"


def _save_report(report, output: str, currency: str) -> None:  # noqa: ANN001
    """Save report to file."""
    from billpilot.exporters.markdown import render_markdown

    path = Path(output)
    if path.suffix == ".json":
        content = report.to_json()
    else:
        content = render_markdown(report, currency)

    path.write_text(content)
    console.print(f"[green]✓[/green] Report saved to [bold]{path}[/bold]")


if __name__ == "__main__":
    app()
