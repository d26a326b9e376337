"""
Command-Line Interface for FinChron.

Purpose
-------
Run portfolio simulations and inspect portfolio files without writing
Python code.

Commands
--------
- run: Simulate a portfolio file and print its summary and yearly table
- span: Chart bucketing (MonthsSpan) for a range of months
- config: Validate, display and create portfolio files

Example Usage
-------------
    # Simulate a portfolio file, saving tables
    $ finchron run --config retirement.json --output results/

    # Pace the run tick by tick with a progress bar
    $ finchron run --config retirement.json --animate

    # Bucketing of a 2025-01..2040-12 chart
    $ finchron span 2025-01 2040-12

    # Validate a portfolio file
    $ finchron config validate retirement.json

    # Show version
    $ finchron --version
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Optional

import click

from . import __version__


def _get_console():
    """Lazy import Rich for better startup time."""
    from rich.console import Console

    return Console()


def _money(value: float) -> str:
    return f"${value:,.0f}"


class _ProgressContainer:
    """LiveContainer backed by a rich Progress; a disabled one never closes."""

    def __init__(self, progress):
        self.progress = progress

    def is_live(self) -> bool:
        return self.progress.disable or self.progress.live.is_started


def _run_animated(portfolio, delay: float, quiet: bool) -> bool:
    import asyncio

    from rich.progress import BarColumn, Progress, TextColumn

    from .chronometer import run_animated

    span = portfolio.months_span()
    total = span.total_months if span is not None else 0
    with Progress(
        TextColumn("[bold blue]{task.description}"), BarColumn(), disable=quiet
    ) as progress:
        task = progress.add_task(portfolio.name, total=total)

        def on_tick(cursor):
            if cursor.tick == 1:
                progress.update(task, advance=1, description=f"{portfolio.name} {cursor}")

        return asyncio.run(
            run_animated(portfolio, _ProgressContainer(progress), delay=delay, on_tick=on_tick)
        )


@click.group()
@click.version_option(version=__version__, prog_name="finchron")
@click.option("--quiet", "-q", is_flag=True, help="Suppress non-essential output")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Override FINCHRON_LOG_LEVEL",
)
@click.pass_context
def main(ctx: click.Context, quiet: bool, log_level: Optional[str]) -> None:
    """
    FinChron - month-by-month portfolio simulation with US taxes.

    Use 'finchron COMMAND --help' for command-specific help.
    """
    from .config import AppSettings
    from .utils import configure_logging

    settings = AppSettings()
    configure_logging(settings, level=log_level.upper() if log_level else None)

    ctx.ensure_object(dict)
    ctx.obj["quiet"] = quiet
    ctx.obj["settings"] = settings
    ctx.obj["console"] = _get_console()


# ---------------------------------------------------------------------------
# run
# ---------------------------------------------------------------------------

@main.command()
@click.option(
    "--config", "-c",
    type=click.Path(exists=True, path_type=Path),
    required=True,
    help="Path to portfolio file (JSON)"
)
@click.option(
    "--output", "-o",
    type=click.Path(path_type=Path),
    default=None,
    help="Directory for summary.json, yearly.csv and monthly.csv"
)
@click.option("--reports", is_flag=True, help="Log a yearly report at every year boundary")
@click.option(
    "--animate", is_flag=True,
    help="Pace the run tick by tick (delay from the file or FINCHRON_ANIMATION_DELAY)"
)
@click.pass_context
def run(ctx: click.Context, config: Path, output: Optional[Path], reports: bool, animate: bool) -> None:
    """
    Simulate a portfolio.

    Loads a portfolio file, runs it from its first to its last month and
    prints the summary and the year-by-year totals.

    Example:
        finchron run -c retirement.json -o results/
        finchron run -c retirement.json --animate
    """
    console = ctx.obj.get("console")
    quiet = ctx.obj.get("quiet", False)
    settings = ctx.obj.get("settings")

    from .chronometer import run as run_portfolio
    from .serialization import build_portfolio, load_portfolio_config

    try:
        portfolio_config = load_portfolio_config(config)
        portfolio = build_portfolio(portfolio_config)
    except Exception as e:
        click.echo(f"Error loading config: {e}", err=True)
        sys.exit(1)
    if reports:
        portfolio.reports = True

    if not quiet:
        console.print(f"[bold blue]Simulating {portfolio.name} ({len(portfolio.model_assets)} assets)...[/bold blue]")

    try:
        if animate:
            delay = settings.resolve_animation_delay(portfolio_config.chronometer)
            completed = _run_animated(portfolio, delay, quiet)
        else:
            completed = run_portfolio(portfolio)
    except Exception as e:
        click.echo(f"Error during simulation: {e}", err=True)
        sys.exit(1)
    if not completed and not portfolio.is_empty:
        click.echo("Error: animated run stopped before the last month", err=True)
        sys.exit(1)
    if not completed:
        click.echo("Error: portfolio has nothing to simulate", err=True)
        sys.exit(1)

    summary = portfolio.summary
    yearly = portfolio.yearly_frame()

    if not quiet:
        from rich.table import Table

        table = Table(title=f"{portfolio.name}", show_header=True)
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="green", justify="right")
        table.add_row("Period", f"{summary.first_date_int} .. {summary.last_date_int}")
        table.add_row("Months", f"{summary.total_months}")
        table.add_row("", "")
        table.add_row("Start Net Worth", _money(summary.start_value.amount))
        table.add_row("Finish Net Worth", _money(summary.finish_value.amount))
        table.add_row("Accumulated", _money(summary.accumulated.amount))
        table.add_row("Total Taxes", _money(summary.total_taxes.amount))
        table.add_row("CAGR", f"{summary.cagr * 100:.2f}%")
        table.add_row("Max Drawdown", f"{summary.max_drawdown * 100:.2f}%")
        console.print(table)

        if not yearly.empty:
            years = Table(title="Yearly Totals", show_header=True)
            years.add_column("Year", style="cyan")
            for column in ("total_income", "total_taxes", "expense", "cash_flow"):
                years.add_column(column.replace("_", " ").title(), justify="right")
            for year, row in yearly.iterrows():
                years.add_row(
                    str(year),
                    _money(row["total_income"]),
                    _money(row["total_taxes"]),
                    _money(row["expense"]),
                    _money(row["cash_flow"]),
                )
            console.print(years)
    else:
        click.echo(f"Finish Net Worth: {_money(summary.finish_value.amount)}")
        click.echo(f"Total Taxes: {_money(summary.total_taxes.amount)}")

    if output:
        output.mkdir(parents=True, exist_ok=True)
        with open(output / "summary.json", "w") as f:
            json.dump(summary.to_dict(), f, indent=2)
        yearly.to_csv(output / "yearly.csv")
        portfolio.monthly_frame().to_csv(output / "monthly.csv", index_label="month")
        if not quiet:
            click.echo(f"Results saved to {output}")


# ---------------------------------------------------------------------------
# span
# ---------------------------------------------------------------------------

@main.command()
@click.argument("first")
@click.argument("last")
def span(first: str, last: str) -> None:
    """
    Chart bucketing for the months FIRST..LAST (YYYY-MM).

    Example:
        finchron span 2025-01 2040-12
    """
    from .date_int import DateInt
    from .exceptions import TimeIndexError
    from .months_span import MonthsSpan

    try:
        months_span = MonthsSpan.build(DateInt.parse(first), DateInt.parse(last))
    except TimeIndexError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(json.dumps(months_span.to_dict()))


# ---------------------------------------------------------------------------
# config
# ---------------------------------------------------------------------------

@main.group()
def config() -> None:
    """
    Portfolio file commands.

    Validate, display, and create portfolio files.
    """
    pass


@config.command("validate")
@click.argument("config_file", type=click.Path(exists=True, path_type=Path))
@click.pass_context
def config_validate(ctx: click.Context, config_file: Path) -> None:
    """
    Validate a portfolio file.

    Checks that the file is valid JSON, conforms to the portfolio schema
    and builds into a portfolio.

    Example:
        finchron config validate retirement.json
    """
    console = ctx.obj.get("console")
    quiet = ctx.obj.get("quiet", False)

    from .serialization import build_portfolio, load_portfolio_config

    try:
        portfolio_config = load_portfolio_config(config_file)
        portfolio = build_portfolio(portfolio_config)
    except Exception as e:
        click.echo(f"Configuration validation failed: {e}", err=True)
        sys.exit(1)

    if not quiet:
        from rich.panel import Panel

        tax = portfolio_config.tax
        info = f"""
[bold]Portfolio Configuration Valid[/bold]

[cyan]Span:[/cyan] {portfolio.first_date_int} .. {portfolio.last_date_int}
[cyan]Taxes:[/cyan] {tax.tax_year}, {tax.filing_as}, inflation {tax.inflation_rate * 100:.1f}%
[cyan]User age:[/cyan] {portfolio_config.user.start_age}

[cyan]Assets ({len(portfolio.model_assets)}):[/cyan]
"""
        for asset in portfolio.model_assets:
            info += (
                f"  - {asset.display_name}: {asset.instrument.label}, "
                f"{asset.start_currency}, {asset.annual_return_rate * 100:.1f}%\n"
            )
        console.print(Panel(info, title="Configuration Summary", border_style="green"))
    else:
        click.echo("Configuration is valid")
        click.echo(f"Assets: {len(portfolio.model_assets)}")


@config.command("show")
@click.argument("config_file", type=click.Path(exists=True, path_type=Path))
@click.option("--format", "-f", type=click.Choice(["json", "table"]), default="table")
@click.pass_context
def config_show(ctx: click.Context, config_file: Path, format: str) -> None:
    """
    Display a portfolio file.

    Example:
        finchron config show retirement.json --format table
    """
    console = ctx.obj.get("console")

    try:
        with open(config_file, "r") as f:
            config_data = json.load(f)
    except json.JSONDecodeError as e:
        click.echo(f"Error reading {config_file}: {e}", err=True)
        sys.exit(1)

    if format == "json":
        click.echo(json.dumps(config_data, indent=2))
        return

    from rich.table import Table

    assets_table = Table(title=config_data.get("name", "Portfolio"))
    assets_table.add_column("Name", style="cyan")
    assets_table.add_column("Instrument")
    assets_table.add_column("Start", justify="right")
    assets_table.add_column("Finish", justify="right")
    assets_table.add_column("Value", justify="right")
    assets_table.add_column("Rate", justify="right")
    assets_table.add_column("Transfers", justify="right")

    for asset in config_data.get("assets", []):
        rate = asset.get("annual_return_rate", 0)
        assets_table.add_row(
            asset.get("display_name", "Unknown"),
            str(asset.get("instrument", "")),
            asset.get("start_date", ""),
            asset.get("finish_date", ""),
            _money(asset.get("start_value", 0)),
            rate if isinstance(rate, str) else f"{rate * 100:.1f}%",
            str(len(asset.get("fund_transfers", []))),
        )
    console.print(assets_table)


@config.command("create")
@click.argument("output_file", type=click.Path(path_type=Path))
@click.pass_context
def config_create(ctx: click.Context, output_file: Path) -> None:
    """
    Create a starter portfolio file.

    Example:
        finchron config create retirement.json
    """
    quiet = ctx.obj.get("quiet", False)

    from .serialization import SCHEMA_VERSION

    config_data = {
        "schema_version": SCHEMA_VERSION,
        "name": "Retirement",
        "user": {"start_age": 60},
        "tax": {"tax_year": 2025, "filing_as": "single"},
        "chronometer": {"animation_delay": 0.08, "reports": False},
        "assets": [
            {
                "instrument": "monthly_salary",
                "display_name": "Salary",
                "start_date": "2025-01",
                "finish_date": "2029-12",
                "start_value": 9000,
                "annual_return_rate": 0.03,
                "fund_transfers": [
                    {"to_display_name": "401K", "move_value": 10},
                ],
            },
            {
                "instrument": "monthly_expense",
                "display_name": "Living",
                "start_date": "2025-01",
                "finish_date": "2044-12",
                "start_value": -4500,
                "annual_return_rate": 0.03,
            },
            {
                "instrument": "cash",
                "display_name": "Checking",
                "start_date": "2025-01",
                "finish_date": "2044-12",
                "start_value": 20000,
            },
            {
                "instrument": "taxable_equity",
                "display_name": "Brokerage",
                "start_date": "2025-01",
                "finish_date": "2044-12",
                "start_value": 250000,
                "basis_value": 150000,
                "annual_return_rate": 0.06,
                "annual_dividend_rate": 0.015,
            },
            {
                "instrument": "401k",
                "display_name": "401K",
                "start_date": "2025-01",
                "finish_date": "2044-12",
                "start_value": 400000,
                "annual_return_rate": 0.06,
            },
        ],
    }

    output_file.parent.mkdir(parents=True, exist_ok=True)
    with open(output_file, "w") as f:
        json.dump(config_data, f, indent=2)

    if not quiet:
        click.echo(f"Created portfolio file: {output_file}")


if __name__ == "__main__":
    main()
