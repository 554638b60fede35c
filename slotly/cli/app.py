"""
Main CLI application using Typer.
"""

import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Annotated

import pendulum
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..config import AppConfig, get_default_config_path
from ..domain.exceptions import SlotlyError
from ..domain.models import WEEKDAY_NAMES
from ..schemas import DayAvailabilityQuery, MonthAvailabilityQuery
from ..services.availability_facade import build_authenticator, build_availability_facade

app = typer.Typer(
    name="slotly",
    help="Look up bookable appointment days and time slots",
    add_completion=False
)

console = Console()

ConfigOption = Annotated[
    Optional[Path],
    typer.Option("--config", "-c", help="Path to config file. Defaults to ./config.yaml")
]
LocalOption = Annotated[
    bool,
    typer.Option("--local", help="Use the local availability engine only, skip the booking API.")
]


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging.")] = False,
):
    """
    slotly - appointment availability for booking front-ends.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
    )


def _load_config(config_file: Optional[Path]) -> AppConfig:
    config_path = config_file or get_default_config_path()
    return AppConfig.load_from_yaml(config_path)


def _months_to_show(tz: str, year: Optional[int], month: Optional[int]) -> List[tuple]:
    """
    Resolve the month(s) to query: the given one, or this month and the next.
    """
    if year is not None and month is None:
        console.print("[red]Error: --year requires --month.[/red]")
        raise typer.Exit(1)

    if month is not None:
        if not 1 <= month <= 12:
            console.print(f"[red]Error: month must be between 1 and 12, got {month}.[/red]")
            raise typer.Exit(1)
        return [(year or pendulum.now(tz).year, month)]

    this_month = pendulum.now(tz).start_of("month")
    next_month = this_month.add(months=1)
    return [(this_month.year, this_month.month), (next_month.year, next_month.month)]


@app.command()
def days(
    business: Annotated[str, typer.Argument(help="Business id or slug")],
    service: Annotated[str, typer.Argument(help="Service id")],
    year: Annotated[Optional[int], typer.Option("--year", help="Year of the month to show")] = None,
    month: Annotated[Optional[int], typer.Option("--month", "-m", help="Month to show (1-12)")] = None,
    config_file: ConfigOption = None,
    local: LocalOption = False,
):
    """
    Show the days that still have open slots.

    Examples:

        # This month and next month
        slotly days studio-mila haircut

        # A specific month, computed locally
        slotly days studio-mila haircut --year 2025 --month 3 --local
    """
    try:
        config = _load_config(config_file)
        business_config = config.find_business(business)
        business_id = business_config.id if business_config else business
        tz = config.timezone_for(business_config) if business_config else config.timezone

        facade = build_availability_facade(config, force_local=local)

        for query_year, query_month in _months_to_show(tz, year, month):
            query = MonthAvailabilityQuery(
                business_id=business_id,
                service_id=service,
                year=query_year,
                month=query_month,
            )
            result = asyncio.run(facade.get_month_availability(query))

            title = pendulum.datetime(query_year, query_month, 1, tz=tz).format("MMMM YYYY", locale="en")
            console.print(f"\n[bold cyan]{title}[/bold cyan]")
            if not result.available_dates:
                console.print("  [yellow]No available days.[/yellow]")
                continue

            for date_iso in result.available_dates:
                weekday = WEEKDAY_NAMES[pendulum.parse(date_iso).isoweekday()]
                console.print(f"  {date_iso} ({weekday})")

        console.print()

    except FileNotFoundError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    except (SlotlyError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def slots(
    business: Annotated[str, typer.Argument(help="Business id or slug")],
    service: Annotated[str, typer.Argument(help="Service id")],
    date: Annotated[str, typer.Argument(help="Date (YYYY-MM-DD)")],
    config_file: ConfigOption = None,
    local: LocalOption = False,
):
    """
    Show the open time slots of one day.
    """
    try:
        config = _load_config(config_file)
        business_config = config.find_business(business)
        business_id = business_config.id if business_config else business

        facade = build_availability_facade(config, force_local=local)
        query = DayAvailabilityQuery(business_id=business_id, service_id=service, date=date)
        result = asyncio.run(facade.get_day_availability(query))

        console.print()
        if not result.slots:
            console.print(
                f"[yellow]No available time slots on {date}.[/yellow]\n"
                "Pick another day."
            )
        else:
            console.print(f"[bold green]{len(result.slots)} open slot(s) on {date}:[/bold green]\n")
            for slot in result.slots:
                console.print(f"  {slot.start_time} - {slot.end_time}")

        console.print()

    except FileNotFoundError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    except (SlotlyError, ValueError) as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def businesses(
    config_file: ConfigOption = None,
):
    """
    List all configured businesses and their services.
    """
    try:
        config = _load_config(config_file)

        if not config.businesses:
            console.print("[yellow]No businesses defined in the config file.[/yellow]")
            return

        table = Table(
            title="Configured businesses",
            show_header=True,
            header_style="bold cyan"
        )
        table.add_column("Id", style="bold yellow")
        table.add_column("Name")
        table.add_column("Timezone", style="dim")
        table.add_column("Open on")
        table.add_column("Services")

        for business in config.businesses:
            open_days = sorted({hours.weekday for hours in business.working_hours})
            table.add_row(
                business.id,
                business.display_name(),
                config.timezone_for(business),
                ", ".join(WEEKDAY_NAMES[day][:3] for day in open_days) or "-",
                ", ".join(f"{s.id} ({s.duration_minutes} min)" for s in business.services) or "-",
            )

        console.print()
        console.print(table)
        console.print()

    except FileNotFoundError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)

    except ValueError as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def clear_session(
    config_file: ConfigOption = None,
):
    """
    Clear the cached booking API session token.
    """
    try:
        config = _load_config(config_file)
        build_authenticator(config).clear_cache()
        console.print("\n[green]✓ Session cache cleared.[/green]")
        console.print("A new session will be requested on the next call.\n")

    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {e}")
        raise typer.Exit(1)


@app.command()
def version():
    """
    Show version information.
    """
    from .. import __version__
    console.print(f"\n[bold cyan]slotly[/bold cyan] version [bold]{__version__}[/bold]\n")


if __name__ == "__main__":
    app()
