"""Command-line interface for the eco-ops dashboard backend."""

import json
import logging
from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from . import db
from .aggregator import DashboardAggregator
from .alerts import ErrorAlert
from .analysis.stats import format_stats_text
from .config import assert_env, load_settings
from .errors import ConfigurationError, EcoOpsError
from .log import setup_logging
from .models import utc_today
from .storage import HourStore, MemoryHourStore, SqliteHourStore

console = Console()

REQUIRED_LIVE_KEYS = ["OPENWEATHER_API_KEY", "FORM_ENDPOINT"]


@click.group()
@click.option("--db-path", type=click.Path(), help="Path to SQLite database")
@click.option("--config", "config_path", type=click.Path(), help="Path to YAML config file")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, db_path, config_path, verbose):
    """Eco ops dashboard - staff hours, weather and electricity cost."""
    ctx.ensure_object(dict)
    try:
        settings = load_settings(Path(config_path) if config_path else None)
    except ConfigurationError as e:
        raise click.ClickException(str(e))

    if db_path:
        settings.database_path = Path(db_path)

    setup_logging(logging.DEBUG if verbose or settings.is_development else logging.INFO)
    ctx.obj["settings"] = settings


def get_store(ctx) -> HourStore:
    """The hour store for this invocation (in-memory seed data in mock mode)."""
    settings = ctx.obj["settings"]
    if "store" not in ctx.obj:
        if settings.use_mock_data:
            ctx.obj["store"] = MemoryHourStore()
        else:
            ctx.obj["store"] = SqliteHourStore(settings.database_path)
    return ctx.obj["store"]


def report_error(ctx, error: Exception, context: str) -> None:
    """Send a best-effort alert for a failed command."""
    ErrorAlert(ctx.obj["settings"]).notify(error, context)


# Database commands
@cli.group()
def database():
    """Database management commands."""
    pass


@database.command("init")
@click.pass_context
def db_init(ctx):
    """Initialize the database schema."""
    db.init_db(ctx.obj["settings"].database_path)
    console.print("[green]Database initialized successfully[/green]")


@database.command("stats")
@click.pass_context
def db_stats(ctx):
    """Show database statistics."""
    stats = db.get_stats(ctx.obj["settings"].database_path)

    table = Table(title="Database Statistics")
    table.add_column("Category", style="cyan")
    table.add_column("Count", justify="right")
    table.add_column("Range / Hours")

    entries = stats["hour_entries"]
    table.add_row(
        "Hour entries",
        str(entries["count"]),
        f"{entries['earliest'] or 'N/A'} → {entries['latest'] or 'N/A'}",
    )

    days = stats["days"]
    table.add_row("Days logged", str(days["count"]), f"peak {days['peak_hours'] or 0} h")

    for staff, info in stats.get("hours_by_staff", {}).items():
        table.add_row(f"  └ {staff}", str(info["count"]), f"{info['hours']} h")

    console.print(table)


# Hour entry commands
@cli.group()
def hours():
    """Log and list staff hours."""
    pass


@hours.command("log")
@click.option("--staff", "staff_name", required=True, help="Staff member name")
@click.option("--hours", "hours_worked", required=True, type=float, help="Hours worked (0-24)")
@click.option("--date", "entry_date", help="Date worked (YYYY-MM-DD), defaults to today")
@click.pass_context
def hours_log(ctx, staff_name, hours_worked, entry_date):
    """Log hours worked by a staff member."""
    entry_date = entry_date or utc_today().isoformat()
    try:
        entry = get_store(ctx).log_hours(staff_name, hours_worked, entry_date)
    except ValueError as e:
        console.print(f"[red]Invalid entry: {e}[/red]")
        ctx.exit(2)
    except EcoOpsError as e:
        console.print(f"[red]Failed to log hours: {e}[/red]")
        report_error(ctx, e, "hours log")
        ctx.exit(1)

    console.print(f"[green]Logged {entry.hours} h for {entry.staff_name} on {entry.date}[/green]")
    if ctx.obj["settings"].use_mock_data:
        console.print("[yellow]Mock mode: entry is not persisted[/yellow]")


@hours.command("list")
@click.option("--staff", "staff_name", help="Filter by staff member")
@click.option("--date", "entry_date", help="Filter by date (YYYY-MM-DD)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def hours_list(ctx, staff_name, entry_date, as_json):
    """List logged hours, newest first."""
    try:
        entries = get_store(ctx).get_hours(staff_name=staff_name, date=entry_date)
    except EcoOpsError as e:
        console.print(f"[red]Failed to list hours: {e}[/red]")
        report_error(ctx, e, "hours list")
        ctx.exit(1)

    if as_json:
        console.print(json.dumps([e.to_dict() for e in entries], indent=2))
        return

    if not entries:
        console.print("[yellow]No entries found[/yellow]")
        return

    table = Table(title="Staff Hours")
    table.add_column("Date", style="cyan")
    table.add_column("Staff")
    table.add_column("Hours", justify="right")
    table.add_column("Logged at", style="dim")

    for entry in entries:
        table.add_row(entry.date, entry.staff_name, f"{entry.hours:g}", entry.created_at)

    console.print(table)


# Produced interfaces
@cli.command("stats")
@click.option("--location", help="Weather location (e.g. 'London,UK')")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def stats_cmd(ctx, location, as_json):
    """Show dashboard statistics for the last 7 days."""
    settings = ctx.obj["settings"]
    aggregator = DashboardAggregator.from_settings(settings, store=get_store(ctx))
    try:
        stats = aggregator.run(location)
    finally:
        aggregator.close()

    if as_json:
        console.print(json.dumps(stats.to_dict(), indent=2))
    else:
        console.print(format_stats_text(stats))


@cli.command("sync")
@click.option("--location", help="Weather location (e.g. 'London,UK')")
@click.option("--period", help="Billing period (YYYY-MM), defaults to this month")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def sync_cmd(ctx, location, period, as_json):
    """Fetch current weather and utility data."""
    settings = ctx.obj["settings"]
    aggregator = DashboardAggregator.from_settings(settings, store=MemoryHourStore([]))
    try:
        bundle = aggregator.sync(location, period)
    finally:
        aggregator.close()

    if as_json:
        console.print(json.dumps(bundle.to_dict(), indent=2))
        return

    table = Table(title=f"External Data (synced {bundle.synced_at})")
    table.add_column("Source", style="cyan")
    table.add_column("Value")

    table.add_row("Temperature", f"{bundle.weather.temperature}°C")
    table.add_row("Humidity", f"{bundle.weather.humidity}%")
    table.add_row("Conditions", bundle.weather.description)
    table.add_row("Period", bundle.utility.period)
    table.add_row("Cost per kWh", f"{bundle.utility.cost_per_kwh}")
    table.add_row("Total kWh", f"{bundle.utility.total_kwh}")
    table.add_row("Total cost", f"{bundle.utility.total_cost}")

    console.print(table)
    if bundle.used_fallback:
        console.print("[yellow]Some sources were unavailable - fallback data shown[/yellow]")


@cli.command("check-env")
@click.pass_context
def check_env(ctx):
    """Verify the settings required for live (non-mock) operation."""
    settings = ctx.obj["settings"]
    if settings.use_mock_data:
        console.print("[yellow]Mock mode is on (set USE_MOCK_DATA=false for live data)[/yellow]")
        return
    try:
        assert_env(settings, REQUIRED_LIVE_KEYS)
    except ConfigurationError as e:
        console.print(f"[red]{e}[/red]")
        ctx.exit(1)
    console.print("[green]All required settings present[/green]")


if __name__ == "__main__":
    cli()
