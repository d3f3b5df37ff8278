"""Console output shared by the docbridge commands."""

from collections.abc import Iterable, Mapping, Sequence
from typing import Any

import click
from rich.console import Console
from rich.table import Table

from docbridge.migration.importer import ImportSummary

console = Console()

_MARKS = {
    "success": ("✓", "green"),
    "error": ("✗", "red"),
    "warning": ("⚠", "yellow"),
    "info": ("ℹ", "blue"),
}


def _echo(kind: str, message: str, err: bool = False) -> None:
    mark, colour = _MARKS[kind]
    click.secho(f"{mark} {message}", fg=colour, err=err)


def echo_success(message: str) -> None:
    _echo("success", message)


def echo_error(message: str) -> None:
    _echo("error", message, err=True)


def echo_warning(message: str) -> None:
    _echo("warning", message)


def echo_info(message: str) -> None:
    _echo("info", message)


def format_duration(seconds: float) -> str:
    """Render a run duration, e.g. ``42.5s``, ``3m 07s`` or ``1h 02m 05s``."""
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes, secs = divmod(int(seconds), 60)
    hours, minutes = divmod(minutes, 60)
    if hours:
        return f"{hours}h {minutes:02d}m {secs:02d}s"
    return f"{minutes}m {secs:02d}s"


def print_settings(title: str, rows: Iterable[Sequence[Any]]) -> None:
    """Print a two-column setting/value table."""
    table = Table(title=title)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    for name, value in rows:
        table.add_row(name, str(value))
    console.print(table)


def print_counts(title: str, counts: Mapping[str, int]) -> None:
    """Print named item counts with thousands separators."""
    table = Table(title=title)
    table.add_column("Items", style="cyan")
    table.add_column("Count", justify="right")
    for name, count in counts.items():
        table.add_row(name, f"{count:,}")
    console.print(table)


def print_import_summary(summary: ImportSummary) -> None:
    """Print the outcome of an import run, grouped by ranges, blocks and items."""
    if summary.succeeded:
        outcome = "[green]completed[/green]"
    elif summary.aborted:
        outcome = "[red]aborted[/red]"
    else:
        outcome = "[yellow]finished with errors[/yellow]"

    table = Table(title="Import Summary")
    table.add_column("", style="cyan")
    table.add_column("Done", justify="right")
    table.add_column("Stopped", justify="right")
    table.add_column("Failed", justify="right")

    table.add_row(
        "Ranges",
        f"{summary.ranges_completed:,} of {summary.ranges_dispatched:,}",
        f"{summary.ranges_aborted:,}",
        f"{summary.ranges_failed:,}",
    )
    table.add_row("Blocks", f"{summary.blocks_committed:,}", "", f"{summary.blocks_failed:,}")
    table.add_row(
        "Items",
        f"{summary.items_processed:,} of {summary.planned_items:,}",
        "",
        f"{len(summary.failed_item_ids):,}",
    )
    console.print(table)
    console.print(
        f"Run {outcome} in {format_duration(summary.duration_seconds)}: "
        f"{summary.commit_attempts:,} commit attempts, {summary.renames:,} renames, "
        f"{summary.total_pending:,} items were pending"
    )
