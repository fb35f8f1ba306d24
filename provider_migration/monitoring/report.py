"""Operator-facing reports of migration runs and integrity checks."""

from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from provider_migration.models.migration import (
    IntegrityValidationResult,
    MigrationRunStatistics,
    MigrationState,
)

STATE_STYLES = {
    MigrationState.DONE: "green",
    MigrationState.ROLLED_BACK: "yellow",
    MigrationState.FAILED: "red",
}


def _timestamp(value) -> str:
    return value.isoformat(timespec="seconds") if value is not None else "-"


def format_report(stats: Optional[MigrationRunStatistics]) -> str:
    """Render run statistics as plain text."""
    if stats is None:
        return "No migration statistics available"

    duration = f"{stats.duration:.3f}s" if stats.duration is not None else "-"
    lines = [
        "=== Provider Data Migration Report ===",
        "",
        f"State:                 {stats.state.value}",
        f"Started:               {_timestamp(stats.started_at)}",
        f"Completed:             {_timestamp(stats.completed_at)}",
        f"Duration:              {duration}",
        f"Total Configs:         {stats.total_configs}",
        f"Source Providers:      {stats.unique_source_providers}",
        f"Destination Providers: {stats.unique_destination_providers}",
        f"Providers Created:     {stats.providers_created}",
        f"Configs Updated:       {stats.configs_updated}",
    ]

    if stats.errors:
        lines += ["", "Errors:"]
        lines += [f"{i}. {error}" for i, error in enumerate(stats.errors, 1)]
    if stats.warnings:
        lines += ["", "Warnings:"]
        lines += [f"{i}. {warning}" for i, warning in enumerate(stats.warnings, 1)]
    if not stats.errors and not stats.warnings:
        lines += ["", "No errors or warnings reported."]

    lines += ["", "=== End of Report ==="]
    return "\n".join(lines) + "\n"


def render_report(stats: MigrationRunStatistics, console: Console) -> None:
    """Print run statistics as a Rich table."""
    table = Table(title="Provider Data Migration Report", show_header=True)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")

    style = STATE_STYLES.get(stats.state, "white")
    table.add_row("State", f"[{style}]{stats.state.value}[/{style}]")
    table.add_row("Started", _timestamp(stats.started_at))
    table.add_row("Completed", _timestamp(stats.completed_at))
    if stats.duration is not None:
        table.add_row("Duration", f"{stats.duration:.3f}s")
    table.add_row("Total Configs", str(stats.total_configs))
    table.add_row("Source Providers", str(stats.unique_source_providers))
    table.add_row("Destination Providers", str(stats.unique_destination_providers))
    table.add_row("Providers Created", str(stats.providers_created))
    table.add_row("Configs Updated", str(stats.configs_updated))
    console.print(table)

    if stats.errors:
        console.print(Panel(
            "\n".join(f"{i}. {escape(error)}" for i, error in enumerate(stats.errors, 1)),
            title="Errors",
            border_style="red"
        ))
    if stats.warnings:
        console.print(Panel(
            "\n".join(f"{i}. {escape(warning)}" for i, warning in enumerate(stats.warnings, 1)),
            title="Warnings",
            border_style="yellow"
        ))


def render_validation(result: IntegrityValidationResult, console: Console) -> None:
    """Print an integrity validation result."""
    table = Table(title="Migration Integrity", show_header=True)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", justify="right")
    table.add_row("Total Configs", str(result.total_configs))
    table.add_row("Valid Configs", str(result.valid_configs))
    table.add_row("Invalid Configs", str(result.invalid_configs))
    table.add_row("Missing Providers", str(result.missing_providers))
    console.print(table)

    if result.success:
        console.print("[green]✓ All transfer configs reference valid providers[/green]")
        return

    console.print(Panel(
        "\n".join(escape(error) for error in result.errors),
        title=f"{len(result.config_ids_with_errors)} config(s) with errors",
        border_style="red"
    ))
