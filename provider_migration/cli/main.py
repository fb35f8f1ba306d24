"""
Main CLI entry point for the Provider Migration tooling.

This module provides the ``provider-migration`` command-line interface
using Click with Rich formatting.
"""

import sys
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape

from provider_migration import __version__
from provider_migration.core.exceptions import MigrationRunError, ProviderMigrationError
from provider_migration.database.schema import create_db_engine, create_schema
from provider_migration.engine.orchestrator import ProviderMigrationEngine
from provider_migration.engine.validator import validate_integrity
from provider_migration.models.config import MigrationSettings
from provider_migration.monitoring.report import render_report, render_validation
from provider_migration.security.encryption import FernetCredentialEncryptor
from provider_migration.utils.logging import get_logger, setup_logging

console = Console()
logger = get_logger("cli")


def _load_settings(
    ctx: click.Context,
    config: Optional[str],
    database_url: Optional[str]
) -> MigrationSettings:
    """Load settings, apply command line overrides and configure logging."""
    settings = MigrationSettings.load(config)
    if database_url:
        settings = settings.model_copy(update={"database_url": database_url})

    level = "DEBUG" if ctx.obj.get('verbose', False) else settings.log_level
    setup_logging(level=level, log_file=settings.log_file)
    return settings


@click.group(invoke_without_command=True)
@click.option('--version', is_flag=True, help='Show version information')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose output')
@click.pass_context
def main(ctx: click.Context, version: bool, verbose: bool):
    """
    Provider Migration

    Moves inline transfer config credentials into shared, encrypted
    storage providers.
    """
    # Ensure context object exists
    ctx.ensure_object(dict)
    ctx.obj['verbose'] = verbose

    if version:
        console.print(f"Provider Migration version {__version__}")
        sys.exit(0)

    # If no subcommand is provided, show help
    if ctx.invoked_subcommand is None:
        console.print(ctx.get_help())


@main.command('migrate-providers')
@click.option('--dry-run', is_flag=True, help='Simulate the migration without changing data')
@click.option('--validate-only', is_flag=True, help='Only extract and count providers')
@click.option('--force', is_flag=True, help='Keep the migration even if validation fails')
@click.option('--backup-dir', type=click.Path(file_okay=False), help='Directory for the JSON backup')
@click.option('--debug', is_flag=True, help='Show redacted error details')
@click.option('--auto-fill', is_flag=True, help='Fill missing required fields with placeholders')
@click.option('--database-url', help='Database URL (overrides settings)')
@click.option('--config', '-c', type=click.Path(exists=True), help='Settings file path')
@click.pass_context
def migrate_providers(
    ctx: click.Context,
    dry_run: bool,
    validate_only: bool,
    force: bool,
    backup_dir: Optional[str],
    debug: bool,
    auto_fill: bool,
    database_url: Optional[str],
    config: Optional[str]
):
    """Migrate inline transfer config credentials to storage providers."""
    try:
        settings = _load_settings(ctx, config, database_url)
        options = settings.run_options(
            dry_run=dry_run,
            validation_only=validate_only,
            force=force,
            backup_dir=backup_dir,
            debug_mode=debug,
            auto_fill=auto_fill,
        )
        gateway = FernetCredentialEncryptor.from_environment(settings.encryption_key_env) if options.mutates else None
        engine = create_db_engine(settings.database_url)
    except ProviderMigrationError as e:
        console.print(f"[red]Error: {escape(e.message)}[/red]")
        sys.exit(1)

    if options.dry_run:
        console.print("[yellow]Dry run: no data will be changed[/yellow]")
    elif options.validation_only:
        console.print("[yellow]Validation only: migration stops after extraction[/yellow]")

    try:
        stats = ProviderMigrationEngine(engine, gateway).run_migration(options)
    except MigrationRunError as e:
        logger.debug(f"Migration run ended in state {e.statistics.state.value}")
        render_report(e.statistics, console)
        console.print(f"[red]Migration failed: {escape(e.message)}[/red]")
        sys.exit(1)
    finally:
        engine.dispose()

    render_report(stats, console)
    if stats.errors:
        console.print("[red]Migration finished with errors[/red]")
        sys.exit(1)
    console.print("[green]✓ Provider migration completed[/green]")


@main.command()
@click.option('--database-url', help='Database URL (overrides settings)')
@click.option('--config', '-c', type=click.Path(exists=True), help='Settings file path')
@click.pass_context
def validate(ctx: click.Context, database_url: Optional[str], config: Optional[str]):
    """Check that every transfer config references a valid provider."""
    try:
        settings = _load_settings(ctx, config, database_url)
        gateway = FernetCredentialEncryptor.from_environment(settings.encryption_key_env)
        engine = create_db_engine(settings.database_url)
        try:
            with engine.connect() as connection:
                result = validate_integrity(connection, gateway)
        finally:
            engine.dispose()
    except ProviderMigrationError as e:
        console.print(f"[red]Error: {escape(e.message)}[/red]")
        sys.exit(1)

    render_validation(result, console)
    if not result.success:
        sys.exit(1)


@main.command('init-db')
@click.option('--database-url', help='Database URL (overrides settings)')
@click.option('--config', '-c', type=click.Path(exists=True), help='Settings file path')
@click.pass_context
def init_db(ctx: click.Context, database_url: Optional[str], config: Optional[str]):
    """Create the transfer config and storage provider tables."""
    try:
        settings = _load_settings(ctx, config, database_url)
    except ProviderMigrationError as e:
        console.print(f"[red]Error: {escape(e.message)}[/red]")
        sys.exit(1)

    engine = create_db_engine(settings.database_url)
    try:
        create_schema(engine)
    finally:
        engine.dispose()
    console.print("[green]✓ Database schema created[/green]")


if __name__ == '__main__':
    main()
