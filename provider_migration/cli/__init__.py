"""Command-line interface for the Provider Migration tooling."""

from provider_migration.cli.main import main

__all__ = ["main"]
