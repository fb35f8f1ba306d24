"""Utility functions for the Provider Migration tooling."""

from provider_migration.utils.logging import get_logger, setup_logging

__all__ = [
    "get_logger",
    "setup_logging",
]
