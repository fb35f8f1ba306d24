"""
Data models for the Provider Migration engine.

This module contains the Pydantic models and dataclasses used for
configuration, run options and migration runtime state.
"""

from provider_migration.models.config import (
    MigrationSettings,
    RunOptions,
)
from provider_migration.models.migration import (
    Direction,
    IntegrityValidationResult,
    MigrationBackupSnapshot,
    MigrationRunStatistics,
    MigrationState,
    ProviderDescriptor,
)

__all__ = [
    # Configuration models
    "MigrationSettings",
    "RunOptions",
    # Runtime models
    "Direction",
    "IntegrityValidationResult",
    "MigrationBackupSnapshot",
    "MigrationRunStatistics",
    "MigrationState",
    "ProviderDescriptor",
]
