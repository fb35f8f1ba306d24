"""
Provider Migration

Moves connection details embedded in transfer configs into a deduplicated
catalog of encrypted storage providers and rewires every config to
reference its provider.
"""

__version__ = "0.1.0"

from provider_migration.engine.orchestrator import ProviderMigrationEngine, run_migration
from provider_migration.models.config import MigrationSettings, RunOptions
from provider_migration.models.migration import MigrationRunStatistics, MigrationState

__all__ = [
    "ProviderMigrationEngine",
    "run_migration",
    "MigrationSettings",
    "RunOptions",
    "MigrationRunStatistics",
    "MigrationState",
]
