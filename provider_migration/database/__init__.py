"""Persistence layer: SQLAlchemy schema and the migration store."""

from provider_migration.database.schema import (
    create_db_engine,
    create_schema,
    metadata,
    storage_providers,
    transfer_configs,
)
from provider_migration.database.store import (
    MigrationStore,
    is_fully_migrated,
    side_fields,
    side_type,
    uses_provider_reference,
)

__all__ = [
    "create_db_engine",
    "create_schema",
    "metadata",
    "storage_providers",
    "transfer_configs",
    "MigrationStore",
    "is_fully_migrated",
    "side_fields",
    "side_type",
    "uses_provider_reference",
]
