"""Core components shared by the migration phases."""

from provider_migration.core.exceptions import (
    BackupError,
    ConfigurationError,
    EncryptionError,
    ExtractionError,
    MigrationRunError,
    MissingRequiredFieldError,
    ProviderCreationError,
    ProviderMigrationError,
    ProviderValidationError,
    ReferenceUpdateError,
    RollbackError,
)

__all__ = [
    "BackupError",
    "ConfigurationError",
    "EncryptionError",
    "ExtractionError",
    "MigrationRunError",
    "MissingRequiredFieldError",
    "ProviderCreationError",
    "ProviderMigrationError",
    "ProviderValidationError",
    "ReferenceUpdateError",
    "RollbackError",
]
