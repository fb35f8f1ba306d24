"""
Custom exceptions for the Provider Migration engine.

This module defines the exception classes raised by the migration phases
so that the orchestrator can decide between aborting, rolling back and
reporting.
"""

from typing import Any, Dict, List, Optional


class ProviderMigrationError(Exception):
    """Base exception class for provider migration errors."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}


class ConfigurationError(ProviderMigrationError):
    """Raised when there's an error in configuration."""
    pass


class ExtractionError(ProviderMigrationError):
    """Raised when legacy transfer configs cannot be read."""
    pass


class BackupError(ProviderMigrationError):
    """Raised when the pre-migration snapshot cannot be taken."""
    pass


class EncryptionError(ProviderMigrationError):
    """Raised when the encryption collaborator fails."""
    pass


class ProviderValidationError(ProviderMigrationError):
    """Raised when a storage provider record is not valid for its type."""

    def __init__(
        self,
        message: str,
        failed_fields: Optional[List[str]] = None,
        **kwargs
    ):
        super().__init__(message, **kwargs)
        self.failed_fields = failed_fields or []


class MissingRequiredFieldError(ProviderValidationError):
    """Raised when a provider record lacks a field its type requires."""
    pass


class ProviderCreationError(ProviderMigrationError):
    """Raised when storage provider records cannot be created."""
    pass


class ReferenceUpdateError(ProviderMigrationError):
    """Raised when transfer configs cannot be pointed at their providers."""
    pass


class RollbackError(ProviderMigrationError):
    """Raised when rollback operations fail."""
    pass


class MigrationRunError(ProviderMigrationError):
    """Raised when a migration run ends with a terminal error.

    The partially populated run statistics are attached so callers can
    always report how far the run got.
    """

    def __init__(self, message: str, statistics: Any = None, **kwargs):
        super().__init__(message, **kwargs)
        self.statistics = statistics
