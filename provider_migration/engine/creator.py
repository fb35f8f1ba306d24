"""Creation of storage provider records from deduplicated descriptors."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, UTC
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.engine import Connection
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from provider_migration.core.exceptions import (
    EncryptionError,
    MissingRequiredFieldError,
    ProviderCreationError,
    ProviderValidationError,
)
from provider_migration.database.store import ENCRYPTED_COLUMNS, MigrationStore
from provider_migration.models.config import RunOptions
from provider_migration.models.migration import ProviderDescriptor
from provider_migration.providers.registry import ProviderRegistry
from provider_migration.security.sanitizer import sanitize_error_message

logger = logging.getLogger(__name__)

NOT_NULL_MARKERS = ("not null", "cannot be null", "required")


@dataclass
class CreationResult:
    """Provider IDs created per dedup key."""
    provider_ids: Dict[str, int] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)

    @property
    def created_ids(self) -> List[int]:
        return list(self.provider_ids.values())


def build_provider_record(
    descriptor: ProviderDescriptor,
    config_name: Optional[str],
    gateway
) -> Dict[str, Any]:
    """
    Build the storage provider row for a descriptor.

    Secrets are encrypted through the gateway; plaintext secrets never end
    up in the returned record.

    Raises:
        EncryptionError: If a secret cannot be encrypted
    """
    strategy = ProviderRegistry.get_strategy(descriptor.provider_type)
    now = datetime.now(UTC)

    record: Dict[str, Any] = {
        name: value
        for name, value in descriptor.fields.items()
        if name not in ENCRYPTED_COLUMNS
    }
    record.update(
        name=strategy.generate_name(descriptor, config_name),
        type=descriptor.provider_type,
        use_builtin_auth=descriptor.use_builtin_auth,
        authenticated=descriptor.authenticated,
        created_by=descriptor.owner_id,
        created_at=now,
        updated_at=now,
    )

    for secret_field, encrypted_column in ENCRYPTED_COLUMNS.items():
        value = descriptor.fields.get(secret_field)
        record[encrypted_column] = gateway.encrypt(value) if value else None

    return record


def _is_missing_required_field(error: Exception) -> bool:
    if isinstance(error, MissingRequiredFieldError):
        return True
    message = str(error).lower()
    return any(marker in message for marker in NOT_NULL_MARKERS)


def _insert(connection: Connection, store: MigrationStore, record: Mapping[str, Any]) -> int:
    # Savepoint so a failed insert can be retried inside the same transaction
    with connection.begin_nested():
        return store.insert_provider(record)


def _creation_error(error: Exception, options: RunOptions) -> ProviderCreationError:
    details: Dict[str, Any] = {"error_type": type(error).__name__}
    if isinstance(error, ProviderValidationError):
        details["failed_fields"] = error.failed_fields
        message = sanitize_error_message(error.message, options.debug_mode)
    else:
        message = sanitize_error_message(str(error), options.debug_mode)
    logger.error(f"Failed to create provider record: {message}")
    return ProviderCreationError(f"failed to create provider record: {message}", details=details)


def _auto_fill_warning(descriptor: ProviderDescriptor, options: RunOptions) -> str:
    config_id = descriptor.config_ids[0] if descriptor.config_ids else None
    warning = (
        f"Auto-filled missing required fields for {descriptor.provider_type} provider "
        f"(config ID {config_id}). Please update this provider with correct values."
    )
    return sanitize_error_message(warning, options.debug_mode)


def create_providers(
    connection: Connection,
    descriptors: Mapping[str, ProviderDescriptor],
    options: RunOptions,
    gateway
) -> CreationResult:
    """
    Insert one storage provider per unique descriptor.

    Runs inside the caller's transaction. Each insert uses a savepoint; when
    auto-fill is enabled and an insert fails for a missing required field, the
    record is completed with placeholders and retried once.

    Args:
        connection: Connection inside the caller's transaction
        descriptors: Descriptors keyed by dedup key
        options: Run options
        gateway: Encryption gateway for secrets

    Returns:
        Creation result; descriptors get their ``resolved_provider_id`` set

    Raises:
        ProviderCreationError: If any provider cannot be created
    """
    logger.info("Starting creation of StorageProvider records...")
    store = MigrationStore(connection)
    result = CreationResult()

    for key, descriptor in descriptors.items():
        logger.debug(f"Creating StorageProvider for key {key}...")

        config_name = None
        if descriptor.config_ids:
            config = store.get_config(descriptor.config_ids[0])
            if config is not None:
                config_name = config.get("name")

        try:
            record = build_provider_record(descriptor, config_name, gateway)
        except EncryptionError as e:
            raise ProviderCreationError(f"failed to encrypt credentials: {e.message}")

        try:
            provider_id = _insert(connection, store, record)
        except (ProviderValidationError, IntegrityError) as e:
            if not (options.auto_fill and _is_missing_required_field(e)):
                raise _creation_error(e, options)
            if not ProviderRegistry.auto_fill_record(record):
                raise _creation_error(e, options)
            try:
                provider_id = _insert(connection, store, record)
            except (ProviderValidationError, SQLAlchemyError) as retry_error:
                raise _creation_error(retry_error, options)
            warning = _auto_fill_warning(descriptor, options)
            logger.warning(warning)
            result.warnings.append(warning)
        except SQLAlchemyError as e:
            raise _creation_error(e, options)

        descriptor.resolved_provider_id = provider_id
        result.provider_ids[key] = provider_id
        logger.info(f"Created StorageProvider ID {provider_id} for {descriptor.provider_type} provider")

    logger.info(f"Successfully created {len(result.provider_ids)} StorageProvider records")
    return result
