"""Read-only integrity check of migrated transfer configs."""

import logging
from typing import Any, Dict, Mapping, Optional

from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from provider_migration.core.exceptions import ExtractionError, ProviderValidationError
from provider_migration.database.store import (
    MigrationStore,
    side_type,
    uses_provider_reference,
)
from provider_migration.models.config import RunOptions
from provider_migration.models.migration import Direction, IntegrityValidationResult
from provider_migration.security.sanitizer import sanitize_error_message

logger = logging.getLogger(__name__)

ENCRYPTED_FIELD_LABELS = {
    "encrypted_password": "password",
    "encrypted_secret_key": "secret key",
    "encrypted_client_secret": "client secret",
}


def _is_local(provider_type: str) -> bool:
    return provider_type.startswith("local")


def _validate_side(
    store: MigrationStore,
    config: Mapping[str, Any],
    direction: Direction,
    gateway,
    result: IntegrityValidationResult,
    providers: Dict[int, Optional[Dict[str, Any]]]
) -> bool:
    config_id = config["id"]
    declared_type = side_type(config, direction).lower()
    side = direction.value
    needs_provider = bool(declared_type) and not _is_local(declared_type)
    valid = True

    if needs_provider and not uses_provider_reference(config, direction):
        result.add_error(config_id, f"Config ID {config_id} is missing {side} provider reference")
        valid = False

    if uses_provider_reference(config, direction):
        provider_id = config[direction.reference_column]
        if provider_id not in providers:
            providers[provider_id] = store.get_provider(provider_id)
        provider = providers[provider_id]

        if provider is None:
            result.add_error(
                config_id,
                f"Config ID {config_id} has {side} provider reference {provider_id} but the provider does not exist"
            )
            result.missing_providers += 1
            valid = False
        elif (provider["type"] or "").lower() != declared_type:
            result.add_error(
                config_id,
                f"Config ID {config_id} {side} provider type mismatch: "
                f"config={declared_type}, provider={provider['type']}"
            )
            valid = False

    if not needs_provider:
        return valid

    try:
        credentials = store.get_side_credentials(config, direction)
    except ProviderValidationError as e:
        result.add_error(config_id, f"Config ID {config_id} failed to get {side} credentials: {e.message}")
        return False

    for column, label in ENCRYPTED_FIELD_LABELS.items():
        value = credentials.get(column)
        if value and not gateway.is_encrypted(value):
            result.add_error(config_id, f"Config ID {config_id} {side} {label} is not properly encrypted")
            valid = False

    return valid


def validate_integrity(
    connection: Connection,
    gateway,
    options: Optional[RunOptions] = None
) -> IntegrityValidationResult:
    """
    Check every transfer config against the provider catalog.

    Sides with a non-local type must reference a provider whose credentials
    can be retrieved and whose secrets are encrypted. Every referenced
    provider must exist and match the declared type of its side.

    Args:
        connection: Connection to read from
        gateway: Encryption gateway used to recognise encrypted values
        options: Run options

    Returns:
        Validation result; findings are data, not exceptions

    Raises:
        ExtractionError: If configs or providers cannot be read
    """
    options = options or RunOptions()
    logger.info("Starting validation of migration integrity...")
    store = MigrationStore(connection, gateway)
    result = IntegrityValidationResult()
    providers: Dict[int, Optional[Dict[str, Any]]] = {}

    try:
        configs = store.list_configs()
        result.total_configs = len(configs)
        logger.info(f"Found {result.total_configs} transfer configs for validation")

        for config in configs:
            config_valid = True
            for direction in Direction:
                if not _validate_side(store, config, direction, gateway, result, providers):
                    config_valid = False

            if config_valid:
                result.valid_configs += 1
            else:
                result.invalid_configs += 1
                result.success = False
    except SQLAlchemyError as e:
        message = sanitize_error_message(str(e), options.debug_mode)
        raise ExtractionError(f"failed to retrieve transfer configs for validation: {message}")

    if result.success:
        logger.info(f"Validation successful. All {result.valid_configs} configs are valid.")
    else:
        logger.warning(
            f"Validation failed. {result.valid_configs} valid configs, "
            f"{result.invalid_configs} invalid configs, {result.missing_providers} missing providers."
        )
    return result
