"""
Data access for transfer configs and storage providers.

``MigrationStore`` wraps a SQLAlchemy ``Connection``; it never begins or
commits transactions itself, callers hand it a connection that is already
inside the transaction they own.
"""

import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.engine import Connection

from provider_migration.core.exceptions import ProviderValidationError
from provider_migration.database.schema import (
    SIDE_FIELDS,
    side_column,
    storage_providers,
    transfer_configs,
)
from provider_migration.models.migration import Direction
from provider_migration.providers.registry import ProviderRegistry

logger = logging.getLogger(__name__)

# Inline secret column -> storage provider column holding its cipher text.
ENCRYPTED_COLUMNS = {
    "password": "encrypted_password",
    "secret_key": "encrypted_secret_key",
    "client_secret": "encrypted_client_secret",
}

PROVIDER_CREDENTIAL_FIELDS = (
    "type", "host", "port", "username", "encrypted_password", "key_file",
    "bucket", "region", "access_key", "encrypted_secret_key", "endpoint",
    "share", "domain", "passive_mode", "client_id", "encrypted_client_secret",
    "drive_id", "team_drive", "read_only", "start_year", "include_archived",
    "use_builtin_auth", "authenticated",
)


def side_fields(config: Mapping[str, Any], direction: Direction) -> Dict[str, Any]:
    """Inline connection values of one side of a config, without prefix."""
    prefix = direction.column_prefix
    return {name: config.get(side_column(prefix, name)) for name in SIDE_FIELDS}


def side_type(config: Mapping[str, Any], direction: Direction) -> str:
    return (config.get(direction.type_column) or "").strip()


def uses_provider_reference(config: Mapping[str, Any], direction: Direction) -> bool:
    """A side is migrated only when its reference is set and non-zero."""
    return bool(config.get(direction.reference_column))


def is_fully_migrated(config: Mapping[str, Any]) -> bool:
    return all(uses_provider_reference(config, direction) for direction in Direction)


class MigrationStore:
    """Find/first/save/delete/count helpers over the migration tables."""

    def __init__(self, connection: Connection, gateway=None):
        self.connection = connection
        self.gateway = gateway

    # Transfer configs

    def list_configs(self) -> List[Dict[str, Any]]:
        result = self.connection.execute(
            select(transfer_configs).order_by(transfer_configs.c.id)
        )
        return [dict(row._mapping) for row in result]

    def get_config(self, config_id: int) -> Optional[Dict[str, Any]]:
        row = self.connection.execute(
            select(transfer_configs).where(transfer_configs.c.id == config_id)
        ).first()
        return dict(row._mapping) if row is not None else None

    def update_config(self, config_id: int, values: Mapping[str, Any]) -> int:
        """Update selected columns of a config and return the affected row count."""
        result = self.connection.execute(
            update(transfer_configs)
            .where(transfer_configs.c.id == config_id)
            .values(**values)
        )
        return result.rowcount

    def restore_config(self, config: Mapping[str, Any]) -> None:
        """Write a full config row back, re-inserting it if it no longer exists."""
        values = dict(config)
        config_id = values.pop("id")
        if self.update_config(config_id, values) == 0:
            logger.info(f"Config ID {config_id} no longer exists, re-inserting it")
            self.connection.execute(insert(transfer_configs).values(id=config_id, **values))

    def insert_config(self, values: Mapping[str, Any]) -> int:
        result = self.connection.execute(insert(transfer_configs).values(**values))
        return result.inserted_primary_key[0]

    def count_configs(self) -> int:
        return self.connection.execute(
            select(func.count()).select_from(transfer_configs)
        ).scalar_one()

    # Storage providers

    def insert_provider(self, record: Mapping[str, Any]) -> int:
        """Validate and insert a storage provider record.

        Raises:
            ProviderValidationError: If the record is not valid for its type
            sqlalchemy.exc.DBAPIError: If the database rejects the insert
        """
        ProviderRegistry.validate_record(record)
        result = self.connection.execute(insert(storage_providers).values(**record))
        return result.inserted_primary_key[0]

    def get_provider(self, provider_id: int) -> Optional[Dict[str, Any]]:
        row = self.connection.execute(
            select(storage_providers).where(storage_providers.c.id == provider_id)
        ).first()
        return dict(row._mapping) if row is not None else None

    def list_providers(self) -> List[Dict[str, Any]]:
        result = self.connection.execute(
            select(storage_providers).order_by(storage_providers.c.id)
        )
        return [dict(row._mapping) for row in result]

    def delete_providers(self, provider_ids: Iterable[int]) -> int:
        provider_ids = list(provider_ids)
        if not provider_ids:
            return 0
        result = self.connection.execute(
            delete(storage_providers).where(storage_providers.c.id.in_(provider_ids))
        )
        return result.rowcount

    def count_providers(self) -> int:
        return self.connection.execute(
            select(func.count()).select_from(storage_providers)
        ).scalar_one()

    # Credentials

    def get_side_credentials(self, config: Mapping[str, Any], direction: Direction) -> Dict[str, Any]:
        """
        Get the connection credentials of one side of a config.

        Referenced sides are read from their storage provider. Inline sides
        are read from the config columns; their secrets are encrypted when
        the store has an encryption gateway.

        Raises:
            ProviderValidationError: If the referenced provider cannot be loaded
        """
        if uses_provider_reference(config, direction):
            provider_id = config[direction.reference_column]
            provider = self.get_provider(provider_id)
            if provider is None:
                raise ProviderValidationError(
                    f"failed to load {direction.value} provider (ID {provider_id})",
                    failed_fields=[direction.reference_column]
                )
            return {name: provider.get(name) for name in PROVIDER_CREDENTIAL_FIELDS}

        credentials: Dict[str, Any] = {"type": side_type(config, direction)}
        for name, value in side_fields(config, direction).items():
            if name in ENCRYPTED_COLUMNS:
                if self.gateway is not None:
                    credentials[ENCRYPTED_COLUMNS[name]] = self.gateway.encrypt(value) if value else value
                else:
                    credentials[name] = value
            else:
                credentials[name] = value
        return credentials
