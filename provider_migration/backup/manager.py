"""
Backup manager for snapshotting and restoring transfer configs.

This module provides the BackupManager class that takes the pre-migration
snapshot of every transfer config, optionally exports it to a JSON file and
restores it when a migration run has to be rolled back.
"""

import json
import logging
from datetime import datetime, UTC
from pathlib import Path
from typing import Any, Dict, Optional

from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from provider_migration.core.exceptions import BackupError, EncryptionError, RollbackError
from provider_migration.database.schema import side_column
from provider_migration.database.store import ENCRYPTED_COLUMNS, MigrationStore
from provider_migration.models.migration import MigrationBackupSnapshot
from provider_migration.security.sanitizer import sanitize_error_message

logger = logging.getLogger(__name__)

BACKUP_FILE_PREFIX = "provider-migration-backup"

SECRET_CONFIG_COLUMNS = tuple(
    side_column(prefix, name)
    for prefix in ("source", "dest")
    for name in ENCRYPTED_COLUMNS
)


class BackupManager:
    """Takes and restores pre-migration snapshots of transfer configs."""

    def __init__(self, gateway=None, debug_mode: bool = False):
        self.gateway = gateway
        self.debug_mode = debug_mode

    def snapshot(self, connection: Connection, backup_dir: Optional[str] = None) -> MigrationBackupSnapshot:
        """
        Copy every transfer config row into memory.

        Args:
            connection: Connection to read from
            backup_dir: Directory to also write the snapshot to, if any

        Returns:
            The snapshot

        Raises:
            BackupError: If the configs cannot be read or the file cannot be written
        """
        try:
            configs = MigrationStore(connection).list_configs()
        except SQLAlchemyError as e:
            message = sanitize_error_message(str(e), self.debug_mode)
            raise BackupError(f"failed to backup transfer configs: {message}")

        snapshot = MigrationBackupSnapshot(configs=configs)
        logger.info(f"Backed up {snapshot.config_count} transfer config records")

        if backup_dir:
            snapshot.location = str(self.export(snapshot, backup_dir))
        return snapshot

    def export(self, snapshot: MigrationBackupSnapshot, backup_dir: str) -> Path:
        """
        Write a snapshot to ``<backup_dir>/provider-migration-backup-<UTC timestamp>.json``.

        Inline secrets are encrypted through the gateway before they are
        written; without a gateway they are left out of the file.
        """
        directory = Path(backup_dir)
        timestamp = snapshot.taken_at.astimezone(UTC).strftime("%Y%m%dT%H%M%SZ")
        path = directory / f"{BACKUP_FILE_PREFIX}-{timestamp}.json"

        payload = {
            "taken_at": snapshot.taken_at.isoformat(),
            "config_count": snapshot.config_count,
            "configs": [self._protect(config) for config in snapshot.configs],
        }

        try:
            directory.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as f:
                json.dump(payload, f, indent=2, default=str)
        except OSError as e:
            raise BackupError(f"failed to write backup file {path}: {e}")

        logger.info(f"Wrote migration backup to {path}")
        return path

    def _protect(self, config: Dict[str, Any]) -> Dict[str, Any]:
        protected = dict(config)
        for column in SECRET_CONFIG_COLUMNS:
            value = protected.get(column)
            if not value:
                continue
            if self.gateway is None:
                protected[column] = None
                continue
            try:
                protected[column] = self.gateway.encrypt(value)
            except EncryptionError as e:
                raise BackupError(f"failed to encrypt backup secrets: {e.message}")
        return protected

    def rollback(self, connection: Connection, snapshot: MigrationBackupSnapshot) -> None:
        """
        Restore the pre-migration state inside the caller's transaction.

        Providers created in this run are deleted first, then every config
        row is written back to its snapshotted values.

        Raises:
            RollbackError: If any delete or restore fails
        """
        if snapshot is None:
            raise RollbackError("cannot rollback: no backup provided")

        logger.info("Starting migration rollback...")
        store = MigrationStore(connection)

        try:
            deleted = store.delete_providers(snapshot.providers_created)
            if snapshot.providers_created:
                logger.info(f"Deleted {deleted} provider records created during migration")

            for config in snapshot.configs:
                store.restore_config(config)
        except SQLAlchemyError as e:
            message = sanitize_error_message(str(e), self.debug_mode)
            raise RollbackError(f"failed to restore pre-migration state: {message}")

        logger.info(f"Restored {snapshot.config_count} transfer config records")
