"""Pre-migration snapshots and rollback."""

from provider_migration.backup.manager import BACKUP_FILE_PREFIX, BackupManager

__all__ = [
    "BACKUP_FILE_PREFIX",
    "BackupManager",
]
