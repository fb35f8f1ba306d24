"""
Orchestrator for a provider migration run.

This module provides the ProviderMigrationEngine class that sequences
extraction, backup, provider creation, reference rewriting and integrity
validation, owning one transaction per mutating phase and rolling back to
the pre-migration state when a phase fails.
"""

import logging
from typing import NoReturn, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from provider_migration.backup.manager import BackupManager
from provider_migration.core.exceptions import (
    BackupError,
    ExtractionError,
    MigrationRunError,
    ProviderCreationError,
    ProviderMigrationError,
    ReferenceUpdateError,
    RollbackError,
)
from provider_migration.engine.creator import create_providers
from provider_migration.engine.extractor import extract_descriptors
from provider_migration.engine.rewriter import rewrite_references
from provider_migration.engine.validator import validate_integrity
from provider_migration.models.config import RunOptions
from provider_migration.models.migration import (
    MigrationBackupSnapshot,
    MigrationRunStatistics,
    MigrationState,
)
from provider_migration.security.sanitizer import sanitize_error_message

logger = logging.getLogger(__name__)

FORCE_MODE_WARNING = "Migration had validation errors but continued due to force mode"


class ProviderMigrationEngine:
    """
    Runs the provider migration against one database.

    Every phase is a plain function of a connection and its input; this
    class owns the transactions, the backup snapshot and the statistics.
    """

    def __init__(self, engine: Engine, gateway, backup_manager: Optional[BackupManager] = None):
        """
        Initialize the migration engine.

        Args:
            engine: SQLAlchemy engine of the migration database
            gateway: Encryption gateway protecting provider secrets
            backup_manager: Backup manager (optional, created per run if omitted)
        """
        self.engine = engine
        self.gateway = gateway
        self.backup_manager = backup_manager

    def _error_message(self, error: Exception, options: RunOptions) -> str:
        if isinstance(error, ProviderMigrationError):
            return error.message
        return sanitize_error_message(str(error), options.debug_mode)

    def _fail(self, stats: MigrationRunStatistics, message: str) -> NoReturn:
        logger.error(f"Migration failed: {message}")
        stats.add_error(message)
        stats.finish(MigrationState.FAILED)
        raise MigrationRunError(message, statistics=stats)

    def _rollback_and_fail(
        self,
        stats: MigrationRunStatistics,
        backup_manager: BackupManager,
        snapshot: MigrationBackupSnapshot,
        options: RunOptions,
        message: str,
        context: str
    ) -> NoReturn:
        logger.error(f"Migration failed during {context}: {message}")
        stats.add_error(message)
        state = MigrationState.ROLLED_BACK

        try:
            with self.engine.begin() as connection:
                backup_manager.rollback(connection, snapshot)
            logger.info("Rollback completed successfully")
        except (RollbackError, SQLAlchemyError) as e:
            rollback_message = self._error_message(e, options)
            logger.error(f"Rollback failed: {rollback_message}")
            stats.add_error(f"failed to rollback after {context}: {rollback_message}")
            state = MigrationState.FAILED

        stats.finish(state)
        raise MigrationRunError(message, statistics=stats)

    def run_migration(self, options: Optional[RunOptions] = None) -> MigrationRunStatistics:
        """
        Run the complete migration.

        Args:
            options: Run options

        Returns:
            Run statistics

        Raises:
            MigrationRunError: If the run ends with a terminal error; the
                partially populated statistics are attached
        """
        options = options or RunOptions()
        stats = MigrationRunStatistics()
        backup_manager = self.backup_manager or BackupManager(self.gateway, options.debug_mode)
        logger.info("Starting provider data migration...")

        try:
            with self.engine.connect() as connection:
                extraction = extract_descriptors(connection, options)
        except (ExtractionError, SQLAlchemyError) as e:
            self._fail(stats, f"failed to extract unique provider configurations: {self._error_message(e, options)}")

        stats.total_configs = extraction.total_configs
        stats.unique_source_providers = extraction.source_count
        stats.unique_destination_providers = extraction.destination_count
        stats.warnings.extend(extraction.warnings)
        stats.state = MigrationState.EXTRACTED

        if options.validation_only or options.dry_run:
            mode = "Validation-only" if options.validation_only else "Dry run"
            logger.info(f"{mode} mode: Migration stopped after extraction")
            stats.finish(MigrationState.DONE)
            return stats

        try:
            with self.engine.connect() as connection:
                snapshot = backup_manager.snapshot(connection, options.backup_dir)
        except (BackupError, SQLAlchemyError) as e:
            self._fail(stats, f"failed to create backup: {self._error_message(e, options)}")

        try:
            with self.engine.begin() as connection:
                creation = create_providers(connection, extraction.descriptors, options, self.gateway)
        except (ProviderCreationError, SQLAlchemyError) as e:
            self._rollback_and_fail(
                stats, backup_manager, snapshot, options,
                self._error_message(e, options), "provider creation error"
            )

        snapshot.providers_created = creation.created_ids
        stats.providers_created = len(creation.created_ids)
        stats.warnings.extend(creation.warnings)
        stats.state = MigrationState.PROVIDERS_CREATED

        try:
            with self.engine.begin() as connection:
                rewrite = rewrite_references(connection, extraction.descriptors, options)
        except (ReferenceUpdateError, SQLAlchemyError) as e:
            self._rollback_and_fail(
                stats, backup_manager, snapshot, options,
                self._error_message(e, options), "reference update error"
            )

        stats.configs_updated = rewrite.updated
        stats.warnings.extend(rewrite.warnings)
        stats.state = MigrationState.REFERENCES_UPDATED

        try:
            with self.engine.connect() as connection:
                validation = validate_integrity(connection, self.gateway, options)
        except (ExtractionError, SQLAlchemyError) as e:
            # The migration itself may be fine, so no rollback here
            stats.add_error(f"validation error: {self._error_message(e, options)}")
            stats.finish(MigrationState.DONE)
            return stats

        stats.state = MigrationState.VALIDATED

        if not validation.success:
            if not options.force:
                logger.warning("Validation failed and not in force mode, rolling back...")
                stats.errors.extend(validation.errors)
                self._rollback_and_fail(
                    stats, backup_manager, snapshot, options,
                    "migration validation failed", "validation failure"
                )

            logger.warning("Validation failed but running in force mode, proceeding anyway...")
            stats.add_warning(FORCE_MODE_WARNING)
            stats.warnings.extend(validation.errors)

        stats.finish(MigrationState.DONE)
        logger.info(f"Migration completed in {stats.duration:.2f}s")
        return stats


def run_migration(engine: Engine, gateway, options: Optional[RunOptions] = None) -> MigrationRunStatistics:
    """Run the provider migration with a fresh ProviderMigrationEngine."""
    return ProviderMigrationEngine(engine, gateway).run_migration(options)
