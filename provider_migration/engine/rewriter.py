"""Points transfer configs at the storage providers created for them."""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping

from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from provider_migration.core.exceptions import ReferenceUpdateError
from provider_migration.database.store import MigrationStore
from provider_migration.models.config import RunOptions
from provider_migration.models.migration import ProviderDescriptor
from provider_migration.security.sanitizer import sanitize_error_message

logger = logging.getLogger(__name__)


@dataclass
class RewriteResult:
    updated: int = 0
    warnings: List[str] = field(default_factory=list)


def build_update_plan(
    descriptors: Mapping[str, ProviderDescriptor],
    warnings: List[str]
) -> Dict[int, Dict[str, int]]:
    """Map each config ID to the reference columns it should receive."""
    plan: Dict[int, Dict[str, int]] = {}
    for descriptor in descriptors.values():
        if not descriptor.resolved_provider_id:
            warning = (
                f"{descriptor.provider_type} provider for config IDs {descriptor.config_ids} "
                f"has no provider ID assigned, skipping"
            )
            logger.warning(warning)
            warnings.append(warning)
            continue
        for config_id, direction in descriptor.sides:
            plan.setdefault(config_id, {})[direction.reference_column] = descriptor.resolved_provider_id
    return plan


def rewrite_references(
    connection: Connection,
    descriptors: Mapping[str, ProviderDescriptor],
    options: RunOptions
) -> RewriteResult:
    """
    Set the provider references of every config listed by the descriptors.

    Configs that disappeared since extraction are skipped with a warning.

    Raises:
        ReferenceUpdateError: If a config cannot be read or saved
    """
    logger.info("Starting update of TransferConfig references...")
    store = MigrationStore(connection)
    result = RewriteResult()
    plan = build_update_plan(descriptors, result.warnings)

    for config_id, references in plan.items():
        try:
            config = store.get_config(config_id)
            if config is None:
                warning = f"Config ID {config_id} no longer exists, skipping reference update"
                logger.warning(warning)
                result.warnings.append(warning)
                continue

            store.update_config(config_id, references)
        except SQLAlchemyError as e:
            message = sanitize_error_message(str(e), options.debug_mode)
            logger.error(f"Failed to update config ID {config_id}: {message}")
            raise ReferenceUpdateError(f"failed to update config ID {config_id}: {message}")

        logger.debug(f"Updated TransferConfig ID {config_id} with provider references")
        result.updated += 1

    logger.info(f"Successfully updated {result.updated} TransferConfig records with provider references")
    return result
