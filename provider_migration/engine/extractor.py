"""Extraction of unique provider descriptors from legacy transfer configs."""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from provider_migration.core.exceptions import ExtractionError
from provider_migration.database.store import (
    MigrationStore,
    is_fully_migrated,
    uses_provider_reference,
)
from provider_migration.engine.normalizer import build_descriptor
from provider_migration.models.config import RunOptions
from provider_migration.models.migration import Direction, ProviderDescriptor
from provider_migration.security.sanitizer import sanitize_error_message

logger = logging.getLogger(__name__)


@dataclass
class ExtractionResult:
    """Deduplicated descriptors keyed by dedup key, in first-seen order."""
    descriptors: Dict[str, ProviderDescriptor] = field(default_factory=dict)
    total_configs: int = 0
    warnings: List[str] = field(default_factory=list)

    @property
    def source_count(self) -> int:
        return sum(1 for d in self.descriptors.values() if d.direction is Direction.SOURCE)

    @property
    def destination_count(self) -> int:
        return sum(1 for d in self.descriptors.values() if d.direction is Direction.DESTINATION)


def extract_descriptors(connection: Connection, options: Optional[RunOptions] = None) -> ExtractionResult:
    """
    Scan every transfer config and merge descriptors sharing a dedup key.

    Sides that already reference a provider or have no type are skipped.
    When a merged side carries a secret different from the first-seen one, a
    warning naming the config, direction and type is recorded and the first
    secret is kept.

    Args:
        connection: Connection to read from
        options: Run options

    Returns:
        Extraction result

    Raises:
        ExtractionError: If the configs cannot be read
    """
    options = options or RunOptions()
    logger.info("Starting extraction of unique provider configurations...")

    try:
        configs = MigrationStore(connection).list_configs()
    except SQLAlchemyError as e:
        message = sanitize_error_message(str(e), options.debug_mode)
        raise ExtractionError(f"failed to retrieve transfer configs: {message}")

    logger.info(f"Found {len(configs)} transfer configs")
    result = ExtractionResult(total_configs=len(configs))

    for config in configs:
        config_id = config["id"]
        if is_fully_migrated(config):
            logger.debug(f"Config ID {config_id} already using provider references, skipping")
            continue

        for direction in Direction:
            if uses_provider_reference(config, direction):
                continue

            descriptor = build_descriptor(config, direction)
            if descriptor is None:
                continue

            key = descriptor.dedup_key
            existing = result.descriptors.get(key)
            if existing is None:
                result.descriptors[key] = descriptor
                logger.debug(f"Added new unique {direction.value} provider with key {key}")
                continue

            existing.add_config(config_id, direction)
            logger.debug(f"Added Config ID {config_id} to existing provider key {key}")

            diverging = existing.diverging_secrets(descriptor)
            if diverging:
                warning = (
                    f"Config ID {config_id} {direction.value} {descriptor.provider_type} provider "
                    f"has a different {', '.join(diverging)} than the provider it was merged with; "
                    f"keeping the first-seen value"
                )
                logger.warning(warning)
                result.warnings.append(warning)

    logger.info(
        f"Extraction complete. Found {len(result.descriptors)} unique provider configurations "
        f"({result.source_count} source, {result.destination_count} destination)"
    )
    return result
