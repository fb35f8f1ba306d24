"""Builds provider descriptors from the inline fields of a transfer config."""

import logging
from typing import Any, Mapping, Optional

from provider_migration.database.store import side_fields, side_type
from provider_migration.models.migration import Direction, ProviderDescriptor
from provider_migration.providers.registry import ProviderRegistry
from provider_migration.providers.strategies import GOOGLE_TYPES

logger = logging.getLogger(__name__)


def build_descriptor(config: Mapping[str, Any], direction: Direction) -> Optional[ProviderDescriptor]:
    """
    Normalize one side of a legacy transfer config into a descriptor.

    Args:
        config: Transfer config row
        direction: Side of the config to read

    Returns:
        The descriptor with its dedup key, or None when the side has no type
    """
    provider_type = side_type(config, direction).lower()
    if not provider_type:
        return None

    strategy = ProviderRegistry.get_strategy(provider_type)
    builtin_column = "use_builtin_auth_source" if direction is Direction.SOURCE else "use_builtin_auth_dest"

    descriptor = ProviderDescriptor(
        direction=direction,
        provider_type=provider_type,
        fields=strategy.normalize(side_fields(config, direction)),
        owner_id=config.get("created_by"),
        use_builtin_auth=config.get(builtin_column),
    )

    # Google services share one authentication flag per config
    if provider_type in GOOGLE_TYPES:
        descriptor.authenticated = bool(config.get("google_drive_authenticated"))

    descriptor.add_config(config["id"], direction)
    descriptor.dedup_key = strategy.build_key(descriptor)
    return descriptor
