"""Registry selecting the provider strategy for a provider type."""

import logging
from datetime import datetime, UTC
from typing import Any, Dict, List, Mapping

from provider_migration.core.exceptions import MissingRequiredFieldError
from provider_migration.providers.base import ProviderStrategy
from provider_migration.providers.strategies import (
    GenericStrategy,
    HostBasedStrategy,
    LocalStrategy,
    OAuthStrategy,
    ObjectStorageStrategy,
    ShareStrategy,
)

logger = logging.getLogger(__name__)


class ProviderRegistry:
    """Registry of provider strategies keyed by provider type."""

    # Registry of strategy instances
    _strategies: Dict[str, ProviderStrategy] = {}

    _fallback: ProviderStrategy = GenericStrategy()

    @classmethod
    def _register_default_strategies(cls):
        """Register strategies for the built-in provider types."""
        if cls._strategies:
            return  # Already registered

        for strategy in (
            HostBasedStrategy(),
            ObjectStorageStrategy(),
            ShareStrategy(),
            OAuthStrategy(),
            LocalStrategy(),
            cls._fallback,
        ):
            cls.register_strategy(strategy)

    @classmethod
    def register_strategy(cls, strategy: ProviderStrategy) -> None:
        """Register a strategy for every provider type it declares.

        Args:
            strategy: Strategy instance to register
        """
        for provider_type in strategy.provider_types:
            cls._strategies[provider_type] = strategy

    @classmethod
    def get_strategy(cls, provider_type: str) -> ProviderStrategy:
        """Get the strategy for a provider type.

        Unknown types fall back to the generic host/port/username rules.
        """
        cls._register_default_strategies()

        strategy = cls._strategies.get((provider_type or "").strip().lower())
        if strategy is None:
            logger.debug(f"No dedicated strategy for provider type '{provider_type}', using fallback")
            return cls._fallback
        return strategy

    @classmethod
    def get_supported_types(cls) -> List[str]:
        """Get the provider types with registered strategies."""
        cls._register_default_strategies()
        return sorted(cls._strategies)

    @classmethod
    def validate_record(cls, record: Mapping[str, Any]) -> None:
        """Validate a storage provider record before it is saved.

        Raises:
            ProviderValidationError: If the record is not valid for its type
        """
        name = record.get("name")
        if not name or not str(name).strip():
            raise MissingRequiredFieldError("provider name is required", failed_fields=["name"])
        cls.get_strategy(record.get("type")).validate(record)

    @classmethod
    def auto_fill_record(cls, record: Dict[str, Any]) -> bool:
        """Fill placeholders for missing required fields of a provider record.

        Returns:
            True if any value was filled in
        """
        changed = False
        if not record.get("name"):
            record["name"] = f"Auto-filled Provider {datetime.now(UTC).strftime('%Y-%m-%d %H:%M:%S')}"
            changed = True

        changed |= cls.get_strategy(record.get("type")).auto_fill_defaults(record)

        # Nullable column; filling it alone never warrants a retry
        if record.get("authenticated") is None:
            record["authenticated"] = False

        if changed:
            logger.warning(
                f"Auto-filled missing required fields for provider type {record.get('type')}. "
                f"Please update with correct values."
            )
        return changed


def get_strategy(provider_type: str) -> ProviderStrategy:
    """Shortcut for ``ProviderRegistry.get_strategy``."""
    return ProviderRegistry.get_strategy(provider_type)
