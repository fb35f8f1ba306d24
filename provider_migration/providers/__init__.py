"""Per-type storage provider rules: dedup keys, naming, auto-fill and validation."""

from provider_migration.providers.base import ProviderStrategy, UNNAMED_CONFIG
from provider_migration.providers.registry import ProviderRegistry, get_strategy
from provider_migration.providers.strategies import (
    GenericStrategy,
    HostBasedStrategy,
    LocalStrategy,
    OAuthStrategy,
    ObjectStorageStrategy,
    ShareStrategy,
)

__all__ = [
    "ProviderStrategy",
    "ProviderRegistry",
    "get_strategy",
    "UNNAMED_CONFIG",
    "GenericStrategy",
    "HostBasedStrategy",
    "LocalStrategy",
    "OAuthStrategy",
    "ObjectStorageStrategy",
    "ShareStrategy",
]
