"""Base class for per-type storage provider strategies."""

from abc import ABC, abstractmethod
from typing import Any, Dict, Mapping, Optional, Tuple

from provider_migration.core.exceptions import MissingRequiredFieldError
from provider_migration.models.migration import ProviderDescriptor

UNNAMED_CONFIG = "Unnamed Config"

INTEGER_FIELDS = ("port", "start_year")
BOOLEAN_FIELDS = ("passive_mode", "read_only", "include_archived")


class ProviderStrategy(ABC):
    """Rules for one family of storage provider types.

    A strategy knows which fields identify a credential set (the dedup key),
    how to clean up inline values, how to name the resulting provider, which
    placeholder values may stand in for missing required fields and what a
    valid provider record of its types looks like.
    """

    provider_types: Tuple[str, ...] = ()
    key_fields: Tuple[str, ...] = ()
    labels: Dict[str, str] = {}

    def supports(self, provider_type: str) -> bool:
        return provider_type in self.provider_types

    def label(self, provider_type: str) -> str:
        """Human readable label for a provider type."""
        return self.labels.get(provider_type, provider_type)

    def normalize(self, fields: Mapping[str, Any]) -> Dict[str, Any]:
        """Clean up inline connection values of one config side.

        Strings are stripped and empty strings become ``None``; numeric and
        boolean columns are coerced to their Python types.
        """
        normalized: Dict[str, Any] = {}
        for name, value in fields.items():
            if isinstance(value, str):
                value = value.strip() or None
            if name in INTEGER_FIELDS and value is not None:
                try:
                    value = int(value)
                except (TypeError, ValueError):
                    value = None
            elif name in BOOLEAN_FIELDS and value is not None:
                value = bool(value)
            normalized[name] = value
        return normalized

    def build_key(self, descriptor: ProviderDescriptor) -> str:
        """Composite dedup key; secrets never take part in it."""
        parts = [descriptor.provider_type]
        for name in self.key_fields:
            if name == "owner_id":
                value = descriptor.owner_id
            else:
                value = descriptor.fields.get(name)
            parts.append("" if value is None else str(value))
        return ":".join(parts)

    def identity(self, descriptor: ProviderDescriptor) -> Optional[str]:
        """Parenthesised identity shown in generated names, if any."""
        return None

    def generate_name(self, descriptor: ProviderDescriptor, config_name: Optional[str]) -> str:
        """Build ``"<config name> <Source|Destination> - <type> (<identity>)"``."""
        config_name = (config_name or "").strip() or UNNAMED_CONFIG
        prefix = f"{config_name} {descriptor.direction.label} -"
        identity = self.identity(descriptor)
        if identity is None:
            return f"{prefix} {self.label(descriptor.provider_type)}"
        return f"{prefix} {descriptor.provider_type} ({identity})"

    def auto_fill_defaults(self, record: Dict[str, Any]) -> bool:
        """Fill missing required fields of a provider record with placeholders.

        Returns:
            True if any value was filled in
        """
        return False

    @abstractmethod
    def validate(self, record: Mapping[str, Any]) -> None:
        """Check a provider record before it is persisted.

        Raises:
            ProviderValidationError: If the record is not valid for its type
        """
        pass

    @staticmethod
    def _require(record: Mapping[str, Any], field: str, message: str) -> None:
        value = record.get(field)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise MissingRequiredFieldError(message, failed_fields=[field])

    @staticmethod
    def _present(record: Mapping[str, Any], *fields: str) -> bool:
        return any(
            record.get(field) is not None and str(record.get(field)).strip()
            for field in fields
        )

    @staticmethod
    def _fill(record: Dict[str, Any], field: str, value: Any) -> bool:
        if record.get(field) in (None, "", 0):
            record[field] = value
            return True
        return False
