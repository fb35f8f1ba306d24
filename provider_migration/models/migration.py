"""
Runtime models for a provider migration run.

This module defines the transient descriptors built during extraction,
the backup snapshot, the integrity validation result and the run
statistics returned to callers.
"""

from dataclasses import dataclass, field
from datetime import datetime, UTC
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

SECRET_FIELDS = ("password", "secret_key", "client_secret")


class Direction(str, Enum):
    """Which side of a transfer config a descriptor was built from."""
    SOURCE = "source"
    DESTINATION = "destination"

    @property
    def column_prefix(self) -> str:
        """Prefix of the inline connection columns for this side."""
        return "source" if self is Direction.SOURCE else "dest"

    @property
    def type_column(self) -> str:
        return f"{self.value}_type"

    @property
    def reference_column(self) -> str:
        return f"{self.value}_provider_id"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class MigrationState(str, Enum):
    """Orchestrator states of a migration run."""
    PENDING = "pending"
    EXTRACTED = "extracted"
    PROVIDERS_CREATED = "providers_created"
    REFERENCES_UPDATED = "references_updated"
    VALIDATED = "validated"
    ROLLED_BACK = "rolled_back"
    FAILED = "failed"
    DONE = "done"


@dataclass
class ProviderDescriptor:
    """Normalized connection details of one side of one or more transfer configs."""
    direction: Direction
    provider_type: str
    fields: Dict[str, Any]
    owner_id: Optional[int] = None
    config_ids: List[int] = field(default_factory=list)
    dedup_key: str = ""
    authenticated: Optional[bool] = None
    use_builtin_auth: Optional[bool] = None
    resolved_provider_id: Optional[int] = None
    sides: List[Tuple[int, Direction]] = field(default_factory=list)

    def add_config(self, config_id: int, direction: Optional[Direction] = None) -> bool:
        """Record a config side referencing this descriptor.

        A provider key carries no direction, so a descriptor first seen as a
        source may also serve the destination side of another config. Every
        ``(config_id, direction)`` pair is kept so each side gets rewired.
        """
        side = (config_id, direction or self.direction)
        if side not in self.sides:
            self.sides.append(side)
        if config_id in self.config_ids:
            return False
        self.config_ids.append(config_id)
        return True

    def get(self, name: str, default: Any = None) -> Any:
        value = self.fields.get(name)
        return default if value is None else value

    def secrets(self) -> Dict[str, str]:
        """Non-empty secret values carried by this descriptor."""
        return {
            name: self.fields[name]
            for name in SECRET_FIELDS
            if self.fields.get(name)
        }

    def diverging_secrets(self, other: "ProviderDescriptor") -> List[str]:
        """Names of secrets whose values differ between two descriptors."""
        return [
            name for name in SECRET_FIELDS
            if (self.fields.get(name) or "") != (other.fields.get(name) or "")
        ]


@dataclass
class MigrationBackupSnapshot:
    """Pre-migration copy of every transfer config row."""
    configs: List[Dict[str, Any]] = field(default_factory=list)
    providers_created: List[int] = field(default_factory=list)
    taken_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    location: Optional[str] = None

    @property
    def config_count(self) -> int:
        return len(self.configs)


@dataclass
class IntegrityValidationResult:
    """Result of the post-migration integrity check."""
    success: bool = True
    total_configs: int = 0
    valid_configs: int = 0
    invalid_configs: int = 0
    missing_providers: int = 0
    errors: List[str] = field(default_factory=list)
    config_ids_with_errors: List[int] = field(default_factory=list)

    def add_error(self, config_id: int, message: str) -> None:
        """Record a violated assertion for a config."""
        self.errors.append(message)
        if config_id not in self.config_ids_with_errors:
            self.config_ids_with_errors.append(config_id)


class MigrationRunStatistics(BaseModel):
    """Counters and messages collected during one migration run."""
    total_configs: int = 0
    unique_source_providers: int = 0
    unique_destination_providers: int = 0
    providers_created: int = 0
    configs_updated: int = 0
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
    state: MigrationState = MigrationState.PENDING
    started_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    completed_at: Optional[datetime] = None

    @property
    def duration(self) -> Optional[float]:
        """Run duration in seconds, once completed."""
        if self.completed_at is None:
            return None
        return (self.completed_at - self.started_at).total_seconds()

    @property
    def succeeded(self) -> bool:
        return self.state == MigrationState.DONE and not self.errors

    def add_error(self, message: str) -> None:
        self.errors.append(message)

    def add_warning(self, message: str) -> None:
        self.warnings.append(message)

    def finish(self, state: MigrationState) -> None:
        self.state = state
        self.completed_at = datetime.now(UTC)
