"""
Configuration models for the Provider Migration engine.

This module defines Pydantic models for the run options handed to every
migration phase and for the operator settings loaded from YAML files and
environment variables.
"""

import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml
from pydantic import BaseModel, ConfigDict, field_validator
from pydantic import ValidationError as PydanticValidationError

from provider_migration.core.exceptions import ConfigurationError

DEFAULT_ENCRYPTION_KEY_ENV = "PROVIDER_MIGRATION_ENCRYPTION_KEY"

ENV_OVERRIDES = {
    "PROVIDER_MIGRATION_DATABASE_URL": "database_url",
    "PROVIDER_MIGRATION_BACKUP_DIR": "backup_dir",
    "PROVIDER_MIGRATION_LOG_LEVEL": "log_level",
    "PROVIDER_MIGRATION_LOG_FILE": "log_file",
}


class RunOptions(BaseModel):
    """Options controlling a single migration run."""
    model_config = ConfigDict(frozen=True)

    dry_run: bool = False
    validation_only: bool = False
    force: bool = False
    backup_dir: Optional[str] = None
    debug_mode: bool = False
    auto_fill: bool = False

    @property
    def mutates(self) -> bool:
        """Whether the run is allowed to write to storage."""
        return not (self.dry_run or self.validation_only)


class MigrationSettings(BaseModel):
    """Operator settings for the migration tooling."""
    database_url: str = "sqlite:///transfers.db"
    encryption_key_env: str = DEFAULT_ENCRYPTION_KEY_ENV
    backup_dir: Optional[str] = None
    log_level: str = "INFO"
    log_file: Optional[str] = None

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        level = v.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unsupported log level: {v}")
        return level

    @field_validator('database_url')
    @classmethod
    def database_url_not_empty(cls, v):
        if not v or not v.strip():
            raise ValueError("Database URL cannot be empty")
        return v.strip()

    @classmethod
    def load(
        cls,
        config_file: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None
    ) -> "MigrationSettings":
        """
        Load settings from an optional YAML file, then apply environment overrides.

        Args:
            config_file: Path to a YAML settings file
            environ: Environment mapping (defaults to ``os.environ``)

        Returns:
            Validated settings

        Raises:
            ConfigurationError: If the file cannot be read or values are invalid
        """
        environ = os.environ if environ is None else environ
        data: Dict[str, Any] = {}

        if config_file:
            path = Path(config_file)
            if not path.exists():
                raise ConfigurationError(f"Configuration file not found: {config_file}")
            try:
                with open(path, "r", encoding="utf-8") as f:
                    loaded = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in {config_file}: {e}")
            if not isinstance(loaded, dict):
                raise ConfigurationError(f"Configuration file must contain a mapping: {config_file}")
            data.update(loaded)

        for env_var, field_name in ENV_OVERRIDES.items():
            value = environ.get(env_var)
            if value:
                data[field_name] = value

        try:
            return cls(**data)
        except PydanticValidationError as e:
            raise ConfigurationError(
                f"Invalid migration settings: {e}",
                details={"errors": e.errors()}
            )

    def run_options(self, **overrides) -> RunOptions:
        """Build run options, falling back to the configured backup directory."""
        if overrides.get("backup_dir") is None:
            overrides["backup_dir"] = self.backup_dir
        return RunOptions(**overrides)
