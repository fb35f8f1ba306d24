"""Tests for settings loading and run options."""

import pytest
from pydantic import ValidationError

from provider_migration.core.exceptions import ConfigurationError
from provider_migration.models.config import MigrationSettings, RunOptions


class TestRunOptions:
    """Test cases for RunOptions."""

    def test_defaults(self):
        options = RunOptions()
        assert options.dry_run is False
        assert options.force is False
        assert options.auto_fill is False
        assert options.mutates is True

    @pytest.mark.parametrize("flag", ["dry_run", "validation_only"])
    def test_non_mutating_modes(self, flag):
        assert RunOptions(**{flag: True}).mutates is False

    def test_options_are_frozen(self):
        options = RunOptions()
        with pytest.raises(ValidationError):
            options.force = True


class TestMigrationSettings:
    """Test cases for MigrationSettings.load."""

    def test_defaults(self):
        settings = MigrationSettings.load(environ={})
        assert settings.database_url == "sqlite:///transfers.db"
        assert settings.log_level == "INFO"
        assert settings.backup_dir is None

    def test_load_yaml(self, tmp_path):
        config_file = tmp_path / "settings.yaml"
        config_file.write_text(
            "database_url: sqlite:///prod.db\nbackup_dir: /var/backups\nlog_level: debug\n",
            encoding="utf-8"
        )

        settings = MigrationSettings.load(str(config_file), environ={})

        assert settings.database_url == "sqlite:///prod.db"
        assert settings.backup_dir == "/var/backups"
        assert settings.log_level == "DEBUG"

    def test_environment_overrides_file(self, tmp_path):
        config_file = tmp_path / "settings.yaml"
        config_file.write_text("database_url: sqlite:///prod.db\n", encoding="utf-8")

        settings = MigrationSettings.load(
            str(config_file),
            environ={"PROVIDER_MIGRATION_DATABASE_URL": "sqlite:///other.db"}
        )

        assert settings.database_url == "sqlite:///other.db"

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError) as exc_info:
            MigrationSettings.load(str(tmp_path / "missing.yaml"), environ={})
        assert "Configuration file not found" in exc_info.value.message

    def test_invalid_yaml(self, tmp_path):
        config_file = tmp_path / "settings.yaml"
        config_file.write_text("database_url: [unclosed\n", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            MigrationSettings.load(str(config_file), environ={})

    def test_non_mapping_yaml(self, tmp_path):
        config_file = tmp_path / "settings.yaml"
        config_file.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ConfigurationError):
            MigrationSettings.load(str(config_file), environ={})

    def test_invalid_log_level(self):
        with pytest.raises(ConfigurationError) as exc_info:
            MigrationSettings.load(environ={"PROVIDER_MIGRATION_LOG_LEVEL": "LOUD"})
        assert "log_level" in str(exc_info.value.details["errors"])

    def test_run_options_use_backup_dir(self):
        settings = MigrationSettings(backup_dir="/var/backups")

        assert settings.run_options(dry_run=True).backup_dir == "/var/backups"
        assert settings.run_options(backup_dir="/tmp/x").backup_dir == "/tmp/x"
