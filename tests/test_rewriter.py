"""Tests for rewriting transfer config provider references."""

from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from provider_migration.core.exceptions import ReferenceUpdateError
from provider_migration.database.store import MigrationStore
from provider_migration.engine.rewriter import build_update_plan, rewrite_references
from provider_migration.models.config import RunOptions
from provider_migration.models.migration import Direction, ProviderDescriptor


def descriptor(sides, resolved_provider_id=None, provider_type="sftp"):
    result = ProviderDescriptor(
        direction=sides[0][1],
        provider_type=provider_type,
        fields={},
        resolved_provider_id=resolved_provider_id,
    )
    for config_id, direction in sides:
        result.add_config(config_id, direction)
    return result


class TestBuildUpdatePlan:
    """Test cases for build_update_plan."""

    def test_plan_covers_every_side(self):
        warnings = []
        descriptors = {
            "a": descriptor([(1, Direction.SOURCE), (2, Direction.DESTINATION)], resolved_provider_id=10),
            "b": descriptor([(1, Direction.DESTINATION)], resolved_provider_id=11, provider_type="local"),
        }

        plan = build_update_plan(descriptors, warnings)

        assert plan == {
            1: {"source_provider_id": 10, "destination_provider_id": 11},
            2: {"destination_provider_id": 10},
        }
        assert warnings == []

    def test_unresolved_descriptor_is_skipped(self):
        warnings = []

        plan = build_update_plan({"a": descriptor([(3, Direction.SOURCE)])}, warnings)

        assert plan == {}
        assert len(warnings) == 1
        assert "[3]" in warnings[0]


class TestRewriteReferences:
    """Test cases for rewrite_references."""

    def insert_provider(self, db_engine, provider_type="local"):
        with db_engine.begin() as connection:
            return MigrationStore(connection).insert_provider({
                "name": "Catalog entry", "type": provider_type, "created_by": 1,
            })

    def test_references_are_set(self, db_engine, add_config, sftp_source, local_destination, fetch_configs):
        first = add_config(sftp_source, local_destination)
        second = add_config(sftp_source, local_destination)
        provider_id = self.insert_provider(db_engine)
        descriptors = {
            "local:1": descriptor(
                [(first, Direction.DESTINATION), (second, Direction.DESTINATION)],
                resolved_provider_id=provider_id,
                provider_type="local",
            ),
        }

        with db_engine.begin() as connection:
            result = rewrite_references(connection, descriptors, RunOptions())

        assert result.updated == 2
        assert result.warnings == []
        for config in fetch_configs():
            assert config["destination_provider_id"] == provider_id
            assert config["source_provider_id"] is None
            # Inline values stay in place
            assert config["source_password"] == "s3cr3t-pw"

    def test_deleted_config_is_skipped(self, db_engine, add_config, local_destination):
        config_id = add_config(local_destination)
        provider_id = self.insert_provider(db_engine)
        descriptors = {
            "local:1": descriptor(
                [(config_id, Direction.DESTINATION), (999, Direction.DESTINATION)],
                resolved_provider_id=provider_id,
                provider_type="local",
            ),
        }

        with db_engine.begin() as connection:
            result = rewrite_references(connection, descriptors, RunOptions())

        assert result.updated == 1
        assert result.warnings == ["Config ID 999 no longer exists, skipping reference update"]

    def test_database_error_raises(self, db_engine, add_config, local_destination):
        config_id = add_config(local_destination)
        descriptors = {
            "local:1": descriptor(
                [(config_id, Direction.DESTINATION)], resolved_provider_id=1, provider_type="local"
            ),
        }
        error = OperationalError("UPDATE transfer_configs", {}, Exception("database is locked"))

        with patch.object(MigrationStore, "update_config", side_effect=error):
            with db_engine.begin() as connection:
                with pytest.raises(ReferenceUpdateError) as exc_info:
                    rewrite_references(connection, descriptors, RunOptions())

        assert exc_info.value.message.startswith(f"failed to update config ID {config_id}: ")
        assert "database is locked" in exc_info.value.message
