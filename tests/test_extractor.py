"""Tests for descriptor normalization and extraction."""

from unittest.mock import patch

import pytest
from sqlalchemy.exc import OperationalError

from provider_migration.core.exceptions import ExtractionError
from provider_migration.database.store import MigrationStore
from provider_migration.engine.extractor import extract_descriptors
from provider_migration.engine.normalizer import build_descriptor
from provider_migration.models.migration import Direction


class TestBuildDescriptor:
    """Test cases for build_descriptor."""

    def test_source_side(self, make_side):
        config = {"id": 4, "created_by": 9, "use_builtin_auth_source": False}
        config.update(make_side("source", "SFTP", host=" Files.Example.com ", port=22, username="deploy"))

        descriptor = build_descriptor(config, Direction.SOURCE)

        assert descriptor.direction is Direction.SOURCE
        assert descriptor.provider_type == "sftp"
        assert descriptor.fields["host"] == "files.example.com"
        assert descriptor.owner_id == 9
        assert descriptor.config_ids == [4]
        assert descriptor.sides == [(4, Direction.SOURCE)]
        assert descriptor.dedup_key == "sftp:files.example.com:22:deploy:"

    def test_destination_side_reads_dest_columns(self, make_side):
        config = {"id": 1, "created_by": 1}
        config.update(make_side("destination", "smb", host="nas", share="backups", username="admin"))

        descriptor = build_descriptor(config, Direction.DESTINATION)

        assert descriptor.direction is Direction.DESTINATION
        assert descriptor.dedup_key == "smb:nas:backups:admin"

    def test_empty_type_has_no_descriptor(self):
        assert build_descriptor({"id": 1, "source_type": "  "}, Direction.SOURCE) is None

    def test_google_authenticated_flag(self, make_side):
        config = {"id": 1, "created_by": 1, "google_drive_authenticated": True, "use_builtin_auth_dest": True}
        config.update(make_side("destination", "gphotos"))

        descriptor = build_descriptor(config, Direction.DESTINATION)

        assert descriptor.authenticated is True
        assert descriptor.use_builtin_auth is True

    def test_non_google_types_leave_authenticated_unset(self, make_side):
        config = {"id": 1, "created_by": 1, "google_drive_authenticated": True}
        config.update(make_side("source", "onedrive", client_id="cid"))

        assert build_descriptor(config, Direction.SOURCE).authenticated is None


class TestExtractDescriptors:
    """Test cases for extract_descriptors."""

    def extract(self, db_engine):
        with db_engine.connect() as connection:
            return extract_descriptors(connection)

    def test_duplicates_are_merged(self, db_engine, add_config, sftp_source, local_destination):
        first = add_config(sftp_source, local_destination)
        second = add_config(sftp_source, local_destination, name="Hourly backup")

        result = self.extract(db_engine)

        assert result.total_configs == 2
        assert len(result.descriptors) == 2
        sftp = result.descriptors["sftp:files.example.com:22:deploy:"]
        assert sftp.config_ids == [first, second]
        local = result.descriptors["local:1"]
        assert local.config_ids == [first, second]
        assert result.source_count == 1
        assert result.destination_count == 1

    def test_different_types_are_not_merged(self, db_engine, add_config, make_side):
        fields = dict(host="h.example.com", port=22, username="u", password="pw")
        add_config(make_side("source", "sftp", **fields))
        add_config(make_side("source", "hetzner", **fields))

        result = self.extract(db_engine)

        assert sorted(d.provider_type for d in result.descriptors.values()) == ["hetzner", "sftp"]

    def test_same_endpoint_on_both_directions(self, db_engine, add_config, make_side):
        fields = dict(host="h.example.com", port=22, username="u", password="pw")
        first = add_config(make_side("source", "sftp", **fields))
        second = add_config(make_side("destination", "sftp", **fields))

        result = self.extract(db_engine)

        assert len(result.descriptors) == 1
        descriptor = next(iter(result.descriptors.values()))
        assert descriptor.sides == [(first, Direction.SOURCE), (second, Direction.DESTINATION)]

    def test_referenced_sides_are_skipped(self, db_engine, add_config, sftp_source, local_destination):
        with db_engine.begin() as connection:
            provider_id = MigrationStore(connection).insert_provider({
                "name": "Existing", "type": "local", "created_by": 1,
            })
        add_config(sftp_source, local_destination, destination_provider_id=provider_id)

        result = self.extract(db_engine)

        assert list(result.descriptors) == ["sftp:files.example.com:22:deploy:"]

    def test_fully_migrated_configs_are_skipped(self, db_engine, add_config, sftp_source, local_destination):
        with db_engine.begin() as connection:
            provider_id = MigrationStore(connection).insert_provider({
                "name": "Existing", "type": "local", "created_by": 1,
            })
        add_config(
            sftp_source, local_destination,
            source_provider_id=provider_id, destination_provider_id=provider_id
        )

        result = self.extract(db_engine)

        assert result.total_configs == 1
        assert result.descriptors == {}

    def test_empty_types_are_skipped(self, db_engine, add_config, sftp_source):
        add_config(sftp_source)

        result = self.extract(db_engine)

        assert len(result.descriptors) == 1
        assert result.destination_count == 0

    def test_divergent_secrets_warn_and_keep_first(self, db_engine, add_config, make_side):
        fields = dict(host="h.example.com", port=22, username="u")
        first = add_config(make_side("source", "sftp", password="first-secret", **fields))
        second = add_config(make_side("source", "sftp", password="second-secret", **fields))

        result = self.extract(db_engine)

        descriptor = next(iter(result.descriptors.values()))
        assert descriptor.fields["password"] == "first-secret"
        assert descriptor.config_ids == [first, second]
        assert len(result.warnings) == 1
        warning = result.warnings[0]
        assert f"Config ID {second}" in warning
        assert "source" in warning
        assert "sftp" in warning
        assert "first-secret" not in warning
        assert "second-secret" not in warning

    def test_identical_secrets_do_not_warn(self, db_engine, add_config, sftp_source):
        add_config(sftp_source)
        add_config(sftp_source)

        assert self.extract(db_engine).warnings == []

    def test_read_failure_raises(self, db_engine):
        error = OperationalError("SELECT * FROM transfer_configs", {}, Exception("database is locked"))
        with patch(
            "provider_migration.database.store.MigrationStore.list_configs",
            side_effect=error
        ):
            with pytest.raises(ExtractionError) as exc_info:
                self.extract(db_engine)
        assert "failed to retrieve transfer configs" in exc_info.value.message
