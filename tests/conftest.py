"""
Pytest configuration and fixtures for the Provider Migration tests.

Every test gets its own file-backed SQLite database with the migration
schema, a real Fernet encryption gateway and helpers to seed transfer
configs.
"""

from typing import Any, Callable, Dict, List

import pytest
from cryptography.fernet import Fernet
from sqlalchemy.exc import IntegrityError

from provider_migration.database.schema import create_db_engine, create_schema
from provider_migration.database.store import MigrationStore
from provider_migration.security.encryption import FernetCredentialEncryptor


@pytest.fixture
def database_url(tmp_path) -> str:
    """URL of a fresh SQLite database file."""
    return f"sqlite:///{tmp_path / 'transfers.db'}"


@pytest.fixture
def db_engine(database_url):
    """Engine with the migration schema created."""
    engine = create_db_engine(database_url)
    create_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def encryption_key() -> str:
    return Fernet.generate_key().decode("utf-8")


@pytest.fixture
def gateway(encryption_key) -> FernetCredentialEncryptor:
    """Real Fernet encryption gateway."""
    return FernetCredentialEncryptor(encryption_key)


@pytest.fixture
def make_side() -> Callable[..., Dict[str, Any]]:
    """Build the columns of one side of a transfer config.

    ``make_side("source", "sftp", host="h")`` returns
    ``{"source_type": "sftp", "source_host": "h"}``.
    """
    def _make_side(direction: str, provider_type: str, **fields) -> Dict[str, Any]:
        prefix = "source" if direction == "source" else "dest"
        values = {f"{direction}_type": provider_type}
        values.update({f"{prefix}_{name}": value for name, value in fields.items()})
        return values
    return _make_side


@pytest.fixture
def sftp_source(make_side) -> Dict[str, Any]:
    """Inline SFTP source shared by several configs."""
    return make_side(
        "source", "sftp",
        host="files.example.com",
        port=22,
        username="deploy",
        password="s3cr3t-pw",
    )


@pytest.fixture
def local_destination(make_side) -> Dict[str, Any]:
    return make_side("destination", "local")


@pytest.fixture
def add_config(db_engine) -> Callable[..., int]:
    """Insert a transfer config and return its ID."""
    def _add_config(*sides: Dict[str, Any], **values) -> int:
        row: Dict[str, Any] = {"name": "Nightly backup", "created_by": 1}
        for side in sides:
            row.update(side)
        row.update(values)
        with db_engine.begin() as connection:
            return MigrationStore(connection).insert_config(row)
    return _add_config


@pytest.fixture
def fetch_configs(db_engine) -> Callable[[], List[Dict[str, Any]]]:
    def _fetch_configs() -> List[Dict[str, Any]]:
        with db_engine.connect() as connection:
            return MigrationStore(connection).list_configs()
    return _fetch_configs


@pytest.fixture
def fetch_providers(db_engine) -> Callable[[], List[Dict[str, Any]]]:
    def _fetch_providers() -> List[Dict[str, Any]]:
        with db_engine.connect() as connection:
            return MigrationStore(connection).list_providers()
    return _fetch_providers


@pytest.fixture
def duplicate_provider_name() -> Callable[[Dict[str, Any]], int]:
    """Stand-in for ``MigrationStore.insert_provider`` that hits a unique constraint."""
    def _insert_provider(record: Dict[str, Any]) -> int:
        raise IntegrityError(
            "INSERT INTO storage_providers (name) VALUES (?)",
            (record["name"],),
            Exception("UNIQUE constraint failed: storage_providers.name"),
        )
    return _insert_provider
