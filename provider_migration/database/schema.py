"""
SQLAlchemy Core schema for transfer configs and storage providers.

Transfer configs carry inline connection columns for each side (prefixed
``source_`` and ``dest_``) plus nullable foreign keys to the storage
provider catalog that the migration populates.
"""

import logging
from datetime import datetime, UTC
from typing import List

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    create_engine,
    event,
)
from sqlalchemy.engine import Engine

logger = logging.getLogger(__name__)

metadata = MetaData()

# Inline connection columns present on both sides of a transfer config.
SIDE_FIELDS = {
    "host": String(255),
    "port": Integer,
    "username": String(255),
    "password": Text,
    "key_file": Text,
    "bucket": String(255),
    "region": String(100),
    "access_key": String(255),
    "secret_key": Text,
    "endpoint": String(500),
    "share": String(255),
    "domain": String(255),
    "passive_mode": Boolean,
    "client_id": String(255),
    "client_secret": Text,
    "drive_id": String(255),
    "team_drive": String(255),
    "read_only": Boolean,
    "start_year": Integer,
    "include_archived": Boolean,
}


def _side_columns(prefix: str) -> List[Column]:
    return [
        Column(f"{prefix}_{name}", column_type, nullable=True)
        for name, column_type in SIDE_FIELDS.items()
    ]


def _utcnow() -> datetime:
    return datetime.now(UTC)


def side_column(prefix: str, name: str) -> str:
    """Name of the inline column ``name`` for the side with ``prefix``."""
    return f"{prefix}_{name}"


storage_providers = Table(
    "storage_providers",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("type", String(50), nullable=False),
    Column("host", String(255)),
    Column("port", Integer),
    Column("username", String(255)),
    Column("encrypted_password", Text),
    Column("key_file", Text),
    Column("bucket", String(255)),
    Column("region", String(100)),
    Column("access_key", String(255)),
    Column("encrypted_secret_key", Text),
    Column("endpoint", String(500)),
    Column("share", String(255)),
    Column("domain", String(255)),
    Column("passive_mode", Boolean),
    Column("client_id", String(255)),
    Column("encrypted_client_secret", Text),
    Column("drive_id", String(255)),
    Column("team_drive", String(255)),
    Column("read_only", Boolean),
    Column("start_year", Integer),
    Column("include_archived", Boolean),
    Column("use_builtin_auth", Boolean),
    Column("authenticated", Boolean),
    Column("created_by", Integer),
    Column("created_at", DateTime(timezone=True), default=_utcnow),
    Column("updated_at", DateTime(timezone=True), default=_utcnow, onupdate=_utcnow),
)

transfer_configs = Table(
    "transfer_configs",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("source_type", String(50)),
    Column("destination_type", String(50)),
    Column("source_path", Text),
    Column("destination_path", Text),
    *_side_columns("source"),
    *_side_columns("dest"),
    Column(
        "source_provider_id",
        Integer,
        ForeignKey("storage_providers.id", ondelete="SET NULL"),
        nullable=True,
    ),
    Column(
        "destination_provider_id",
        Integer,
        ForeignKey("storage_providers.id", ondelete="SET NULL"),
        nullable=True,
    ),
    Column("use_builtin_auth_source", Boolean),
    Column("use_builtin_auth_dest", Boolean),
    Column("google_drive_authenticated", Boolean),
    Column("created_by", Integer),
    Column("created_at", DateTime(timezone=True), default=_utcnow),
    Column("updated_at", DateTime(timezone=True), default=_utcnow, onupdate=_utcnow),
)


def create_db_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create an engine for the migration database.

    For SQLite the pysqlite driver's own transaction handling is disabled so
    that SAVEPOINT works inside the transactions the migration opens, and
    foreign keys are enforced.
    """
    engine = create_engine(database_url, echo=echo, future=True)

    if engine.dialect.name == "sqlite":
        @event.listens_for(engine, "connect")
        def _sqlite_connect(dbapi_connection, connection_record):
            dbapi_connection.isolation_level = None
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        @event.listens_for(engine, "begin")
        def _sqlite_begin(conn):
            conn.exec_driver_sql("BEGIN")

    logger.debug(f"Created database engine for dialect {engine.dialect.name}")
    return engine


def create_schema(engine: Engine) -> None:
    """Create the transfer config and storage provider tables if missing."""
    metadata.create_all(engine)
    logger.info("Database schema is up to date")
