"""
orm_repository.db.migrations

Schema migration runners.

Responsibilities:
- Define when migrations run (`MigrationMode`).
- Provide a metadata-based runner for dev/test and an Alembic runner for prod.
"""

from __future__ import annotations

import enum
from typing import Protocol

from alembic import command
from alembic.config import Config
from sqlalchemy import Connection, MetaData


class MigrationMode(enum.StrEnum):
    never = "never"
    # First context acquisition per factory.
    once = "once"
    # Every context acquisition.
    always = "always"


class Migrator(Protocol):
    def migrate(self, connection: Connection) -> None: ...


class MetadataMigrator:
    """
    Dev/test bootstrap: create missing tables from ORM metadata.
    Does not alter existing tables; use `AlembicMigrator` for that.
    """

    def __init__(self, metadata: MetaData) -> None:
        self._metadata = metadata

    def migrate(self, connection: Connection) -> None:
        self._metadata.create_all(connection)


class AlembicMigrator:
    """
    Upgrade to `revision` using an Alembic environment.

    The live connection is passed through `config.attributes["connection"]`;
    the environment's `env.py` is expected to use it when present, e.g.::

        connectable = config.attributes.get("connection")
        if connectable is None:
            connectable = engine_from_config(...)
    """

    def __init__(self, config: str | Config, *, revision: str = "head") -> None:
        self._config = Config(config) if isinstance(config, str) else config
        self._revision = revision

    @property
    def config(self) -> Config:
        return self._config

    def migrate(self, connection: Connection) -> None:
        self._config.attributes["connection"] = connection
        try:
            command.upgrade(self._config, self._revision)
        finally:
            self._config.attributes.pop("connection", None)


# --- Module Notes -----------------------------------------------------------
# Runners are invoked by `orm_repository.db.context.ContextFactory` under its lock,
# so they never run concurrently for the same factory.
