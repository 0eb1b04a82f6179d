"""
orm_repository.db.context

Context accessor: hands out fresh sessions with migrations applied.

Responsibilities:
- Create one new `Session` per repository call.
- Run pending migrations before the session is handed out (per `MigrationMode`).
- Provide a scope helper that closes the session on every exit path.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import Engine, MetaData
from sqlalchemy.orm import Session, sessionmaker

from orm_repository.db.migrations import (
    AlembicMigrator,
    MetadataMigrator,
    MigrationMode,
    Migrator,
)
from orm_repository.db.session import create_engine, create_sessionmaker
from orm_repository.observability.logging import get_logger
from orm_repository.settings import RepositorySettings

log = get_logger(__name__)


class ContextFactory:
    def __init__(
        self,
        engine: Engine,
        *,
        migrator: Migrator | None = None,
        mode: MigrationMode = MigrationMode.once,
        session_factory: sessionmaker[Session] | None = None,
    ) -> None:
        self._engine = engine
        self._migrator = migrator
        self._mode = MigrationMode(mode)
        self._session_factory = session_factory or create_sessionmaker(engine)
        self._lock = threading.Lock()
        self._migrated = False

    @classmethod
    def from_settings(
        cls,
        settings: RepositorySettings,
        *,
        metadata: MetaData | None = None,
    ) -> ContextFactory:
        migrator: Migrator | None = None
        if settings.alembic_config:
            migrator = AlembicMigrator(settings.alembic_config, revision=settings.alembic_revision)
        elif metadata is not None:
            migrator = MetadataMigrator(metadata)

        engine = create_engine(settings)
        return cls(
            engine,
            migrator=migrator,
            mode=settings.migration_mode,
            session_factory=create_sessionmaker(engine),
        )

    @property
    def engine(self) -> Engine:
        return self._engine

    @property
    def migrated(self) -> bool:
        return self._migrated

    def acquire(self) -> Session:
        """
        Return a new session. The caller owns it and must close it,
        including on error paths; prefer `scope()`.
        """

        self._ensure_migrated()
        return self._session_factory()

    @contextmanager
    def scope(self) -> Iterator[Session]:
        session = self.acquire()
        try:
            yield session
        except BaseException:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        self._engine.dispose()

    def _ensure_migrated(self) -> None:
        if self._migrator is None or self._mode is MigrationMode.never:
            return
        if self._mode is MigrationMode.once and self._migrated:
            return

        with self._lock:
            if self._mode is MigrationMode.once and self._migrated:
                return
            # Failures propagate and leave `_migrated` unset; the next acquisition retries.
            with self._engine.begin() as conn:
                self._migrator.migrate(conn)
            self._migrated = True
        log.info("context.migrated", mode=str(self._mode), migrator=type(self._migrator).__name__)


# --- Module Notes -----------------------------------------------------------
# `MigrationMode.always` reproduces "migrate on every context"; it's correct but
# costs a schema check per call, which is why `once` is the default.
