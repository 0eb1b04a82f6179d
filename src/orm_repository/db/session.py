"""
orm_repository.db.session

SQLAlchemy engine + session factory helpers.

Responsibilities:
- Create the engine from settings.
- Create the sessionmaker with safe defaults for detached results.
"""

from __future__ import annotations

from sqlalchemy import Engine, create_engine as sa_create_engine
from sqlalchemy.orm import Session, sessionmaker

from orm_repository.settings import RepositorySettings


def create_engine(settings: RepositorySettings) -> Engine:
    # pool_pre_ping helps detect stale connections in long-lived processes.
    return sa_create_engine(
        settings.database_url,
        pool_pre_ping=settings.pool_pre_ping,
        echo=settings.echo_sql,
    )


def create_sessionmaker(engine: Engine) -> sessionmaker[Session]:
    # Sessions are closed before results are returned, so attributes must stay
    # loaded after commit (expire_on_commit=False).
    return sessionmaker(
        bind=engine,
        expire_on_commit=False,
        autoflush=False,
    )


# --- Module Notes -----------------------------------------------------------
# autoflush=False keeps the merge() lookups in `orm_repository.changes` from
# flushing half-staged batches; everything is written by the single commit.
