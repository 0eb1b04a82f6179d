"""
orm_repository.settings

Central configuration model (Pydantic Settings).

Responsibilities:
- Provide env-driven settings for engine, migration and logging behaviour.
- Offer a cached settings instance for callers that don't build their own.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from orm_repository.db.migrations import MigrationMode


class RepositorySettings(BaseSettings):
    """
    - Every field can be set through an `ORM_REPO_*` environment variable
    - Defaults target a local SQLite file
    """

    model_config = SettingsConfigDict(env_prefix="ORM_REPO_", case_sensitive=False)

    env: Literal["dev", "test", "prod"] = "dev"
    service_name: str = "orm-repository"
    log_level: str = "INFO"

    # Persistence
    database_url: str = Field(default="sqlite:///./repository.db", repr=False)
    echo_sql: bool = False
    pool_pre_ping: bool = True

    # Migrations
    migration_mode: MigrationMode = MigrationMode.once
    alembic_config: str | None = None
    alembic_revision: str = "head"


@lru_cache(maxsize=1)
def get_settings() -> RepositorySettings:
    return RepositorySettings()


# --- Module Notes -----------------------------------------------------------
# `database_url` is hidden from repr because it commonly embeds credentials.
