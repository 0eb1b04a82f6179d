"""
orm_repository

Generic CRUD repositories over SQLAlchemy sessions.

Responsibilities:
- Expose package version metadata.
- Re-export the public API.
"""

from orm_repository.db.context import ContextFactory
from orm_repository.db.migrations import AlembicMigrator, MetadataMigrator, MigrationMode
from orm_repository.query import InvalidIncludeError, QueryOptions
from orm_repository.repository import ContextRepository, Repository
from orm_repository.settings import RepositorySettings, get_settings

__all__ = [
    "AlembicMigrator",
    "ContextFactory",
    "ContextRepository",
    "InvalidIncludeError",
    "MetadataMigrator",
    "MigrationMode",
    "QueryOptions",
    "Repository",
    "RepositorySettings",
    "__version__",
    "get_settings",
]

__version__ = "0.1.0"


# --- Module Notes -----------------------------------------------------------
# Importing the package pulls in SQLAlchemy and Alembic but opens no connections.
