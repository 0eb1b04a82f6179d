"""
orm_repository.db

Persistence plumbing (SQLAlchemy sync engine + sessions).

Responsibilities:
- Build engines and session factories from settings.
- Apply schema migrations.
- Hand out short-lived sessions ("contexts") to repositories.
"""

# Package marker; import from submodules.


# --- Module Notes -----------------------------------------------------------
# Nothing in this package knows about concrete entity classes.
