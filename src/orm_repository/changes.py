"""
orm_repository.changes

Staged changes for repository mutations.

Responsibilities:
- Stage add/update/remove operations against a session.
- Count the entities written by the commit (cascades included).
- Apply the ">= entities supplied" success rule.
"""

from __future__ import annotations

import enum
from collections.abc import Sequence
from typing import Any

from sqlalchemy import event, inspect
from sqlalchemy.orm import Session, make_transient
from sqlalchemy.orm.attributes import flag_dirty

from orm_repository.observability.logging import get_logger

log = get_logger(__name__)


class ChangeKind(enum.StrEnum):
    add = "add"
    update = "update"
    remove = "remove"


class AffectedCounter:
    """
    Sums new/dirty/deleted objects across every flush of a session.
    `after_flush` still sees the pre-flush collections.
    """

    def __init__(self, session: Session) -> None:
        self.count = 0
        event.listen(session, "after_flush", self._on_flush)

    def _on_flush(self, session: Session, _flush_context: Any) -> None:
        self.count += len(session.new) + len(session.dirty) + len(session.deleted)


def stage(session: Session, kind: ChangeKind, entity: Any) -> None:
    if kind is ChangeKind.add:
        if inspect(entity).has_identity:
            # Already stored: insert it again so the store reports the duplicate.
            make_transient(entity)
        session.add(entity)
        return

    # Callers hand in detached instances; merge() attaches a persistent copy.
    merged = session.merge(entity)
    if inspect(merged).pending:
        # No stored row with this identity: nothing to update/remove.
        session.expunge(merged)
        log.warning("repository.stage_skipped", kind=str(kind), entity=type(entity).__name__)
        return

    if kind is ChangeKind.update:
        # Counted as written even when no column value changed.
        flag_dirty(merged)
    else:
        session.delete(merged)


def save(session: Session, kind: ChangeKind, entities: Sequence[Any]) -> bool:
    counter = AffectedCounter(session)
    for entity in entities:
        stage(session, kind, entity)
    session.commit()

    ok = counter.count >= len(entities)
    log.debug(
        "repository.commit",
        kind=str(kind),
        expected=len(entities),
        affected=counter.count,
        ok=ok,
    )
    return ok


# --- Module Notes -----------------------------------------------------------
# The success rule is a minimum, not equality: cascades may write more objects
# than were supplied and still count as success.
