"""
orm_repository.repository

Generic CRUD repositories over short-lived SQLAlchemy sessions.

Responsibilities:
- `ContextRepository`: entity class chosen per call.
- `Repository[EntityT]`: bound to a single entity class; methods are overridable.
- Async variants that run the sync methods on an executor thread.
"""

from __future__ import annotations

import asyncio
import contextvars
import functools
from collections.abc import Callable, Sequence
from concurrent.futures import Executor
from typing import Any, Generic, TypeVar

from sqlalchemy import MetaData

from orm_repository import query
from orm_repository.changes import ChangeKind, save
from orm_repository.db.context import ContextFactory
from orm_repository.observability.logging import get_logger
from orm_repository.query import Include, OrderKey, Predicate, QueryOptions
from orm_repository.settings import RepositorySettings, get_settings

log = get_logger(__name__)

EntityT = TypeVar("EntityT")
R = TypeVar("R")


class _BaseRepository:
    def __init__(self, contexts: ContextFactory, *, executor: Executor | None = None) -> None:
        self._contexts = contexts
        self._executor = executor

    @property
    def contexts(self) -> ContextFactory:
        return self._contexts

    async def _in_background(self, fn: Callable[..., R], /, *args: Any, **kwargs: Any) -> R:
        # Copy contextvars so structlog-bound context follows the call onto the worker.
        ctx = contextvars.copy_context()
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            self._executor, functools.partial(ctx.run, fn, *args, **kwargs)
        )

    def _query(self, entity: type[EntityT], options: QueryOptions) -> list[EntityT]:
        with self._contexts.scope() as session:
            items = query.fetch_all(session, entity, options)
        log.debug("repository.query", entity=entity.__name__, count=len(items))
        return items

    def _any(self, entity: type, where: Predicate, includes: Sequence[Include]) -> bool:
        with self._contexts.scope() as session:
            return query.exists(session, entity, where, includes)

    def _get(self, entity: type[EntityT], where: Predicate, includes: Sequence[Include]) -> EntityT | None:
        with self._contexts.scope() as session:
            return query.first(session, entity, where, includes)

    def _save(self, kind: ChangeKind, entities: Sequence[Any]) -> bool:
        with self._contexts.scope() as session:
            return save(session, kind, entities)


class ContextRepository(_BaseRepository):
    """
    Repository over every entity mapped on the context's database.
    Reads take the entity class as the first argument; writes work on any
    mapped instances.
    """

    def all(
        self,
        entity: type[EntityT],
        where: Predicate = None,
        order_by: OrderKey = None,
        skip: int | None = None,
        take: int | None = None,
        includes: Sequence[Include] = (),
    ) -> list[EntityT]:
        options = QueryOptions(where=where, order_by=order_by, skip=skip, take=take, includes=includes)
        return self._query(entity, options)

    def any(self, entity: type, where: Predicate = None, includes: Sequence[Include] = ()) -> bool:
        return self._any(entity, where, includes)

    def get(
        self, entity: type[EntityT], where: Predicate, includes: Sequence[Include] = ()
    ) -> EntityT | None:
        return self._get(entity, where, includes)

    def create(self, *entities: Any) -> bool:
        return self._save(ChangeKind.add, entities)

    def update(self, *entities: Any) -> bool:
        return self._save(ChangeKind.update, entities)

    def delete(self, *entities: Any) -> bool:
        return self._save(ChangeKind.remove, entities)

    async def all_async(
        self,
        entity: type[EntityT],
        where: Predicate = None,
        order_by: OrderKey = None,
        skip: int | None = None,
        take: int | None = None,
        includes: Sequence[Include] = (),
    ) -> list[EntityT]:
        return await self._in_background(self.all, entity, where, order_by, skip, take, includes)

    async def any_async(
        self, entity: type, where: Predicate = None, includes: Sequence[Include] = ()
    ) -> bool:
        return await self._in_background(self.any, entity, where, includes)

    async def get_async(
        self, entity: type[EntityT], where: Predicate, includes: Sequence[Include] = ()
    ) -> EntityT | None:
        return await self._in_background(self.get, entity, where, includes)

    async def create_async(self, *entities: Any) -> bool:
        return await self._in_background(self.create, *entities)

    async def update_async(self, *entities: Any) -> bool:
        return await self._in_background(self.update, *entities)

    async def delete_async(self, *entities: Any) -> bool:
        return await self._in_background(self.delete, *entities)


class Repository(_BaseRepository, Generic[EntityT]):
    """
    Repository for a single entity class.

    Bind the class either on a subclass::

        class CustomerRepository(Repository[Customer]):
            entity = Customer

    or per instance with `Repository(contexts, Customer)`. Every sync method
    may be overridden; the async variants call through `self` and pick the
    override up.
    """

    entity: type[Any] | None = None

    def __init__(
        self,
        contexts: ContextFactory,
        entity: type[EntityT] | None = None,
        *,
        executor: Executor | None = None,
    ) -> None:
        super().__init__(contexts, executor=executor)
        if entity is not None:
            self.entity = entity
        if self.entity is None:
            raise TypeError(f"{type(self).__name__} has no entity class bound")

    @classmethod
    def from_settings(
        cls,
        settings: RepositorySettings | None = None,
        *,
        entity: type[EntityT] | None = None,
        metadata: MetaData | None = None,
        executor: Executor | None = None,
    ) -> Repository[EntityT]:
        contexts = ContextFactory.from_settings(settings or get_settings(), metadata=metadata)
        return cls(contexts, entity, executor=executor)

    def all(
        self,
        where: Predicate = None,
        order_by: OrderKey = None,
        skip: int | None = None,
        take: int | None = None,
        includes: Sequence[Include] = (),
    ) -> list[EntityT]:
        """
        Entities matching `where`, ordered ascending by `order_by`, after
        skipping `skip` and keeping at most `take`. `includes` names the
        relationships to eager-load.
        """
        options = QueryOptions(where=where, order_by=order_by, skip=skip, take=take, includes=includes)
        return self._query(self.entity, options)

    def any(self, where: Predicate = None, includes: Sequence[Include] = ()) -> bool:
        """True if any entity satisfies `where` (or the set is non-empty)."""
        return self._any(self.entity, where, includes)

    def get(self, where: Predicate, includes: Sequence[Include] = ()) -> EntityT | None:
        """First entity satisfying `where`, or None."""
        return self._get(self.entity, where, includes)

    def create(self, *entities: EntityT) -> bool:
        """True if at least as many entities were written as supplied."""
        return self._save(ChangeKind.add, entities)

    def update(self, *entities: EntityT) -> bool:
        return self._save(ChangeKind.update, entities)

    def delete(self, *entities: EntityT) -> bool:
        return self._save(ChangeKind.remove, entities)

    async def all_async(
        self,
        where: Predicate = None,
        order_by: OrderKey = None,
        skip: int | None = None,
        take: int | None = None,
        includes: Sequence[Include] = (),
    ) -> list[EntityT]:
        return await self._in_background(self.all, where, order_by, skip, take, includes)

    async def any_async(self, where: Predicate = None, includes: Sequence[Include] = ()) -> bool:
        return await self._in_background(self.any, where, includes)

    async def get_async(self, where: Predicate, includes: Sequence[Include] = ()) -> EntityT | None:
        return await self._in_background(self.get, where, includes)

    async def create_async(self, *entities: EntityT) -> bool:
        return await self._in_background(self.create, *entities)

    async def update_async(self, *entities: EntityT) -> bool:
        return await self._in_background(self.update, *entities)

    async def delete_async(self, *entities: EntityT) -> bool:
        return await self._in_background(self.delete, *entities)


# --- Module Notes -----------------------------------------------------------
# Results are detached once returned: relationships not listed in `includes`
# raise DetachedInstanceError on access instead of lazy loading.
#
# A write batch commits as a unit only for what it can stage. Entities passed to
# `update`/`delete` that are not in the store are skipped; the rest of the batch is
# still committed and the call returns False. Check for existence first when a
# batch must be all-or-nothing.
