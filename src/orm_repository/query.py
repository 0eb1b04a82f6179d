"""
orm_repository.query

Query composition for repository reads.

Responsibilities:
- Describe a read (`QueryOptions`: filter, ascending order, skip, take, includes).
- Translate options into a SQLAlchemy `select()` where possible.
- Fall back to in-memory evaluation for plain Python predicates/keys.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from itertools import islice
from typing import Any, TypeVar

from sqlalchemy import Select, asc, inspect, select
from sqlalchemy.orm import Load, Session, joinedload
from sqlalchemy.sql import ClauseElement

EntityT = TypeVar("EntityT")

# A predicate/key is either a SQL expression (pushed to the database) or a
# plain callable evaluated against loaded entities.
Predicate = Any
OrderKey = Any
Include = Any


class InvalidIncludeError(ValueError):
    pass


def is_sql_expression(value: Any) -> bool:
    return isinstance(value, ClauseElement) or hasattr(value, "__clause_element__")


def _in_memory(value: Any) -> bool:
    if value is None or is_sql_expression(value):
        return False
    if not callable(value):
        raise TypeError(f"expected a SQL expression or a callable, got {type(value).__name__}")
    return True


@dataclass(frozen=True, slots=True)
class QueryOptions:
    where: Predicate = None
    order_by: OrderKey = None
    skip: int | None = None
    take: int | None = None
    includes: tuple[Include, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.skip is not None and self.skip < 0:
            raise ValueError("skip must be >= 0")
        if self.take is not None and self.take < 0:
            raise ValueError("take must be >= 0")
        includes = (self.includes,) if isinstance(self.includes, str) else tuple(self.includes)
        object.__setattr__(self, "includes", includes)

    @property
    def filters_in_memory(self) -> bool:
        return _in_memory(self.where)

    @property
    def orders_in_memory(self) -> bool:
        return _in_memory(self.order_by)

    @property
    def pages_in_database(self) -> bool:
        return not (self.filters_in_memory or self.orders_in_memory)


def include_loaders(entity: type, includes: Iterable[Include]) -> list[Load]:
    """
    Turn include paths into chained `joinedload()` options, in the order given.

    A path is a relationship name, a dotted path of names ("orders.lines"),
    or a relationship attribute (`Customer.orders`).
    """

    loaders: list[Load] = []
    for include in includes:
        if not isinstance(include, str):
            loaders.append(joinedload(include))
            continue

        if not include:
            raise InvalidIncludeError("empty include path")
        loader: Load | None = None
        owner = entity
        for name in include.split("."):
            relationships = inspect(owner).relationships
            if name not in relationships:
                raise InvalidIncludeError(f"{owner.__name__} has no relationship {name!r} ({include!r})")
            attr = getattr(owner, name)
            loader = joinedload(attr) if loader is None else loader.joinedload(attr)
            owner = relationships[name].mapper.class_
        loaders.append(loader)
    return loaders


def build_statement(entity: type[EntityT], options: QueryOptions) -> Select[tuple[EntityT]]:
    stmt = select(entity)
    loaders = include_loaders(entity, options.includes)
    if loaders:
        stmt = stmt.options(*loaders)
    if options.where is not None and not options.filters_in_memory:
        stmt = stmt.where(options.where)
    if options.order_by is not None and not options.orders_in_memory:
        stmt = stmt.order_by(asc(options.order_by))
    if options.pages_in_database:
        if options.skip is not None:
            stmt = stmt.offset(options.skip)
        if options.take is not None:
            stmt = stmt.limit(options.take)
    return stmt


def _scan(session: Session, stmt: Select[tuple[EntityT]]) -> Iterable[EntityT]:
    # unique() is required once a joinedload targets a collection.
    return session.scalars(stmt).unique()


def fetch_all(session: Session, entity: type[EntityT], options: QueryOptions) -> list[EntityT]:
    items = _scan(session, build_statement(entity, options))
    if options.pages_in_database:
        return list(items)

    if options.filters_in_memory:
        items = filter(options.where, items)
    if options.orders_in_memory:
        items = sorted(items, key=options.order_by)

    start = options.skip or 0
    stop = None if options.take is None else start + options.take
    return list(islice(items, start, stop))


def exists(
    session: Session,
    entity: type,
    where: Predicate = None,
    includes: Sequence[Include] = (),
) -> bool:
    options = QueryOptions(where=where, includes=includes)
    if not options.filters_in_memory:
        # Includes are validated but left out: they can't change whether a row exists.
        include_loaders(entity, options.includes)
        stmt = select(entity)
        if where is not None:
            stmt = stmt.where(where)
        return bool(session.scalar(select(stmt.exists())))

    predicate: Callable[[Any], bool] = options.where
    return any(predicate(item) for item in _scan(session, build_statement(entity, options)))


def first(
    session: Session,
    entity: type[EntityT],
    where: Predicate,
    includes: Sequence[Include] = (),
) -> EntityT | None:
    options = QueryOptions(where=where, includes=includes)
    if not options.filters_in_memory:
        stmt = build_statement(entity, options).limit(1)
        return session.scalars(stmt).unique().first()

    return next((item for item in _scan(session, build_statement(entity, options)) if where(item)), None)


# --- Module Notes -----------------------------------------------------------
# Mixing a callable filter with SQL ordering still orders in SQL; only paging
# moves to Python, since OFFSET/LIMIT would otherwise count unfiltered rows.
