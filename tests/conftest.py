"""
tests.conftest

Shared fixtures: a file-backed SQLite database per test.
"""

from __future__ import annotations

from collections.abc import Iterator

import pytest

from orm_repository import ContextFactory, ContextRepository, Repository, RepositorySettings
from tests.models import Base, Customer, Order, OrderLine


@pytest.fixture
def settings(tmp_path) -> RepositorySettings:
    return RepositorySettings(env="test", database_url=f"sqlite:///{tmp_path / 'repo.db'}")


@pytest.fixture
def contexts(settings: RepositorySettings) -> Iterator[ContextFactory]:
    factory = ContextFactory.from_settings(settings, metadata=Base.metadata)
    try:
        yield factory
    finally:
        factory.dispose()


@pytest.fixture
def customers(contexts: ContextFactory) -> Repository[Customer]:
    return Repository(contexts, Customer)


@pytest.fixture
def store(contexts: ContextFactory) -> ContextRepository:
    return ContextRepository(contexts)


@pytest.fixture
def seeded(customers: Repository[Customer]) -> list[Customer]:
    rows = [
        Customer(name="ada", tier=2),
        Customer(name="bob", tier=1),
        Customer(name="cy", tier=3),
        Customer(name="dee", tier=1),
    ]
    assert customers.create(*rows)
    return rows


@pytest.fixture
def with_orders(customers: Repository[Customer]) -> Customer:
    customer = Customer(
        name="olga",
        tier=4,
        orders=[
            Order(total=10, lines=[OrderLine(sku="A-1"), OrderLine(sku="A-2")]),
            Order(total=25, lines=[OrderLine(sku="B-1")]),
        ],
    )
    assert customers.create(customer)
    return customer
