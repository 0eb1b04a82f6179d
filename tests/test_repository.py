"""
tests.test_repository

Behaviour of the entity-bound `Repository`.

Responsibilities:
- Reads: filtering, ascending ordering, paging, existence and point lookups.
- Writes: create/update/delete results and persistence.
"""

from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError

from orm_repository import Repository
from tests.models import Customer


def _names(rows: list[Customer]) -> list[str]:
    return [row.name for row in rows]


def test_all_without_options_returns_full_set_in_store_order(customers, seeded) -> None:
    assert _names(customers.all()) == ["ada", "bob", "cy", "dee"]


def test_all_filters_orders_and_pages(customers, seeded) -> None:
    rows = customers.all(where=Customer.tier >= 1, order_by=Customer.name, skip=1, take=2)
    assert _names(rows) == ["bob", "cy"]


def test_all_orders_ascending(customers, seeded) -> None:
    assert [row.tier for row in customers.all(order_by=Customer.tier)] == [1, 1, 2, 3]


def test_skip_beyond_count_is_empty(customers, seeded) -> None:
    assert customers.all(skip=10) == []


def test_take_without_skip_is_prefix(customers, seeded) -> None:
    assert _names(customers.all(take=2)) == ["ada", "bob"]


@pytest.mark.parametrize(("skip", "take"), [(0, 0), (1, 1), (1, 10), (3, 2), (None, 3), (2, None)])
def test_skip_take_matches_slicing(customers, seeded, skip, take) -> None:
    ordered = _names(customers.all(order_by=Customer.name))
    start = skip or 0
    expected = ordered[start:] if take is None else ordered[start : start + take]
    assert _names(customers.all(order_by=Customer.name, skip=skip, take=take)) == expected


def test_callable_filter_and_key_are_evaluated_in_memory(customers, seeded) -> None:
    rows = customers.all(where=lambda c: c.tier != 2, order_by=lambda c: -c.tier, take=2)
    assert _names(rows) == ["cy", "bob"]


def test_callable_filter_with_sql_ordering_pages_after_filtering(customers, seeded) -> None:
    rows = customers.all(where=lambda c: c.tier == 1, order_by=Customer.name, skip=1)
    assert _names(rows) == ["dee"]


def test_negative_paging_is_rejected(customers) -> None:
    with pytest.raises(ValueError):
        customers.all(skip=-1)
    with pytest.raises(ValueError):
        customers.all(take=-1)


def test_any(customers, seeded) -> None:
    assert customers.any()
    assert customers.any(Customer.tier == 3)
    assert not customers.any(Customer.name == "zed")
    assert customers.any(lambda c: c.name.endswith("e"))
    assert not customers.any(lambda c: c.tier > 3)


def test_any_on_empty_set(customers) -> None:
    assert not customers.any()


@pytest.mark.parametrize(
    "where",
    [Customer.tier == 1, Customer.name == "nobody", lambda c: c.tier >= 2, lambda c: False],
)
def test_any_agrees_with_all(customers, seeded, where) -> None:
    assert customers.any(where) == bool(customers.all(where=where))


def test_get_returns_first_match_or_none(customers, seeded) -> None:
    assert customers.get(Customer.name == "bob").tier == 1
    assert customers.get(Customer.name == "nobody") is None
    assert customers.get(lambda c: c.tier == 1).name == "bob"
    assert customers.get(lambda c: c.tier == 9) is None


def test_get_agrees_with_first_of_all(customers, seeded) -> None:
    first = customers.all(where=Customer.tier == 1)[0]
    assert customers.get(Customer.tier == 1).id == first.id


def test_create_then_get_round_trip(customers) -> None:
    created = Customer(name="eve", tier=5)
    assert customers.create(created)
    assert created.id is not None

    fetched = customers.get(Customer.id == created.id)
    assert (fetched.id, fetched.name, fetched.tier) == (created.id, created.name, created.tier)


def test_create_many_visible_in_all(customers) -> None:
    assert customers.create(Customer(name="e1"), Customer(name="e2"))
    assert set(_names(customers.all())) == {"e1", "e2"}


def test_update_persists_modification(customers, seeded) -> None:
    bob = customers.get(Customer.name == "bob")
    bob.tier = 9
    assert customers.update(bob)
    assert customers.get(Customer.name == "bob").tier == 9


def test_update_without_changes_still_succeeds(customers, seeded) -> None:
    assert customers.update(customers.get(Customer.name == "ada"))


def test_update_of_unknown_entity_reports_false(customers, seeded) -> None:
    assert not customers.update(Customer(id=999, name="ghost", tier=0))
    assert not customers.any(Customer.id == 999)


def test_delete_removes_entity(customers, seeded) -> None:
    cy = customers.get(Customer.name == "cy")
    assert customers.delete(cy)
    assert "cy" not in _names(customers.all())


def test_delete_of_unknown_entity_reports_false(customers, seeded) -> None:
    assert not customers.delete(Customer(id=999, name="ghost"))
    assert len(customers.all()) == 4


def test_mutations_with_no_entities_are_noops(customers, seeded) -> None:
    assert customers.create()
    assert customers.update()
    assert customers.delete()
    assert _names(customers.all()) == ["ada", "bob", "cy", "dee"]


def test_partial_batch_reports_false_but_writes_known_rows(customers, seeded) -> None:
    ada = customers.get(Customer.name == "ada")
    ada.tier = 7
    assert not customers.update(ada, Customer(id=999, name="ghost"))
    assert customers.get(Customer.name == "ada").tier == 7


def test_constraint_violation_raises_and_leaves_store_unchanged(customers, seeded) -> None:
    with pytest.raises(IntegrityError):
        customers.create(Customer(name="new"), Customer(name="ada"))
    assert len(customers.all()) == 4


def test_create_of_stored_entity_raises_duplicate(customers) -> None:
    eve = Customer(name="eve")
    assert customers.create(eve)

    with pytest.raises(IntegrityError):
        customers.create(eve)
    assert [c.name for c in customers.all()] == ["eve"]


def test_session_released_when_query_fails(customers, contexts, seeded) -> None:
    def boom(_: Customer) -> bool:
        raise RuntimeError("predicate failed")

    with pytest.raises(RuntimeError):
        customers.all(where=boom)
    assert contexts.engine.pool.checkedout() == 0


def test_filter_must_be_sql_or_callable(customers) -> None:
    with pytest.raises(TypeError):
        customers.all(where="tier > 1")


def test_unbound_repository_is_rejected(contexts) -> None:
    with pytest.raises(TypeError):
        Repository(contexts)


def test_subclass_binds_entity_and_overrides(contexts, seeded) -> None:
    class TopCustomers(Repository[Customer]):
        entity = Customer

        def all(self, where=None, order_by=None, skip=None, take=None, includes=()):
            return super().all(where=Customer.tier >= 2, order_by=Customer.name)

    assert _names(TopCustomers(contexts).all()) == ["ada", "cy"]


def test_from_settings(settings, seeded) -> None:
    repo = Repository.from_settings(settings, entity=Customer)
    try:
        assert len(repo.all()) == 4
    finally:
        repo.contexts.dispose()


# --- Module Notes -----------------------------------------------------------
# "Store order" relies on SQLite returning rows in rowid order without ORDER BY.
