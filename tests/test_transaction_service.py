"""
Tests for `services/transaction_service.py`.

Covers:
- Persisted totals equal the cart totals; line subtotals sum to the total.
- Two sales with one phone number share a single customer.
- Validation failures write nothing.
- A line-item failure never leaves a visible transaction without items,
  whether or not the compensating delete succeeds.
- Orphaned headers are reconciled.
- Duplicate invoice numbers are retried with a fresh number.
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest
from postgrest.exceptions import APIError

from domain.cart import Cart
from domain.errors import PartialCommitError, PersistenceError, ValidationError
from repositories import product_repository
from repositories.transaction_repository import list_transactions
from services.transaction_service import (
    CommitRequest,
    commit_transaction,
    find_orphaned_transactions,
    generate_invoice_number,
    reconcile_orphaned_transactions,
)


@pytest.fixture
def catalog(fake_db):
    urea = product_repository.create_product("Urea", "Brand A", Decimal("1200"))
    dap = product_repository.create_product("DAP", "Brand B", Decimal("3000"))
    return {urea.product_id: urea, dap.product_id: dap}


def _example_cart(catalog) -> Cart:
    urea, dap = sorted(catalog.values(), key=lambda p: p.name, reverse=True)
    return (
        Cart.empty()
        .add_product(urea.product_id, catalog)
        .add_product(urea.product_id, catalog)
        .add_product(dap.product_id, catalog)
    )


def _request(cart: Cart, phone: str = "0300-1111111", name: str = "Ali Khan") -> CommitRequest:
    return CommitRequest(cart=cart, customer_name=name, customer_phone=phone, merchant_id="M-01", created_by="cashier-1")


def test_commit_persists_cart_totals(fake_db, catalog) -> None:
    cart = _example_cart(catalog)

    result = commit_transaction(_request(cart))

    header = fake_db.rows("transactions")[0]
    assert Decimal(header["total_amount"]) == Decimal("5400")
    assert header["total_bags"] == 3
    assert header["merchant_id"] == "M-01"
    assert header["created_by"] == "cashier-1"

    items = fake_db.rows("transaction_items")
    assert len(items) == 2
    assert sum(Decimal(i["subtotal"]) for i in items) == Decimal(header["total_amount"])
    assert all(Decimal(i["subtotal"]) == Decimal(i["unit_price"]) * i["quantity"] for i in items)

    assert result.transaction.total_amount == cart.compute_totals().total_amount
    assert result.transaction.total_bags == cart.compute_totals().total_bags
    assert result.cart.is_empty


def test_same_phone_twice_yields_one_customer_two_transactions(fake_db, catalog) -> None:
    cart = _example_cart(catalog)

    first = commit_transaction(_request(cart, name="Ali Khan"))
    second = commit_transaction(_request(cart, name="Someone Else"))

    assert len(fake_db.rows("customers")) == 1
    transactions = list_transactions()
    assert len(transactions) == 2
    assert {t.customer_id for t in transactions} == {first.customer.customer_id}
    assert second.customer.name == "Ali Khan"
    assert first.transaction.invoice_number != second.transaction.invoice_number


def test_committed_transaction_round_trips_through_store(fake_db, catalog) -> None:
    result = commit_transaction(_request(_example_cart(catalog)))

    [stored] = list_transactions(with_line_items=True)

    assert stored.transaction_id == result.transaction.transaction_id
    assert stored.invoice_number == result.transaction.invoice_number
    assert sorted((i.product_name, i.quantity) for i in stored.line_items) == [("DAP", 1), ("Urea", 2)]
    assert {i.product_brand for i in stored.line_items} == {"Brand A", "Brand B"}


@pytest.mark.parametrize(
    "overrides",
    [
        {"cart": Cart.empty()},
        {"customer_name": "  "},
        {"customer_phone": ""},
        {"merchant_id": " "},
    ],
)
def test_validation_failures_write_nothing(fake_db, catalog, overrides) -> None:
    base = _request(_example_cart(catalog))
    fields = {
        "cart": base.cart,
        "customer_name": base.customer_name,
        "customer_phone": base.customer_phone,
        "merchant_id": base.merchant_id,
    }
    fields.update(overrides)
    fake_db.calls.clear()

    with pytest.raises(ValidationError):
        commit_transaction(CommitRequest(**fields))

    assert fake_db.calls == []
    assert fake_db.rows("transactions") == []


def test_header_failure_is_clean_persistence_error(fake_db, catalog) -> None:
    fake_db.fail_next("transactions", "insert")

    with pytest.raises(PersistenceError):
        commit_transaction(_request(_example_cart(catalog)))

    assert fake_db.rows("transactions") == []
    assert fake_db.rows("transaction_items") == []


def test_line_item_failure_rolls_back_header(fake_db, catalog) -> None:
    fake_db.fail_next("transaction_items", "insert")

    with pytest.raises(PartialCommitError) as exc_info:
        commit_transaction(_request(_example_cart(catalog)))

    assert exc_info.value.rolled_back is True
    assert isinstance(exc_info.value.__cause__, PersistenceError)
    assert fake_db.rows("transactions") == []
    assert list_transactions() == []


def test_failed_rollback_is_never_visible_and_is_reconciled(fake_db, catalog) -> None:
    fake_db.fail_next("transaction_items", "insert")
    fake_db.fail_next("transactions", "delete")

    with pytest.raises(PartialCommitError) as exc_info:
        commit_transaction(_request(_example_cart(catalog)))

    error = exc_info.value
    assert error.rolled_back is False
    assert len(fake_db.rows("transactions")) == 1
    assert list_transactions() == []
    assert list_transactions(with_line_items=False) == []

    # Too recent: could still be a commit in flight.
    assert find_orphaned_transactions() == []

    fake_db.rows("transactions")[0]["created_at"] = (
        datetime.now(timezone.utc) - timedelta(hours=1)
    ).isoformat()

    assert reconcile_orphaned_transactions(dry_run=True) == [error.invoice_number]
    assert len(fake_db.rows("transactions")) == 1

    assert reconcile_orphaned_transactions() == [error.invoice_number]
    assert fake_db.rows("transactions") == []


def test_reconcile_leaves_complete_transactions_alone(fake_db, catalog) -> None:
    commit_transaction(_request(_example_cart(catalog)))
    for row in fake_db.rows("transactions"):
        row["created_at"] = (datetime.now(timezone.utc) - timedelta(days=1)).isoformat()

    assert reconcile_orphaned_transactions() == []
    assert len(list_transactions()) == 1


def test_duplicate_invoice_number_is_retried(fake_db, catalog) -> None:
    fake_db.fail_next(
        "transactions",
        "insert",
        APIError({"message": "duplicate key", "code": "23505", "hint": None, "details": None}),
    )

    result = commit_transaction(_request(_example_cart(catalog)))

    assert len(fake_db.rows("transactions")) == 1
    assert fake_db.rows("transactions")[0]["invoice_number"] == result.transaction.invoice_number


def test_invoice_number_format_and_uniqueness() -> None:
    now = datetime(2025, 1, 1, 9, 30, 0, tzinfo=timezone.utc)

    numbers = {generate_invoice_number(now) for _ in range(50)}

    assert all(re.fullmatch(r"INV-20250101093000-[0-9A-F]{6}", n) for n in numbers)
    assert len(numbers) > 1
