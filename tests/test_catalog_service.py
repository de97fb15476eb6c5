"""
Tests for `services/catalog_service.py` and `services/cart_service.py`.

Covers:
- Product input validation happens before any write.
- Missing products raise NotFoundError.
- Editing a product's price does not change committed line items.
- Carts built from requests snapshot the catalog price.
"""

from __future__ import annotations

from decimal import Decimal
from uuid import UUID

import pytest

from domain.errors import NotFoundError, ValidationError
from repositories.transaction_repository import list_transactions
from services import catalog_service
from services.cart_service import build_cart
from services.transaction_service import CommitRequest, commit_transaction


def test_create_product_trims_and_stores(fake_db) -> None:
    product = catalog_service.create_product("  Urea ", " Brand A ", "1200.50", description="  ")

    assert product.name == "Urea"
    assert product.brand == "Brand A"
    assert product.price_per_bag == Decimal("1200.50")
    assert product.description is None
    assert catalog_service.get_product(product.product_id) == product


@pytest.mark.parametrize(
    "name,brand,price",
    [("", "Brand A", "100"), ("Urea", "  ", "100"), ("Urea", "Brand A", "0"), ("Urea", "Brand A", "-5"), ("Urea", "Brand A", "abc"), ("Urea", "Brand A", "NaN"), ("Urea", "Brand A", "1200.555")],
)
def test_create_product_validation(fake_db, name: str, brand: str, price: str) -> None:
    with pytest.raises(ValidationError):
        catalog_service.create_product(name, brand, price)

    assert fake_db.calls == []


def test_price_is_stored_to_the_cent(fake_db) -> None:
    product = catalog_service.create_product("Urea", "Brand A", "1200.5")

    assert str(product.price_per_bag) == "1200.50"
    assert catalog_service.get_product(product.product_id).price_per_bag == product.price_per_bag

    with pytest.raises(ValidationError):
        catalog_service.update_product(product.product_id, price_per_bag="1300.001")
    assert catalog_service.get_product(product.product_id).price_per_bag == Decimal("1200.50")


def test_update_and_delete_missing_product(fake_db) -> None:
    missing = UUID(int=404)

    with pytest.raises(NotFoundError):
        catalog_service.update_product(missing, name="Urea")
    with pytest.raises(NotFoundError):
        catalog_service.delete_product(missing)
    with pytest.raises(NotFoundError):
        catalog_service.get_product(missing)


def test_update_requires_a_change(fake_db) -> None:
    product = catalog_service.create_product("Urea", "Brand A", "1200")

    with pytest.raises(ValidationError):
        catalog_service.update_product(product.product_id)


def test_price_edit_does_not_change_past_sales(fake_db) -> None:
    product = catalog_service.create_product("Urea", "Brand A", "1200")
    cart = build_cart([(product.product_id, 2)])
    commit_transaction(CommitRequest(cart=cart, customer_name="Ali", customer_phone="0300", merchant_id="M-01"))

    updated = catalog_service.update_product(product.product_id, price_per_bag=Decimal("1500"), name="Urea 46%")

    [transaction] = list_transactions()
    [item] = transaction.line_items
    assert updated.price_per_bag == Decimal("1500")
    assert item.unit_price == Decimal("1200")
    assert item.subtotal == Decimal("2400")
    assert item.product_price == Decimal("1500")
    assert item.product_name == "Urea 46%"
    assert transaction.total_amount == Decimal("2400")


def test_delete_product(fake_db) -> None:
    product = catalog_service.create_product("Urea", "Brand A", "1200")

    catalog_service.delete_product(product.product_id)

    assert catalog_service.catalog_by_id() == {}


def test_build_cart_merges_repeated_products(fake_db) -> None:
    urea = catalog_service.create_product("Urea", "Brand A", "1200")
    dap = catalog_service.create_product("DAP", "Brand B", "3000")

    cart = build_cart([(urea.product_id, 1), (dap.product_id, 1), (urea.product_id, 1)])

    assert [(line.name, line.quantity) for line in cart.lines] == [("Urea", 2), ("DAP", 1)]
    assert cart.compute_totals().total_amount == Decimal("5400")


def test_build_cart_rejects_unknown_products_and_bad_quantities(fake_db) -> None:
    urea = catalog_service.create_product("Urea", "Brand A", "1200")

    with pytest.raises(NotFoundError):
        build_cart([(urea.product_id, 1), (UUID(int=404), 1)])
    with pytest.raises(ValidationError):
        build_cart([(urea.product_id, 0)])
