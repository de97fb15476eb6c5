"""
Server-side cart assembly.

The UI builds its cart client-side and submits (product id, quantity) pairs.
This rebuilds an equivalent Cart against the current catalog so prices are
snapshotted from the store, not trusted from the request.
"""

from __future__ import annotations

from typing import Iterable, Tuple
from uuid import UUID

from domain.cart import Cart
from domain.errors import NotFoundError, ValidationError
from repositories.product_repository import get_products_by_ids


def build_cart(selections: Iterable[Tuple[UUID, int]]) -> Cart:
    """
    Build a cart from (product_id, quantity) pairs.

    Repeated product ids are merged into one line.

    Raises:
        ValidationError: a quantity is not a positive integer
        NotFoundError: a product id is not in the catalog
    """

    selections = list(selections)
    for product_id, quantity in selections:
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError(f"Quantity for product {product_id} must be a positive integer")

    catalog = get_products_by_ids(product_id for product_id, _ in selections)
    missing = [str(pid) for pid, _ in selections if pid not in catalog]
    if missing:
        raise NotFoundError(f"Products not found: {', '.join(sorted(set(missing)))}")

    cart = Cart.empty()
    for product_id, quantity in selections:
        cart = cart.add_product(product_id, catalog)
        cart = cart.change_quantity(product_id, quantity - 1)
    return cart


__all__ = ["build_cart"]
