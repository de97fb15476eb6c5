"""
Domain: Cart (transient, never persisted).

The cart is the list of product selections a cashier builds before a sale is
committed. It follows the same immutable-transition style as the rest of the
domain: every operation returns a new Cart and leaves the original untouched.

Rules:
- One line per distinct product; insertion order is preserved.
- Price and brand are snapshotted when the product is first added.
- A line whose quantity drops to zero or below is removed, so a cart never
  holds a non-positive quantity.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Mapping, Optional, Tuple
from uuid import UUID

from .product import Product


@dataclass(frozen=True, slots=True)
class CartLine:
    product_id: UUID
    name: str
    brand: str
    unit_price: Decimal
    quantity: int

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True, slots=True)
class CartTotals:
    total_amount: Decimal
    total_bags: int


@dataclass(frozen=True, slots=True)
class Cart:
    lines: Tuple[CartLine, ...] = ()

    @staticmethod
    def empty() -> "Cart":
        return Cart()

    def get(self, product_id: UUID) -> Optional[CartLine]:
        for line in self.lines:
            if line.product_id == product_id:
                return line
        return None

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def add_product(self, product_id: UUID, catalog: Mapping[UUID, Product]) -> "Cart":
        """
        Add one bag of `product_id`.

        Increments the existing line, or appends a new line with quantity 1 and
        the product's current price and brand. Unknown products are ignored.
        """

        if self.get(product_id) is not None:
            return self.change_quantity(product_id, 1)

        product = catalog.get(product_id)
        if product is None:
            return self

        line = CartLine(
            product_id=product.product_id,
            name=product.name,
            brand=product.brand,
            unit_price=product.price_per_bag,
            quantity=1,
        )
        return Cart(lines=self.lines + (line,))

    def change_quantity(self, product_id: UUID, delta: int) -> "Cart":
        """Adjust a line's quantity by `delta`, dropping it once it reaches zero."""

        updated = []
        for line in self.lines:
            if line.product_id != product_id:
                updated.append(line)
                continue
            quantity = line.quantity + delta
            if quantity > 0:
                updated.append(replace(line, quantity=quantity))
        return Cart(lines=tuple(updated))

    def remove_product(self, product_id: UUID) -> "Cart":
        return Cart(lines=tuple(line for line in self.lines if line.product_id != product_id))

    def compute_totals(self) -> CartTotals:
        total_amount = Decimal("0")
        total_bags = 0
        for line in self.lines:
            total_amount += line.subtotal
            total_bags += line.quantity
        return CartTotals(total_amount=total_amount, total_bags=total_bags)
