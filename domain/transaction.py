"""
Domain: Committed sales.

A Transaction (header) and its TransactionLineItems are created together and
are append-only afterwards. Invariants enforced here:

- line subtotal == quantity * unit_price (never set independently)
- quantity is a positive integer
- header totals equal the sums over the header's line items
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional, Tuple
from uuid import UUID

from .time import require_utc_timestamp


@dataclass(frozen=True, slots=True)
class TransactionLineItem:
    """
    One product entry of a committed sale.

    `unit_price` is the price snapshot taken when the product was added to the
    cart. `product_name` / `product_brand` / `product_price` describe the
    referenced product as it is *now* (joined at read time) and are None when
    the product no longer exists.
    """

    line_item_id: UUID
    transaction_id: UUID
    product_id: UUID
    quantity: int
    unit_price: Decimal
    product_name: Optional[str] = None
    product_brand: Optional[str] = None
    product_price: Optional[Decimal] = None

    def __post_init__(self) -> None:
        if isinstance(self.quantity, bool) or not isinstance(self.quantity, int):
            raise ValueError("quantity must be an integer")
        if self.quantity <= 0:
            raise ValueError("quantity must be positive")
        if self.unit_price < 0:
            raise ValueError("unit_price must not be negative")

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True, slots=True)
class Transaction:
    """
    Immutable record of one committed sale.

    `line_items` is empty when the header was loaded without its items
    (see `list_transactions(with_line_items=False)`); totals are then taken
    from the header as stored.
    """

    transaction_id: UUID
    customer_id: UUID
    invoice_number: str
    merchant_id: str
    total_bags: int
    total_amount: Decimal
    created_at: datetime
    created_by: Optional[str] = None
    line_items: Tuple[TransactionLineItem, ...] = field(default=())

    def __post_init__(self) -> None:
        require_utc_timestamp("created_at", self.created_at)
        if not self.line_items:
            return
        for item in self.line_items:
            if item.transaction_id != self.transaction_id:
                raise ValueError("line item belongs to a different transaction")
        if self.total_bags != sum(item.quantity for item in self.line_items):
            raise ValueError("total_bags does not match line item quantities")
        if self.total_amount != sum((item.subtotal for item in self.line_items), Decimal("0")):
            raise ValueError("total_amount does not match line item subtotals")
