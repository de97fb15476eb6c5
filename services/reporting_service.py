"""
Aggregation engine for sales reporting.

Every figure is recomputed from the committed record set on each call; no
running counters are kept, so reports cannot drift from the stored sales.
All functions here are pure: same input set, same result, independent of the
order of the input records (only sums, counts and maxima are accumulated).

Rollups:
- global_totals: revenue, bags and transaction count
- sales_by_brand: quantity and revenue per product brand
- sales_by_product: quantity and revenue per (product name, brand)
- customer_summaries: spend, purchase count, bags and last purchase per customer
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from uuid import UUID

from domain.customer import Customer
from domain.transaction import Transaction, TransactionLineItem

# Bucket for line items whose product (or its brand/name) is missing.
UNKNOWN: str = "Unknown"

RECENT_TRANSACTION_LIMIT: int = 5


@dataclass(frozen=True, slots=True)
class GlobalTotals:
    revenue: Decimal
    bags: int
    count: int


@dataclass(frozen=True, slots=True)
class BrandSales:
    brand: str
    quantity: int
    revenue: Decimal


@dataclass(frozen=True, slots=True)
class ProductSales:
    """
    Sales of one (product name, brand) pair.

    `price_per_bag` is the product's *current* catalog price, shown for
    reference. `average_unit_price` is derived from the prices actually
    charged and is the figure to use for revenue-per-bag.
    """

    product_name: str
    brand: str
    price_per_bag: Optional[Decimal]
    quantity: int
    revenue: Decimal

    @property
    def average_unit_price(self) -> Decimal:
        if self.quantity == 0:
            return Decimal("0")
        return self.revenue / self.quantity


@dataclass(frozen=True, slots=True)
class CustomerSummary:
    customer: Customer
    total_spent: Decimal
    purchase_count: int
    total_bags: int
    last_purchase_at: Optional[datetime]


@dataclass(frozen=True, slots=True)
class DashboardSummary:
    totals: GlobalTotals
    customer_count: int
    product_count: int
    recent_transactions: Tuple[Transaction, ...]


def line_items_of(transactions: Iterable[Transaction]) -> List[TransactionLineItem]:
    """Flatten the line items of several transactions."""

    return [item for transaction in transactions for item in transaction.line_items]


def global_totals(transactions: Iterable[Transaction]) -> GlobalTotals:
    revenue = Decimal("0")
    bags = 0
    count = 0
    for transaction in transactions:
        revenue += transaction.total_amount
        bags += transaction.total_bags
        count += 1
    return GlobalTotals(revenue=revenue, bags=bags, count=count)


def sales_by_brand(line_items: Iterable[TransactionLineItem]) -> Dict[str, BrandSales]:
    """
    Quantity and revenue per brand.

    Keys appear in order of first occurrence; compare results as mappings.
    """

    quantities: Dict[str, int] = {}
    revenues: Dict[str, Decimal] = {}
    for item in line_items:
        brand = item.product_brand or UNKNOWN
        quantities[brand] = quantities.get(brand, 0) + item.quantity
        revenues[brand] = revenues.get(brand, Decimal("0")) + item.subtotal

    return {
        brand: BrandSales(brand=brand, quantity=quantities[brand], revenue=revenues[brand])
        for brand in quantities
    }


def sales_by_product(line_items: Iterable[TransactionLineItem]) -> Dict[Tuple[str, str], ProductSales]:
    """
    Quantity and revenue per (product name, brand).

    If several catalog products share a name and brand, the highest current
    price is reported so the result does not depend on input order.
    """

    quantities: Dict[Tuple[str, str], int] = {}
    revenues: Dict[Tuple[str, str], Decimal] = {}
    prices: Dict[Tuple[str, str], Optional[Decimal]] = {}
    for item in line_items:
        key = (item.product_name or UNKNOWN, item.product_brand or UNKNOWN)
        quantities[key] = quantities.get(key, 0) + item.quantity
        revenues[key] = revenues.get(key, Decimal("0")) + item.subtotal
        price = prices.get(key)
        if item.product_price is not None and (price is None or item.product_price > price):
            price = item.product_price
        prices[key] = price

    return {
        key: ProductSales(
            product_name=key[0],
            brand=key[1],
            price_per_bag=prices[key],
            quantity=quantities[key],
            revenue=revenues[key],
        )
        for key in quantities
    }


def customer_summaries(
    customers: Sequence[Customer],
    transactions: Iterable[Transaction],
) -> List[CustomerSummary]:
    """
    One summary per registered customer, in registry order.

    Customers without purchases get a zero row. Transactions referencing a
    customer missing from the registry are not reported here.
    """

    spent: Dict[UUID, Decimal] = {}
    counts: Dict[UUID, int] = {}
    bags: Dict[UUID, int] = {}
    last: Dict[UUID, datetime] = {}
    for transaction in transactions:
        cid = transaction.customer_id
        spent[cid] = spent.get(cid, Decimal("0")) + transaction.total_amount
        counts[cid] = counts.get(cid, 0) + 1
        bags[cid] = bags.get(cid, 0) + transaction.total_bags
        if cid not in last or transaction.created_at > last[cid]:
            last[cid] = transaction.created_at

    return [
        CustomerSummary(
            customer=customer,
            total_spent=spent.get(customer.customer_id, Decimal("0")),
            purchase_count=counts.get(customer.customer_id, 0),
            total_bags=bags.get(customer.customer_id, 0),
            last_purchase_at=last.get(customer.customer_id),
        )
        for customer in customers
    ]


def recent_transactions(
    transactions: Iterable[Transaction],
    limit: int = RECENT_TRANSACTION_LIMIT,
) -> List[Transaction]:
    """Newest first; ties on created_at are broken by invoice number."""

    ordered = sorted(transactions, key=lambda t: (t.created_at, t.invoice_number), reverse=True)
    return ordered[:limit]


def dashboard_summary(
    transactions: Sequence[Transaction],
    customer_count: int,
    product_count: int,
) -> DashboardSummary:
    return DashboardSummary(
        totals=global_totals(transactions),
        customer_count=customer_count,
        product_count=product_count,
        recent_transactions=tuple(recent_transactions(transactions)),
    )


__all__ = [
    "UNKNOWN",
    "GlobalTotals",
    "BrandSales",
    "ProductSales",
    "CustomerSummary",
    "DashboardSummary",
    "line_items_of",
    "global_totals",
    "sales_by_brand",
    "sales_by_product",
    "customer_summaries",
    "recent_transactions",
    "dashboard_summary",
]
