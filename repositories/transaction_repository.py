"""
Transaction repository (persistence).

Headers live in `transactions`, line items in `transaction_items`. This module
only reads and writes rows; the two-phase commit and its compensating action
are orchestrated by `services.transaction_service`.

Read-side guarantee: a header with no line items is never returned by
`list_transactions`. Such a header is either a commit still in flight or a
partial commit awaiting reconciliation, and in both cases it is not a sale.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence
from uuid import UUID, uuid4

from domain.product import Product
from domain.time import parse_utc_datetime, to_iso_utc
from domain.transaction import Transaction, TransactionLineItem
from repositories.client import chunked, execute, fetch_all, get_supabase
from repositories.product_repository import get_products_by_ids

_TRANSACTIONS_TABLE: str = "transactions"
_ITEMS_TABLE: str = "transaction_items"


@dataclass(frozen=True, slots=True)
class TransactionHeader:
    """Header fields written in the first phase of a commit."""

    customer_id: UUID
    invoice_number: str
    merchant_id: str
    total_bags: int
    total_amount: Decimal
    created_at: datetime
    created_by: Optional[str] = None


@dataclass(frozen=True, slots=True)
class NewLineItem:
    product_id: UUID
    quantity: int
    unit_price: Decimal


def _row_to_transaction(
    row: Mapping[str, Any],
    line_items: Sequence[TransactionLineItem] = (),
) -> Transaction:
    return Transaction(
        transaction_id=UUID(str(row["id"])),
        customer_id=UUID(str(row["customer_id"])),
        invoice_number=str(row["invoice_number"]),
        merchant_id=str(row.get("merchant_id") or ""),
        total_bags=int(row["total_bags"]),
        total_amount=Decimal(str(row["total_amount"])),
        created_at=parse_utc_datetime(row["created_at"]),
        created_by=row.get("created_by"),
        line_items=tuple(line_items),
    )


def _row_to_line_item(row: Mapping[str, Any], product: Optional[Product]) -> TransactionLineItem:
    return TransactionLineItem(
        line_item_id=UUID(str(row["id"])),
        transaction_id=UUID(str(row["transaction_id"])),
        product_id=UUID(str(row["product_id"])),
        quantity=int(row["quantity"]),
        unit_price=Decimal(str(row["unit_price"])),
        product_name=product.name if product else None,
        product_brand=product.brand if product else None,
        product_price=product.price_per_bag if product else None,
    )


def create_transaction(header: TransactionHeader) -> UUID:
    """Insert a transaction header and return its id."""

    transaction_id = uuid4()
    payload: dict[str, Any] = {
        "id": str(transaction_id),
        "customer_id": str(header.customer_id),
        "invoice_number": header.invoice_number,
        "merchant_id": header.merchant_id,
        "total_bags": header.total_bags,
        "total_amount": str(header.total_amount),
        "created_by": header.created_by,
        "created_at": to_iso_utc(header.created_at, name="created_at"),
    }
    execute(get_supabase().table(_TRANSACTIONS_TABLE).insert(payload), "create transaction")
    return transaction_id


def create_line_items(transaction_id: UUID, items: Sequence[NewLineItem]) -> List[UUID]:
    """
    Insert all line items of a transaction in a single request.

    PostgREST runs a bulk insert as one statement, so either every row is
    written or none is.
    """

    if not items:
        raise ValueError("items cannot be empty")

    ids = [uuid4() for _ in items]
    payload = [
        {
            "id": str(item_id),
            "transaction_id": str(transaction_id),
            "product_id": str(item.product_id),
            "quantity": item.quantity,
            "unit_price": str(item.unit_price),
            "subtotal": str(item.unit_price * item.quantity),
        }
        for item_id, item in zip(ids, items)
    ]
    execute(get_supabase().table(_ITEMS_TABLE).insert(payload), "create transaction items")
    return ids


def delete_transaction(transaction_id: UUID) -> bool:
    """
    Delete a transaction header and any line items referencing it.

    Only used as the compensating action for a failed commit and by
    reconciliation; committed sales are otherwise append-only.
    """

    client = get_supabase()
    execute(
        client.table(_ITEMS_TABLE).delete().eq("transaction_id", str(transaction_id)),
        "delete transaction items",
    )
    rows = execute(
        client.table(_TRANSACTIONS_TABLE).delete().eq("id", str(transaction_id)),
        "delete transaction",
    )
    return bool(rows)


def _fetch_headers() -> List[dict]:
    return fetch_all(
        lambda: get_supabase()
        .table(_TRANSACTIONS_TABLE)
        .select("*")
        .order("created_at", desc=True)
        .order("id"),
        "list transactions",
    )


def _fetch_item_rows(transaction_ids: Sequence[str]) -> List[dict]:
    """Line items of the given transactions, in id chunks, each chunk paged."""

    rows: List[dict] = []
    for chunk in chunked(list(transaction_ids)):
        rows.extend(
            fetch_all(
                lambda: get_supabase()
                .table(_ITEMS_TABLE)
                .select("*")
                .in_("transaction_id", list(chunk))
                .order("id"),
                "list transaction items",
            )
        )
    return rows


def list_transactions(with_line_items: bool = True) -> List[Transaction]:
    """
    Return every committed transaction, newest first.

    With `with_line_items`, each transaction carries its line items joined to
    the referenced product's current name/brand/price.
    """

    headers = _fetch_headers()
    item_rows = _fetch_item_rows([str(row["id"]) for row in headers])

    items_by_transaction: Dict[str, List[dict]] = {}
    for row in item_rows:
        items_by_transaction.setdefault(str(row["transaction_id"]), []).append(row)

    products: Dict[UUID, Product] = {}
    if with_line_items:
        products = get_products_by_ids(UUID(str(row["product_id"])) for row in item_rows)

    transactions: List[Transaction] = []
    for row in headers:
        rows_for_header = items_by_transaction.get(str(row["id"]))
        if not rows_for_header:
            continue
        line_items: List[TransactionLineItem] = []
        if with_line_items:
            line_items = [
                _row_to_line_item(item, products.get(UUID(str(item["product_id"]))))
                for item in rows_for_header
            ]
        transactions.append(_row_to_transaction(row, line_items))

    return transactions


def list_orphaned_transactions(created_before: datetime) -> List[Transaction]:
    """
    Return headers without any line items created before `created_before`.

    The cutoff keeps commits that are still between their two writes out of
    the result.
    """

    cutoff = to_iso_utc(created_before, name="created_before")
    headers = fetch_all(
        lambda: get_supabase()
        .table(_TRANSACTIONS_TABLE)
        .select("*")
        .lt("created_at", cutoff)
        .order("created_at")
        .order("id"),
        "list transactions",
    )
    item_rows = _fetch_item_rows([str(row["id"]) for row in headers])
    with_items = {str(row["transaction_id"]) for row in item_rows}
    return [_row_to_transaction(row) for row in headers if str(row["id"]) not in with_items]


__all__ = [
    "TransactionHeader",
    "NewLineItem",
    "create_transaction",
    "create_line_items",
    "delete_transaction",
    "list_transactions",
    "list_orphaned_transactions",
]
