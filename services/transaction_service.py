"""
Transaction commit service.

Turns a cart plus customer contact details into one committed sale:

1. Validate input (no write happens on failure)
2. Resolve the customer by phone number
3. Generate a unique invoice number
4. Compute totals from the cart
5. Write the transaction header
6. Write all line items in one bulk insert

Steps 5 and 6 are two separate store calls. If step 6 fails, the header is
deleted again (compensating action) and PartialCommitError is raised. Readers
never see a header without items: `list_transactions` skips such headers, and
`reconcile_orphaned_transactions` removes any left behind when the
compensating delete itself failed.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import List, Optional, Tuple
from uuid import UUID

from domain.cart import Cart
from domain.customer import Customer
from domain.errors import PartialCommitError, PersistenceError, ValidationError
from domain.time import utc_now
from domain.transaction import Transaction, TransactionLineItem
from repositories import transaction_repository
from repositories.transaction_repository import NewLineItem, TransactionHeader
from services.customer_service import resolve_customer

logger = logging.getLogger(__name__)

INVOICE_PREFIX: str = "INV"

# Attempts at a fresh invoice number when the store reports a duplicate.
_MAX_INVOICE_ATTEMPTS: int = 3

# Headers younger than this may belong to a commit still writing its items.
RECONCILE_GRACE_PERIOD = timedelta(minutes=5)


@dataclass(frozen=True, slots=True)
class CommitRequest:
    cart: Cart
    customer_name: str
    customer_phone: str
    merchant_id: str
    created_by: Optional[str] = None


@dataclass(frozen=True, slots=True)
class CommitResult:
    """
    Outcome of a successful commit.

    `cart` is the emptied cart the caller should continue with.
    """

    transaction: Transaction
    customer: Customer
    cart: Cart


def generate_invoice_number(now: Optional[datetime] = None) -> str:
    """
    Build an invoice number such as ``INV-20250101093000-3FA9C1``.

    The timestamp keeps numbers roughly chronological; the random suffix keeps
    commits within the same second from colliding.
    """

    now = now or utc_now()
    return f"{INVOICE_PREFIX}-{now:%Y%m%d%H%M%S}-{secrets.token_hex(3).upper()}"


def _validate(request: CommitRequest) -> None:
    if request.cart.is_empty:
        raise ValidationError("Cart is empty")
    for line in request.cart.lines:
        if line.quantity <= 0:
            raise ValidationError(f"Invalid quantity {line.quantity} for {line.name}")
    if not (request.customer_name or "").strip():
        raise ValidationError("Customer name is required")
    if not (request.customer_phone or "").strip():
        raise ValidationError("Customer phone number is required")
    if not (request.merchant_id or "").strip():
        raise ValidationError("Merchant ID is required")


def _write_header(header: TransactionHeader) -> Tuple[TransactionHeader, UUID]:
    """Insert the header, drawing a new invoice number on a duplicate."""

    attempt = 1
    while True:
        try:
            return header, transaction_repository.create_transaction(header)
        except PersistenceError as e:
            if not e.is_unique_violation or attempt >= _MAX_INVOICE_ATTEMPTS:
                raise
            attempt += 1
            header = replace(header, invoice_number=generate_invoice_number(header.created_at))


def commit_transaction(request: CommitRequest) -> CommitResult:
    """
    Commit a cart as one sale.

    Raises:
        ValidationError: bad input; nothing was written
        PersistenceError: the store rejected a write; nothing was committed
        PartialCommitError: the header was written but the line items failed
    """

    _validate(request)

    customer = resolve_customer(request.customer_name, request.customer_phone)
    totals = request.cart.compute_totals()
    now = utc_now()

    header, transaction_id = _write_header(
        TransactionHeader(
            customer_id=customer.customer_id,
            invoice_number=generate_invoice_number(now),
            merchant_id=request.merchant_id.strip(),
            total_bags=totals.total_bags,
            total_amount=totals.total_amount,
            created_at=now,
            created_by=request.created_by,
        )
    )

    new_items = [
        NewLineItem(product_id=line.product_id, quantity=line.quantity, unit_price=line.unit_price)
        for line in request.cart.lines
    ]

    try:
        item_ids = transaction_repository.create_line_items(transaction_id, new_items)
    except PersistenceError as e:
        raise _roll_back(transaction_id, header.invoice_number, e) from e

    line_items = tuple(
        TransactionLineItem(
            line_item_id=item_id,
            transaction_id=transaction_id,
            product_id=line.product_id,
            quantity=line.quantity,
            unit_price=line.unit_price,
            product_name=line.name,
            product_brand=line.brand,
        )
        for item_id, line in zip(item_ids, request.cart.lines)
    )
    transaction = Transaction(
        transaction_id=transaction_id,
        customer_id=customer.customer_id,
        invoice_number=header.invoice_number,
        merchant_id=header.merchant_id,
        total_bags=header.total_bags,
        total_amount=header.total_amount,
        created_at=now,
        created_by=header.created_by,
        line_items=line_items,
    )

    logger.info(
        "Committed transaction",
        extra={
            "invoice_number": transaction.invoice_number,
            "transaction_id": str(transaction_id),
            "customer_id": str(customer.customer_id),
            "total_bags": transaction.total_bags,
            "total_amount": str(transaction.total_amount),
        },
    )
    return CommitResult(transaction=transaction, customer=customer, cart=Cart.empty())


def _roll_back(transaction_id: UUID, invoice_number: str, cause: PersistenceError) -> PartialCommitError:
    """Delete the header of a failed commit and describe the outcome."""

    context = {"invoice_number": invoice_number, "transaction_id": str(transaction_id)}
    try:
        transaction_repository.delete_transaction(transaction_id)
    except PersistenceError as cleanup_error:
        logger.error(
            "Line items failed and header cleanup failed; transaction needs reconciliation",
            extra={**context, "stage": "compensate", "cleanup_error": str(cleanup_error)},
        )
        return PartialCommitError(
            f"Transaction {invoice_number} was written without its line items "
            f"and could not be removed: {cause}",
            transaction_id=transaction_id,
            invoice_number=invoice_number,
            rolled_back=False,
        )

    logger.warning("Line items failed; transaction header rolled back", extra={**context, "stage": "line_items"})
    return PartialCommitError(
        f"Transaction {invoice_number} failed while writing line items and was rolled back: {cause}",
        transaction_id=transaction_id,
        invoice_number=invoice_number,
        rolled_back=True,
    )


def find_orphaned_transactions(grace_period: timedelta = RECONCILE_GRACE_PERIOD) -> List[Transaction]:
    """Headers without line items, older than `grace_period`."""

    return transaction_repository.list_orphaned_transactions(utc_now() - grace_period)


def reconcile_orphaned_transactions(
    dry_run: bool = False,
    grace_period: timedelta = RECONCILE_GRACE_PERIOD,
) -> List[str]:
    """
    Remove headers left behind by partial commits.

    Returns the invoice numbers that were (or, with `dry_run`, would be) removed.
    """

    orphans = find_orphaned_transactions(grace_period)
    removed: List[str] = []
    for orphan in orphans:
        if not dry_run:
            transaction_repository.delete_transaction(orphan.transaction_id)
            logger.info(
                "Removed orphaned transaction",
                extra={"invoice_number": orphan.invoice_number, "transaction_id": str(orphan.transaction_id)},
            )
        removed.append(orphan.invoice_number)
    return removed


__all__ = [
    "CommitRequest",
    "CommitResult",
    "commit_transaction",
    "generate_invoice_number",
    "find_orphaned_transactions",
    "reconcile_orphaned_transactions",
]
