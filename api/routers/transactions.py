"""
Transactions API Endpoints.

Committing a sale and listing committed sales.
"""

from typing import List

from fastapi import APIRouter

from api.models import TransactionCreateRequest, TransactionResponse
from repositories.transaction_repository import list_transactions
from services.cart_service import build_cart
from services.transaction_service import CommitRequest, commit_transaction

router = APIRouter()


@router.post(
    "/transactions",
    response_model=TransactionResponse,
    status_code=201,
    summary="Commit Sale",
    description="Record one sale: resolve the customer by phone, then write the transaction and its line items."
)
def create_transaction(request: TransactionCreateRequest):
    """
    Commit a cart as a sale.

    **Process:**
    1. Rebuilds the cart from the catalog (prices are snapshotted from the store)
    2. Resolves the customer by phone number (created on first visit)
    3. Writes the transaction header, then all line items

    If the line items cannot be written, the header is removed again and the
    request fails with status 500 and `rolled_back` in the body.
    """
    cart = build_cart((item.product_id, item.quantity) for item in request.items)
    result = commit_transaction(
        CommitRequest(
            cart=cart,
            customer_name=request.customer_name,
            customer_phone=request.customer_phone,
            merchant_id=request.merchant_id,
            created_by=request.created_by,
        )
    )
    return TransactionResponse.from_domain(result.transaction)


@router.get(
    "/transactions",
    response_model=List[TransactionResponse],
    summary="List Transactions",
    description="All committed sales with their line items, newest first."
)
def get_transactions():
    return [TransactionResponse.from_domain(t) for t in list_transactions(with_line_items=True)]
