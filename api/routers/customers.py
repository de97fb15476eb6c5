"""
Customers API Endpoints.
"""

from typing import List

from fastapi import APIRouter

from api.models import CustomerSummaryResponse
from repositories.customer_repository import list_customers
from repositories.transaction_repository import list_transactions
from services.reporting_service import customer_summaries

router = APIRouter()


@router.get(
    "/customers",
    response_model=List[CustomerSummaryResponse],
    summary="List Customers",
    description="Customer registry with purchase count, total spent, bags and last purchase per customer."
)
def get_customers():
    summaries = customer_summaries(list_customers(), list_transactions(with_line_items=False))
    return [CustomerSummaryResponse.from_domain(s) for s in summaries]
