"""
Reports API Endpoints.

Dashboard figures, brand/product rollups and CSV exports. Every request
recomputes from the committed sales.
"""

from typing import List

from fastapi import APIRouter, HTTPException, Response

from api.models import BrandSalesResponse, DashboardResponse, ProductSalesResponse
from repositories.customer_repository import list_customers
from repositories.product_repository import count_products
from repositories.transaction_repository import list_transactions
from services import export_service
from services.reporting_service import (
    customer_summaries,
    dashboard_summary,
    line_items_of,
    sales_by_brand,
    sales_by_product,
)

router = APIRouter()

EXPORTABLE_REPORTS = ("sales", "products", "customers")


@router.get("/reports/dashboard", response_model=DashboardResponse, summary="Dashboard Summary")
def get_dashboard():
    transactions = list_transactions(with_line_items=True)
    summary = dashboard_summary(
        transactions,
        customer_count=len(list_customers()),
        product_count=count_products(),
    )
    return DashboardResponse.from_domain(summary, export_service.get_currency())


@router.get(
    "/reports/brands",
    response_model=List[BrandSalesResponse],
    summary="Sales by Brand",
    description="Bags sold and revenue per brand, highest revenue first."
)
def get_sales_by_brand():
    rollup = sales_by_brand(line_items_of(list_transactions(with_line_items=True)))
    ordered = sorted(rollup.values(), key=lambda s: (-s.revenue, s.brand))
    return [BrandSalesResponse.from_domain(s) for s in ordered]


@router.get(
    "/reports/products",
    response_model=List[ProductSalesResponse],
    summary="Sales by Product",
    description="Bags sold and revenue per product, highest revenue first."
)
def get_sales_by_product():
    rollup = sales_by_product(line_items_of(list_transactions(with_line_items=True)))
    ordered = sorted(rollup.values(), key=lambda s: (-s.revenue, s.product_name, s.brand))
    return [ProductSalesResponse.from_domain(s) for s in ordered]


@router.get(
    "/reports/{report}/export",
    summary="Export Report CSV",
    description="Download the sales, products or customers report as CSV.",
    response_class=Response
)
def export_report(report: str):
    if report not in EXPORTABLE_REPORTS:
        raise HTTPException(
            status_code=404,
            detail=f"Unknown report '{report}'. Must be one of: {', '.join(EXPORTABLE_REPORTS)}"
        )

    if report == "sales":
        transactions = list_transactions(with_line_items=True)
        customers = {c.customer_id: c for c in list_customers()}
        rows = export_service.sales_report_rows(transactions, customers)
        name = "sales"
    elif report == "products":
        rollup = sales_by_product(line_items_of(list_transactions(with_line_items=True)))
        rows = export_service.product_report_rows(rollup.values())
        name = "product"
    else:
        summaries = customer_summaries(list_customers(), list_transactions(with_line_items=False))
        rows = export_service.customer_report_rows(summaries)
        name = "customer"

    csv_content = export_service.rows_to_csv(rows)
    filename = export_service.export_filename(name)
    return Response(
        content=csv_content,
        media_type="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )
