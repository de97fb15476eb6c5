"""
Report export rows and CSV rendering.

Builds flat, uniform rows (one dict per record, identical keys) from computed
reports, and renders them as CSV text. Delivering the file is left to the
caller.

Security:
- CSV Injection Prevention: text cells are stripped of leading characters
  that make spreadsheets evaluate formulas
- Security Logging: a warning is logged whenever characters are stripped
"""

from __future__ import annotations

import csv
import logging
import os
import re
from datetime import date
from decimal import Decimal
from io import StringIO
from typing import Dict, Iterable, List, Mapping, Optional, Sequence
from uuid import UUID

from domain.customer import Customer
from domain.errors import ValidationError
from domain.transaction import Transaction
from services.reporting_service import UNKNOWN, CustomerSummary, ProductSales

logger = logging.getLogger(__name__)

DEFAULT_CURRENCY: str = "PKR"
NOT_AVAILABLE: str = "N/A"

_DANGEROUS_LEADING_CHARS = {"=", "+", "-", "@", "\t", "\r"}

# An international phone number ("+92 300 1111111") or a lone signed number
# evaluates to itself; anything with a further operator is a formula.
_NUMERIC_VALUE = re.compile(r"^(\+\d[\d ]*|[+-]?\d+(\.\d+)?)$")

Row = Dict[str, str]


def get_currency() -> str:
    return os.getenv("POS_CURRENCY") or DEFAULT_CURRENCY


def sanitize_csv_field(value: Optional[str], field_name: str = "unknown") -> str:
    """
    Strip leading characters that trigger formula execution in Excel/Sheets.

    Example:
        sanitize_csv_field("=HYPERLINK(...)", "Customer Name")
        # Returns "HYPERLINK(...)" and logs a warning
    """

    if value is None or value == "":
        return ""

    text = str(value).strip()
    if _NUMERIC_VALUE.match(text):
        return text
    original_text = text

    stripped_chars = []
    while text and text[0] in _DANGEROUS_LEADING_CHARS:
        stripped_chars.append(text[0])
        text = text[1:]

    if stripped_chars:
        logger.warning(
            f"CSV injection character(s) stripped from field '{field_name}'",
            extra={
                "field_name": field_name,
                "stripped_characters": "".join(stripped_chars),
                "original_value": original_text[:100],
                "sanitized_value": text[:100],
                "modification_type": "csv_injection_prevention",
            },
        )

    return text


def _amount(value: Optional[Decimal]) -> str:
    return "" if value is None else str(value)


def sales_report_rows(
    transactions: Iterable[Transaction],
    customers: Mapping[UUID, Customer],
    currency: Optional[str] = None,
) -> List[Row]:
    """One row per transaction, in the order given."""

    currency = currency or get_currency()
    rows: List[Row] = []
    for transaction in transactions:
        customer = customers.get(transaction.customer_id)
        products = "; ".join(
            f"{item.product_name or UNKNOWN} ({item.quantity})" for item in transaction.line_items
        )
        rows.append(
            {
                "Invoice Number": transaction.invoice_number,
                "Customer Name": customer.name if customer else NOT_AVAILABLE,
                "Customer Phone": customer.phone_number if customer else NOT_AVAILABLE,
                f"Total Amount ({currency})": _amount(transaction.total_amount),
                "Total Bags": str(transaction.total_bags),
                "Date": transaction.created_at.date().isoformat(),
                "Products": products or NOT_AVAILABLE,
            }
        )
    return rows


def product_report_rows(
    product_sales: Iterable[ProductSales],
    currency: Optional[str] = None,
) -> List[Row]:
    currency = currency or get_currency()
    return [
        {
            "Product Name": sales.product_name,
            "Brand": sales.brand,
            f"Price per Bag ({currency})": _amount(sales.price_per_bag),
            "Total Quantity Sold": str(sales.quantity),
            f"Total Revenue ({currency})": _amount(sales.revenue),
        }
        for sales in product_sales
    ]


def customer_report_rows(
    summaries: Iterable[CustomerSummary],
    currency: Optional[str] = None,
) -> List[Row]:
    currency = currency or get_currency()
    return [
        {
            "Customer Name": summary.customer.name,
            "Customer Phone": summary.customer.phone_number,
            "Purchases": str(summary.purchase_count),
            f"Total Spent ({currency})": _amount(summary.total_spent),
            "Total Bags": str(summary.total_bags),
            "Last Purchase": summary.last_purchase_at.date().isoformat() if summary.last_purchase_at else "",
        }
        for summary in summaries
    ]


def rows_to_csv(rows: Sequence[Mapping[str, str]]) -> str:
    """
    Render uniform rows as CSV text; the header comes from the first row.

    Raises:
        ValidationError: there are no rows, or rows do not share the same keys
    """

    if not rows:
        raise ValidationError("No data to export")

    headers = list(rows[0].keys())
    output = StringIO()
    writer = csv.writer(output)
    writer.writerow(headers)
    for row in rows:
        if list(row.keys()) != headers:
            raise ValidationError("Export rows must share the same columns")
        writer.writerow([sanitize_csv_field(row[header], header) for header in headers])
    return output.getvalue()


def export_filename(report_name: str, on: Optional[date] = None) -> str:
    """e.g. ``sales_report_2025-01-31.csv``"""

    on = on or date.today()
    return f"{report_name}_report_{on.isoformat()}.csv"


__all__ = [
    "sanitize_csv_field",
    "sales_report_rows",
    "product_report_rows",
    "customer_report_rows",
    "rows_to_csv",
    "export_filename",
    "get_currency",
]
