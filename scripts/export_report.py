#!/usr/bin/env python3
"""
Report Export Script

Writes the sales, product or customer report to a CSV file.

Usage:
    python scripts/export_report.py sales
    python scripts/export_report.py products --output products.csv
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from repositories.customer_repository import list_customers
from repositories.transaction_repository import list_transactions
from services import export_service
from services.reporting_service import customer_summaries, line_items_of, sales_by_product


# File name stem per report, matching the API download names.
_FILE_STEMS = {"sales": "sales", "products": "product", "customers": "customer"}


def build_rows(report: str) -> list[dict[str, str]]:
    if report == "sales":
        customers = {c.customer_id: c for c in list_customers()}
        return export_service.sales_report_rows(list_transactions(with_line_items=True), customers)
    if report == "products":
        rollup = sales_by_product(line_items_of(list_transactions(with_line_items=True)))
        return export_service.product_report_rows(rollup.values())
    return export_service.customer_report_rows(
        customer_summaries(list_customers(), list_transactions(with_line_items=False))
    )


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Export a sales report to CSV.")
    parser.add_argument("report", choices=["sales", "products", "customers"])
    parser.add_argument("--output", type=Path, help="Output file (default: <report>_report_<date>.csv)")
    args = parser.parse_args(argv)

    rows = build_rows(args.report)
    if not rows:
        print("No data to export.")
        return 1

    output = args.output or Path(export_service.export_filename(_FILE_STEMS[args.report]))
    output.write_text(export_service.rows_to_csv(rows), encoding="utf-8", newline="")
    print(f"Exported {len(rows)} row(s) to {output}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
