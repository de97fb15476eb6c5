#!/usr/bin/env python3
"""
Remove transactions left without line items by a failed commit.

A commit writes the transaction header and then its line items. When the line
items fail and the header cannot be deleted again, the header stays behind.
Such headers are never reported as sales; this script deletes them.

Usage:
    python scripts/reconcile_orphans.py --dry-run
    python scripts/reconcile_orphans.py --grace-minutes 10
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import timedelta
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from services.transaction_service import RECONCILE_GRACE_PERIOD, reconcile_orphaned_transactions


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Delete transactions that have no line items.")
    parser.add_argument("--dry-run", action="store_true", help="List orphans without deleting them")
    parser.add_argument(
        "--grace-minutes",
        type=int,
        default=int(RECONCILE_GRACE_PERIOD.total_seconds() // 60),
        help="Ignore headers younger than this (commits may still be in flight)",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.INFO, format="%(levelname)s [%(name)s] %(message)s")

    invoices = reconcile_orphaned_transactions(
        dry_run=args.dry_run,
        grace_period=timedelta(minutes=args.grace_minutes),
    )

    if not invoices:
        print("No orphaned transactions found.")
        return 0

    verb = "Would remove" if args.dry_run else "Removed"
    print(f"{verb} {len(invoices)} orphaned transaction(s):")
    for invoice in invoices:
        print(f"  {invoice}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
