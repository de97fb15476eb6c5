"""
Domain: Product catalog entries.

A product is a packaged good sold per bag. Price and name may be edited after
the product has been sold; historical line items keep the unit price they
were sold at, so edits never alter past revenue.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from .time import require_utc_timestamp


@dataclass(frozen=True, slots=True)
class Product:
    """Immutable snapshot of a catalog row."""

    product_id: UUID
    name: str
    brand: str
    price_per_bag: Decimal
    description: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)
