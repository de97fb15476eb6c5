"""
Domain: Walk-in customers.

The phone number is the sole identity key: two sales recorded with the same
phone number belong to the same customer. The name stored on first contact
is authoritative and is never overwritten by later sales.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

from .time import require_utc_timestamp


def normalize_phone(phone: str) -> str:
    """Trim surrounding whitespace; the stored value is otherwise matched exactly."""
    return phone.strip()


@dataclass(frozen=True, slots=True)
class Customer:
    customer_id: UUID
    name: str
    phone_number: str
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if self.created_at is not None:
            require_utc_timestamp("created_at", self.created_at)
