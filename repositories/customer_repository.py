"""
Customer repository (persistence).

The `customers.phone_number` column carries a unique constraint; `create_customer`
surfaces a violation as PersistenceError with code 23505 so the caller can
resolve the race (see `services.customer_service`).
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional
from uuid import UUID, uuid4

from domain.customer import Customer
from domain.time import parse_utc_datetime, utc_now
from repositories.client import execute, fetch_all, get_supabase

_CUSTOMERS_TABLE: str = "customers"


def _row_to_customer(row: Mapping[str, Any]) -> Customer:
    return Customer(
        customer_id=UUID(str(row["id"])),
        name=str(row["name"]),
        phone_number=str(row["phone_number"]),
        created_at=parse_utc_datetime(row["created_at"]) if row.get("created_at") else None,
    )


def find_by_phone(phone_number: str) -> Optional[Customer]:
    """Exact-match lookup on the phone number."""

    rows = execute(
        get_supabase()
        .table(_CUSTOMERS_TABLE)
        .select("*")
        .eq("phone_number", phone_number)
        .limit(1),
        "find customer",
    )
    if not rows:
        return None
    return _row_to_customer(rows[0])


def get_customer_by_id(customer_id: UUID) -> Optional[Customer]:
    rows = execute(
        get_supabase().table(_CUSTOMERS_TABLE).select("*").eq("id", str(customer_id)).limit(1),
        "get customer",
    )
    if not rows:
        return None
    return _row_to_customer(rows[0])


def create_customer(name: str, phone_number: str) -> Customer:
    customer_id = uuid4()
    now = utc_now()

    payload: dict[str, Any] = {
        "id": str(customer_id),
        "name": name,
        "phone_number": phone_number,
        "created_at": now.isoformat(),
    }
    execute(get_supabase().table(_CUSTOMERS_TABLE).insert(payload), "create customer")

    return Customer(customer_id=customer_id, name=name, phone_number=phone_number, created_at=now)


def list_customers() -> List[Customer]:
    """Return the full customer registry, newest first."""

    rows = fetch_all(
        lambda: get_supabase()
        .table(_CUSTOMERS_TABLE)
        .select("*")
        .order("created_at", desc=True)
        .order("id"),
        "list customers",
    )
    return [_row_to_customer(row) for row in rows]


__all__ = [
    "find_by_phone",
    "get_customer_by_id",
    "create_customer",
    "list_customers",
]
