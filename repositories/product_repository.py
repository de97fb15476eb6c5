"""
Product repository (persistence).

Catalog lookup for the cart and CRUD for catalog maintenance. Input
validation lives in `services.catalog_service`.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional
from uuid import UUID, uuid4

from domain.product import Product
from domain.time import parse_utc_datetime, utc_now
from repositories.client import chunked, execute, fetch_all, get_supabase

# Supabase table name for the product catalog.
_PRODUCTS_TABLE: str = "products"


def _row_to_product(row: Mapping[str, Any]) -> Product:
    """Convert a Supabase row into a Product."""

    return Product(
        product_id=UUID(str(row["id"])),
        name=str(row["name"]),
        brand=str(row["brand"]),
        price_per_bag=Decimal(str(row["price_per_bag"])),
        description=row.get("description"),
        created_at=parse_utc_datetime(row["created_at"]) if row.get("created_at") else None,
    )


def list_products() -> List[Product]:
    """Return the whole catalog, newest first."""

    rows = fetch_all(
        lambda: get_supabase()
        .table(_PRODUCTS_TABLE)
        .select("*")
        .order("created_at", desc=True)
        .order("id"),
        "list products",
    )
    return [_row_to_product(row) for row in rows]


def get_product(product_id: UUID) -> Optional[Product]:
    rows = execute(
        get_supabase().table(_PRODUCTS_TABLE).select("*").eq("id", str(product_id)).limit(1),
        "get product",
    )
    if not rows:
        return None
    return _row_to_product(rows[0])


def get_products_by_ids(product_ids: Iterable[UUID]) -> Dict[UUID, Product]:
    """Fetch several products at once, keyed by id. Missing ids are absent."""

    ids = sorted({str(pid) for pid in product_ids})
    if not ids:
        return {}

    products: Dict[UUID, Product] = {}
    for chunk in chunked(ids):
        rows = execute(
            get_supabase().table(_PRODUCTS_TABLE).select("*").in_("id", list(chunk)),
            "get products",
        )
        for row in rows:
            product = _row_to_product(row)
            products[product.product_id] = product
    return products


def create_product(
    name: str,
    brand: str,
    price_per_bag: Decimal,
    description: Optional[str] = None,
) -> Product:
    product_id = uuid4()
    now = utc_now()

    payload: dict[str, Any] = {
        "id": str(product_id),
        "name": name,
        "brand": brand,
        "price_per_bag": str(price_per_bag),
        "description": description,
        "created_at": now.isoformat(),
    }
    execute(get_supabase().table(_PRODUCTS_TABLE).insert(payload), "create product")

    return Product(
        product_id=product_id,
        name=name,
        brand=brand,
        price_per_bag=price_per_bag,
        description=description,
        created_at=now,
    )


def update_product(product_id: UUID, changes: Mapping[str, Any]) -> Optional[Product]:
    """
    Apply column changes to a product.

    Returns the updated Product, or None when no row matched.
    """

    payload = dict(changes)
    if "price_per_bag" in payload:
        payload["price_per_bag"] = str(payload["price_per_bag"])

    rows = execute(
        get_supabase().table(_PRODUCTS_TABLE).update(payload).eq("id", str(product_id)),
        "update product",
    )
    if not rows:
        return None
    return _row_to_product(rows[0])


def delete_product(product_id: UUID) -> bool:
    """Delete a product. Returns False when no row matched."""

    rows = execute(
        get_supabase().table(_PRODUCTS_TABLE).delete().eq("id", str(product_id)),
        "delete product",
    )
    return bool(rows)


def count_products() -> int:
    rows = fetch_all(
        lambda: get_supabase().table(_PRODUCTS_TABLE).select("id").order("id"),
        "count products",
    )
    return len(rows)


__all__ = [
    "list_products",
    "get_product",
    "get_products_by_ids",
    "create_product",
    "update_product",
    "delete_product",
    "count_products",
]
