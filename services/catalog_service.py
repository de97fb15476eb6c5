"""
Catalog maintenance.

Validates product input before it reaches the products table. Editing a
product's price or name never changes past sales: line items carry their own
unit price snapshot.
"""

from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Optional
from uuid import UUID

from domain.errors import NotFoundError, ValidationError
from domain.product import Product
from repositories import product_repository

logger = logging.getLogger(__name__)

# Prices are stored as numeric(12, 2).
_CENT = Decimal("0.01")


def _clean_text(value: Optional[str], field_name: str) -> str:
    text = (value or "").strip()
    if not text:
        raise ValidationError(f"{field_name} is required")
    return text


def _clean_price(value: Any) -> Decimal:
    try:
        price = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"Invalid price: {value!r}")
    if not price.is_finite() or price <= 0:
        raise ValidationError("Price per bag must be greater than zero")
    try:
        cents = price.quantize(_CENT)
    except InvalidOperation:
        raise ValidationError(f"Invalid price: {value!r}")
    if cents != price:
        raise ValidationError(f"Price per bag has more than 2 decimal places: {value}")
    return cents


def _clean_description(value: Optional[str]) -> Optional[str]:
    text = (value or "").strip()
    return text or None


def create_product(
    name: str,
    brand: str,
    price_per_bag: Any,
    description: Optional[str] = None,
) -> Product:
    product = product_repository.create_product(
        name=_clean_text(name, "Product name"),
        brand=_clean_text(brand, "Brand"),
        price_per_bag=_clean_price(price_per_bag),
        description=_clean_description(description),
    )
    logger.info("Created product", extra={"product_id": str(product.product_id), "product_name": product.name})
    return product


def update_product(
    product_id: UUID,
    *,
    name: Optional[str] = None,
    brand: Optional[str] = None,
    price_per_bag: Any = None,
    description: Optional[str] = None,
) -> Product:
    """
    Apply a partial edit; fields left as None are unchanged.

    Raises:
        ValidationError: a supplied field is invalid, or nothing to change
        NotFoundError: no product with this id
    """

    changes: Dict[str, Any] = {}
    if name is not None:
        changes["name"] = _clean_text(name, "Product name")
    if brand is not None:
        changes["brand"] = _clean_text(brand, "Brand")
    if price_per_bag is not None:
        changes["price_per_bag"] = _clean_price(price_per_bag)
    if description is not None:
        changes["description"] = _clean_description(description)

    if not changes:
        raise ValidationError("No product fields to update")

    product = product_repository.update_product(product_id, changes)
    if product is None:
        raise NotFoundError(f"Product not found: {product_id}")
    return product


def delete_product(product_id: UUID) -> None:
    if not product_repository.delete_product(product_id):
        raise NotFoundError(f"Product not found: {product_id}")
    logger.info("Deleted product", extra={"product_id": str(product_id)})


def get_product(product_id: UUID) -> Product:
    product = product_repository.get_product(product_id)
    if product is None:
        raise NotFoundError(f"Product not found: {product_id}")
    return product


def catalog_by_id() -> Dict[UUID, Product]:
    """The whole catalog keyed by product id, as consumed by `Cart.add_product`."""

    return {p.product_id: p for p in product_repository.list_products()}


__all__ = [
    "create_product",
    "update_product",
    "delete_product",
    "get_product",
    "catalog_by_id",
]
