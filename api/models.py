"""
API Request and Response Models.

Pydantic models for validating API requests and serializing responses.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from domain.product import Product
from domain.transaction import Transaction, TransactionLineItem
from services.reporting_service import BrandSales, CustomerSummary, DashboardSummary, ProductSales


# ============================================================================
# Product Models
# ============================================================================

class ProductCreateRequest(BaseModel):
    """Request to add a product to the catalog."""
    name: str = Field(..., min_length=1)
    brand: str = Field(..., min_length=1)
    price_per_bag: Decimal = Field(..., gt=0, description="Price of one bag")
    description: Optional[str] = None

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Urea",
                "brand": "Brand A",
                "price_per_bag": "1200.00",
                "description": "50 kg bag"
            }
        }


class ProductUpdateRequest(BaseModel):
    """Partial product edit; omitted fields are left unchanged."""
    name: Optional[str] = None
    brand: Optional[str] = None
    price_per_bag: Optional[Decimal] = Field(None, gt=0)
    description: Optional[str] = None


class ProductResponse(BaseModel):
    product_id: UUID
    name: str
    brand: str
    price_per_bag: Decimal
    description: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, product: Product) -> "ProductResponse":
        return cls(
            product_id=product.product_id,
            name=product.name,
            brand=product.brand,
            price_per_bag=product.price_per_bag,
            description=product.description,
            created_at=product.created_at,
        )


# ============================================================================
# Transaction Models
# ============================================================================

class CartItemRequest(BaseModel):
    product_id: UUID
    quantity: int = Field(..., ge=1)


class TransactionCreateRequest(BaseModel):
    """Request to commit a sale."""
    customer_name: str
    customer_phone: str
    merchant_id: str
    created_by: Optional[str] = None
    items: List[CartItemRequest] = Field(
        ...,
        min_length=1,
        description="Cart lines (product and number of bags)"
    )

    class Config:
        json_schema_extra = {
            "example": {
                "customer_name": "Ali Khan",
                "customer_phone": "0300-1111111",
                "merchant_id": "M-01",
                "items": [
                    {"product_id": "123e4567-e89b-12d3-a456-426614174000", "quantity": 2},
                    {"product_id": "123e4567-e89b-12d3-a456-426614174001", "quantity": 1}
                ]
            }
        }


class LineItemResponse(BaseModel):
    line_item_id: UUID
    product_id: UUID
    product_name: Optional[str] = None
    product_brand: Optional[str] = None
    quantity: int
    unit_price: Decimal
    subtotal: Decimal

    @classmethod
    def from_domain(cls, item: TransactionLineItem) -> "LineItemResponse":
        return cls(
            line_item_id=item.line_item_id,
            product_id=item.product_id,
            product_name=item.product_name,
            product_brand=item.product_brand,
            quantity=item.quantity,
            unit_price=item.unit_price,
            subtotal=item.subtotal,
        )


class TransactionResponse(BaseModel):
    transaction_id: UUID
    invoice_number: str
    customer_id: UUID
    merchant_id: str
    total_bags: int
    total_amount: Decimal
    created_at: datetime
    created_by: Optional[str] = None
    items: List[LineItemResponse]

    @classmethod
    def from_domain(cls, transaction: Transaction) -> "TransactionResponse":
        return cls(
            transaction_id=transaction.transaction_id,
            invoice_number=transaction.invoice_number,
            customer_id=transaction.customer_id,
            merchant_id=transaction.merchant_id,
            total_bags=transaction.total_bags,
            total_amount=transaction.total_amount,
            created_at=transaction.created_at,
            created_by=transaction.created_by,
            items=[LineItemResponse.from_domain(item) for item in transaction.line_items],
        )


# ============================================================================
# Customer Models
# ============================================================================

class CustomerSummaryResponse(BaseModel):
    customer_id: UUID
    name: str
    phone_number: str
    created_at: Optional[datetime] = None
    purchase_count: int
    total_spent: Decimal
    total_bags: int
    last_purchase_at: Optional[datetime] = None

    @classmethod
    def from_domain(cls, summary: CustomerSummary) -> "CustomerSummaryResponse":
        return cls(
            customer_id=summary.customer.customer_id,
            name=summary.customer.name,
            phone_number=summary.customer.phone_number,
            created_at=summary.customer.created_at,
            purchase_count=summary.purchase_count,
            total_spent=summary.total_spent,
            total_bags=summary.total_bags,
            last_purchase_at=summary.last_purchase_at,
        )


# ============================================================================
# Report Models
# ============================================================================

class BrandSalesResponse(BaseModel):
    brand: str
    quantity: int
    revenue: Decimal

    @classmethod
    def from_domain(cls, sales: BrandSales) -> "BrandSalesResponse":
        return cls(brand=sales.brand, quantity=sales.quantity, revenue=sales.revenue)


class ProductSalesResponse(BaseModel):
    product_name: str
    brand: str
    price_per_bag: Optional[Decimal] = None
    average_unit_price: Decimal
    quantity: int
    revenue: Decimal

    @classmethod
    def from_domain(cls, sales: ProductSales) -> "ProductSalesResponse":
        return cls(
            product_name=sales.product_name,
            brand=sales.brand,
            price_per_bag=sales.price_per_bag,
            average_unit_price=sales.average_unit_price,
            quantity=sales.quantity,
            revenue=sales.revenue,
        )


class DashboardResponse(BaseModel):
    currency: str
    total_revenue: Decimal
    total_bags: int
    total_transactions: int
    total_customers: int
    total_products: int
    recent_transactions: List[TransactionResponse]

    @classmethod
    def from_domain(cls, summary: DashboardSummary, currency: str) -> "DashboardResponse":
        return cls(
            currency=currency,
            total_revenue=summary.totals.revenue,
            total_bags=summary.totals.bags,
            total_transactions=summary.totals.count,
            total_customers=summary.customer_count,
            total_products=summary.product_count,
            recent_transactions=[TransactionResponse.from_domain(t) for t in summary.recent_transactions],
        )


# ============================================================================
# Error Models
# ============================================================================

class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    detail: Optional[str] = None
    status_code: int
    transaction_id: Optional[UUID] = None
    invoice_number: Optional[str] = None
    rolled_back: Optional[bool] = None

    class Config:
        json_schema_extra = {
            "example": {
                "error": "Validation failed",
                "detail": "Cart is empty",
                "status_code": 422
            }
        }
