"""
Products API Endpoints.

Catalog maintenance and lookup.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Response

from api.models import ProductCreateRequest, ProductResponse, ProductUpdateRequest
from repositories.product_repository import list_products
from services import catalog_service

router = APIRouter()


@router.get(
    "/products",
    response_model=List[ProductResponse],
    summary="List Products",
    description="Return the whole catalog, newest first."
)
def get_products():
    return [ProductResponse.from_domain(p) for p in list_products()]


@router.get("/products/{product_id}", response_model=ProductResponse, summary="Get Product")
def get_product(product_id: UUID):
    return ProductResponse.from_domain(catalog_service.get_product(product_id))


@router.post("/products", response_model=ProductResponse, status_code=201, summary="Create Product")
def create_product(request: ProductCreateRequest):
    product = catalog_service.create_product(
        name=request.name,
        brand=request.brand,
        price_per_bag=request.price_per_bag,
        description=request.description,
    )
    return ProductResponse.from_domain(product)


@router.put(
    "/products/{product_id}",
    response_model=ProductResponse,
    summary="Update Product",
    description="Edit name, brand, price or description. Past sales keep the price they were sold at."
)
def update_product(product_id: UUID, request: ProductUpdateRequest):
    product = catalog_service.update_product(
        product_id,
        name=request.name,
        brand=request.brand,
        price_per_bag=request.price_per_bag,
        description=request.description,
    )
    return ProductResponse.from_domain(product)


@router.delete("/products/{product_id}", status_code=204, summary="Delete Product")
def delete_product(product_id: UUID):
    catalog_service.delete_product(product_id)
    return Response(status_code=204)
