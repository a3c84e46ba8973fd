from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.orm import Session
from decimal import Decimal
from typing import Annotated, List, Optional
import logging
import os
import platform

from app.database import get_db
from app.models.product import INT_MAX, ProductStatus
from app.repositories.product_repository import SqlAlchemyProductRepository
from app.services.product_service import ProductService
from app.schemas.product import (
    DebugInfoResponse,
    ProductCreate,
    ProductUpdate,
    ProductResponse,
    ProductListResponse
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/products", tags=["Products"])

ProductId = Annotated[int, Path(le=INT_MAX, description="Product ID")]


def get_product_service(db: Session = Depends(get_db)) -> ProductService:
    """Dependency that builds a ProductService bound to the request's session."""
    return ProductService(SqlAlchemyProductRepository(db))


@router.post(
    "/",
    response_model=ProductResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new product",
    description="Create a new product. Names must be unique; status defaults to ACTIVE."
)
def create_product(
    product_data: ProductCreate,
    service: ProductService = Depends(get_product_service)
):
    """
    Create a new product.

    - **name**: Product name, 2-100 characters, unique (required)
    - **description**: Up to 500 characters (optional)
    - **price**: Product price, must be positive (required)
    - **stock**: Initial stock quantity, must be non-negative (default 0)
    - **status**: Initial status (default ACTIVE)
    """
    product = service.create(product_data)
    logger.info(f"Created product with id: {product.id}")
    return product


@router.get(
    "/",
    response_model=ProductListResponse,
    summary="List all products",
    description="Get a paginated list of all products, newest first."
)
def list_products(
    page: int = Query(1, ge=1, le=INT_MAX, description="Page number"),
    page_size: int = Query(10, ge=1, le=100, description="Items per page"),
    service: ProductService = Depends(get_product_service)
):
    """Get paginated list of products."""
    products, total, total_pages = service.get_all(page, page_size)

    return ProductListResponse(
        items=[ProductResponse.model_validate(p) for p in products],
        total=total,
        page=page,
        page_size=page_size,
        total_pages=total_pages
    )


@router.get(
    "/search",
    response_model=List[ProductResponse],
    summary="Search products",
    description="Filter products by name substring, price range and status. All filters are optional."
)
def search_products(
    name: Optional[str] = Query(None, description="Case-insensitive name substring"),
    min_price: Optional[Decimal] = Query(None, description="Minimum price (inclusive)"),
    max_price: Optional[Decimal] = Query(None, description="Maximum price (inclusive)"),
    status: Optional[ProductStatus] = Query(None, description="Product status"),
    service: ProductService = Depends(get_product_service)
):
    """Search products. Filters combine with AND."""
    return service.search(name, min_price, max_price, status)


@router.get(
    "/debug-info",
    response_model=DebugInfoResponse,
    summary="Debug information",
    description="Product counts and runtime details for inspecting a running instance."
)
def debug_info(service: ProductService = Depends(get_product_service)):
    """Snapshot of catalog counts and the Python runtime."""
    products = service.find_all()

    return DebugInfoResponse(
        total_products=len(products),
        active_products=sum(1 for p in products if p.status == ProductStatus.ACTIVE),
        out_of_stock=sum(1 for p in products if p.stock == 0),
        python_version=platform.python_version(),
        platform=platform.platform(),
        cpu_count=os.cpu_count(),
    )


@router.get(
    "/{product_id}",
    response_model=ProductResponse,
    summary="Get product by ID",
    description="Get detailed information about a specific product."
)
def get_product(
    product_id: ProductId,
    service: ProductService = Depends(get_product_service)
):
    """Get a product by ID. Returns 404 if it doesn't exist."""
    return service.get_by_id(product_id)


@router.put(
    "/{product_id}",
    response_model=ProductResponse,
    summary="Update a product",
    description="Update product details. Only provided fields will be updated."
)
def update_product(
    product_id: ProductId,
    product_data: ProductUpdate,
    service: ProductService = Depends(get_product_service)
):
    """
    Update a product.

    Partial updates are supported - only include fields you want to change.
    A discontinued product cannot be set back to ACTIVE.
    """
    return service.update(product_id, product_data)


@router.patch(
    "/{product_id}/stock",
    response_model=ProductResponse,
    summary="Adjust stock",
    description="Add to or remove from stock. Status follows stock between ACTIVE and OUT_OF_STOCK."
)
def update_stock(
    product_id: ProductId,
    change: int = Query(..., ge=-INT_MAX - 1, le=INT_MAX, description="Quantity to add (positive) or remove (negative)"),
    service: ProductService = Depends(get_product_service)
):
    """Adjust stock by `change`. Fails with 400 if stock would go negative."""
    return service.update_stock(product_id, change)


@router.post(
    "/{product_id}/discontinue",
    response_model=ProductResponse,
    summary="Discontinue a product",
    description="Soft delete: mark the product DISCONTINUED and keep the record."
)
def discontinue_product(
    product_id: ProductId,
    service: ProductService = Depends(get_product_service)
):
    """Discontinue a product regardless of its current status."""
    return service.discontinue(product_id)


@router.delete(
    "/{product_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a product",
    description="Permanently delete a product by ID."
)
def delete_product(
    product_id: ProductId,
    service: ProductService = Depends(get_product_service)
):
    """Delete a product."""
    service.delete(product_id)
    return None
