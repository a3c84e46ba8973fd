from pydantic import AfterValidator, BaseModel, StringConstraints, Field, ConfigDict, field_serializer, model_validator
from datetime import datetime
from decimal import Decimal
from typing import Annotated, Optional

from app.models.product import INT_MAX, ProductStatus


def _require_non_blank(value: str) -> str:
    if not value.strip():
        raise ValueError("Product name is required")
    return value


ProductName = Annotated[str, StringConstraints(min_length=2, max_length=100), AfterValidator(_require_non_blank)]


class ProductBase(BaseModel):
    """Base schema for Product with common attributes."""
    name: ProductName = Field(..., description="Product name")
    description: Optional[str] = Field(None, max_length=500, description="Product description")
    price: Decimal = Field(
        ..., gt=0, max_digits=10, decimal_places=2,
        description="Product price (must be positive, two decimal places)"
    )
    stock: int = Field(0, ge=0, le=INT_MAX, description="Available stock (must be non-negative)")


class ProductCreate(ProductBase):
    """Schema for creating a new product. Status defaults to ACTIVE."""
    status: Optional[ProductStatus] = Field(None, description="Initial status")


class ProductUpdate(BaseModel):
    """
    Schema for updating an existing product (merge-patch).

    Only fields present in the request body are applied. `description` may be
    cleared with an explicit null; the other fields may be omitted but not
    nulled. Price positivity is checked by the service, not here.
    """
    name: Optional[ProductName] = Field(None, description="Product name")
    description: Optional[str] = Field(None, max_length=500, description="Product description")
    price: Optional[Decimal] = Field(None, max_digits=10, decimal_places=2, description="Product price")
    stock: Optional[int] = Field(None, ge=0, le=INT_MAX, description="Available stock")
    status: Optional[ProductStatus] = Field(None, description="New status")

    @model_validator(mode="after")
    def reject_explicit_nulls(self):
        for field in ("name", "price", "stock", "status"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} may not be null")
        return self

    def changes(self) -> dict:
        """Fields explicitly supplied by the caller."""
        return {field: getattr(self, field) for field in self.model_fields_set}


class ProductResponse(ProductBase):
    """Schema for product response including all fields."""
    id: int
    status: ProductStatus
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    @field_serializer("price")
    def serialize_price(self, price: Decimal) -> float:
        return float(price)


class ProductListResponse(BaseModel):
    """Schema for paginated product list response."""
    items: list[ProductResponse]
    total: int
    page: int
    page_size: int
    total_pages: int


class DebugInfoResponse(BaseModel):
    """Runtime snapshot used when debugging a running instance."""
    total_products: int
    active_products: int
    out_of_stock: int
    python_version: str
    platform: str
    cpu_count: Optional[int] = None
