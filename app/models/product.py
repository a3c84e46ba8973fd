from sqlalchemy import Column, Integer, String, Numeric, DateTime, Enum, CheckConstraint
from sqlalchemy.sql import func
import enum

from app.database import Base

# Largest value of a SQL INTEGER column; bounds stock, quantities and ids
INT_MAX = 2**31 - 1


class ProductStatus(str, enum.Enum):
    """Lifecycle status of a product."""
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    OUT_OF_STOCK = "OUT_OF_STOCK"
    DISCONTINUED = "DISCONTINUED"


class Product(Base):
    """
    Product model representing items available for sale.

    Attributes:
        id: Unique identifier, assigned on first insert
        name: Product name (unique at creation time only)
        description: Optional free-text description
        price: Product price with two fractional digits (must be positive)
        stock: Available quantity (must be non-negative)
        status: Lifecycle status
        created_at: Timestamp when product was created
        updated_at: Timestamp when product was last updated
    """
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, index=True)
    description = Column(String(500), nullable=True)
    price = Column(Numeric(10, 2), nullable=False)
    stock = Column(Integer, nullable=False, default=0)
    status = Column(Enum(ProductStatus), nullable=False, default=ProductStatus.ACTIVE)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Database-level constraints to ensure data integrity
    __table_args__ = (
        CheckConstraint('price > 0', name='check_price_positive'),
        CheckConstraint('stock >= 0', name='check_stock_non_negative'),
    )

    def __repr__(self):
        return (
            f"<Product(id={self.id}, name='{self.name}', price={self.price}, "
            f"stock={self.stock}, status={self.status})>"
        )
