"""Data access for products.

``ProductRepository`` is the storage contract the product service depends
on. ``SqlAlchemyProductRepository`` implements it on top of a request-scoped
SQLAlchemy session; tests substitute an in-memory implementation.
"""
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import List, Optional, Tuple
import logging

from sqlalchemy.orm import Session

from app.models.product import Product, ProductStatus

logger = logging.getLogger(__name__)


class ProductRepository(ABC):

    @abstractmethod
    def save(self, product: Product) -> Product:
        """Persist a new or updated product and return it with id and timestamps set."""

    @abstractmethod
    def find_by_id(self, product_id: int) -> Optional[Product]:
        """Return a product by its ID, or None if not found."""

    @abstractmethod
    def find_by_name(self, name: str) -> Optional[Product]:
        """Return a product by its exact (case-sensitive) name, or None."""

    @abstractmethod
    def find_all(self) -> List[Product]:
        """Return every product."""

    @abstractmethod
    def find_page(self, offset: int, limit: int) -> Tuple[List[Product], int]:
        """Return one page of products, newest first, and the total count."""

    @abstractmethod
    def search(
        self,
        name_pattern: Optional[str] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        status: Optional[ProductStatus] = None,
    ) -> List[Product]:
        """Return products matching every supplied filter."""

    @abstractmethod
    def delete(self, product: Product) -> None:
        """Remove a product permanently."""


class SqlAlchemyProductRepository(ProductRepository):
    """
    Product repository backed by a SQLAlchemy session.

    Each write commits immediately; a failed commit is rolled back before the
    error is re-raised so the session stays usable for the rest of the request.
    Timestamps are maintained by the column defaults on the model.
    """

    def __init__(self, db: Session):
        self.db = db

    def save(self, product: Product) -> Product:
        self.db.add(product)
        self._commit()
        self.db.refresh(product)
        return product

    def find_by_id(self, product_id: int) -> Optional[Product]:
        return self.db.query(Product).filter(Product.id == product_id).first()

    def find_by_name(self, name: str) -> Optional[Product]:
        return self.db.query(Product).filter(Product.name == name).first()

    def find_all(self) -> List[Product]:
        return self.db.query(Product).order_by(Product.id).all()

    def find_page(self, offset: int, limit: int) -> Tuple[List[Product], int]:
        query = self.db.query(Product)
        total = query.count()
        products = query.order_by(Product.id.desc()).offset(offset).limit(limit).all()
        return products, total

    def search(
        self,
        name_pattern: Optional[str] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        status: Optional[ProductStatus] = None,
    ) -> List[Product]:
        query = self.db.query(Product)

        if name_pattern is not None:
            query = query.filter(Product.name.icontains(name_pattern, autoescape=True))
        if min_price is not None:
            query = query.filter(Product.price >= min_price)
        if max_price is not None:
            query = query.filter(Product.price <= max_price)
        if status is not None:
            query = query.filter(Product.status == status)

        return query.order_by(Product.id).all()

    def delete(self, product: Product) -> None:
        self.db.delete(product)
        self._commit()

    def _commit(self) -> None:
        try:
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error while committing product changes, rolled back: {e!r}")
            raise
