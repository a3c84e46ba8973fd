from decimal import Decimal
from typing import Optional, List, Tuple
import logging
import math
import random
import time

from app.config import Settings, get_settings
from app.models.product import INT_MAX, Product, ProductStatus
from app.repositories.product_repository import ProductRepository
from app.schemas.product import ProductCreate, ProductUpdate
from app.services.exceptions import (
    DuplicateNameError,
    InsufficientStockError,
    InvalidPriceError,
    InvalidStatusTransitionError,
    ProductNotFoundError,
    StockLimitExceededError,
)

logger = logging.getLogger(__name__)


class ProductService:
    """
    Service class for the product lifecycle.

    This service owns every rule about products:
    - Name uniqueness and price validation on creation
    - Merge-patch updates with status transition checks
    - Stock adjustments with automatic ACTIVE <-> OUT_OF_STOCK transitions
    - Hard delete and soft delete (discontinue)

    Persistence is delegated to a ProductRepository. Operations load, validate
    and then write; nothing is persisted when validation fails. There is no
    locking around the read-modify-write, so concurrent updates to the same
    product rely on the database's isolation level.
    """

    def __init__(self, repository: ProductRepository, settings: Optional[Settings] = None):
        self.repository = repository
        self.settings = settings or get_settings()

    def create(self, product_data: ProductCreate) -> Product:
        """
        Create a new product.

        Args:
            product_data: Product creation data

        Returns:
            Created product instance

        Raises:
            DuplicateNameError: If a product with the same name exists
            InvalidPriceError: If price is missing or not positive
        """
        logger.debug(f">>> create() called with: {product_data!r}")
        self._simulate_slow_query()

        if self.repository.find_by_name(product_data.name) is not None:
            logger.warning(f"Duplicate product name: '{product_data.name}'")
            raise DuplicateNameError(product_data.name)
        self._validate_price(product_data.price)

        status = product_data.status
        if status is None:
            status = ProductStatus.ACTIVE
            logger.debug("Set default status to ACTIVE")

        product = Product(
            name=product_data.name,
            description=product_data.description,
            price=product_data.price,
            stock=product_data.stock,
            status=status,
        )
        product = self.repository.save(product)

        logger.info(f"Created product: id={product.id}, name='{product.name}'")
        return product

    def get_by_id(self, product_id: int) -> Product:
        """
        Get a product by ID.

        Raises:
            ProductNotFoundError: If no product has this ID
        """
        logger.debug(f">>> get_by_id() called with id={product_id}")
        self._simulate_random_error()

        product = self.repository.find_by_id(product_id)
        if product is None:
            logger.warning(f"Product not found with id: {product_id}")
            raise ProductNotFoundError(product_id)

        return product

    def get_all(self, page: int = 1, page_size: int = 10) -> Tuple[List[Product], int, int]:
        """
        Get paginated list of products, newest first.

        Args:
            page: Page number (1-indexed)
            page_size: Number of items per page

        Returns:
            Tuple of (products list, total count, total pages)
        """
        offset = (page - 1) * page_size
        products, total = self.repository.find_page(offset, page_size)
        total_pages = math.ceil(total / page_size) if total > 0 else 1

        logger.debug(f"<<< get_all() returning {len(products)} of {total} products")
        return products, total, total_pages

    def find_all(self) -> List[Product]:
        """Every product, unpaginated."""
        products = self.repository.find_all()
        logger.debug(f"<<< find_all() returning {len(products)} products")
        return products

    def search(
        self,
        name_pattern: Optional[str] = None,
        min_price: Optional[Decimal] = None,
        max_price: Optional[Decimal] = None,
        status: Optional[ProductStatus] = None,
    ) -> List[Product]:
        """
        Search products. Every filter is optional and filters combine with AND.

        Args:
            name_pattern: Case-insensitive substring of the product name
            min_price: Inclusive lower price bound
            max_price: Inclusive upper price bound
            status: Exact status

        Returns:
            Matching products (possibly empty)
        """
        logger.debug(
            f">>> search() called with name='{name_pattern}', min_price={min_price}, "
            f"max_price={max_price}, status={status}"
        )
        results = self.repository.search(name_pattern, min_price, max_price, status)
        logger.debug(f"<<< search() returning {len(results)} results")
        return results

    def update(self, product_id: int, product_data: ProductUpdate) -> Product:
        """
        Update an existing product.

        Only fields explicitly present in ``product_data`` are applied.
        Price and status are validated before anything is changed.

        Raises:
            ProductNotFoundError: If the product doesn't exist
            InvalidPriceError: If a non-positive price is supplied
            InvalidStatusTransitionError: If the status change is not allowed
        """
        logger.debug(f">>> update() called with id={product_id}, details={product_data!r}")
        product = self.get_by_id(product_id)
        changes = product_data.changes()

        if "price" in changes:
            self._validate_price(changes["price"])
        if "status" in changes:
            self._validate_status_transition(product.status, changes["status"])

        self._log_changes(product, changes)
        for field, value in changes.items():
            setattr(product, field, value)

        product = self.repository.save(product)
        logger.info(f"Updated product: id={product_id}")
        return product

    def update_stock(self, product_id: int, change: int) -> Product:
        """
        Adjust stock by ``change`` (may be negative).

        Stock reaching zero moves an ACTIVE product to OUT_OF_STOCK; stock
        rising above zero moves an OUT_OF_STOCK product back to ACTIVE.

        Raises:
            ProductNotFoundError: If the product doesn't exist
            InsufficientStockError: If the result would be negative
            StockLimitExceededError: If the result would exceed INT_MAX
        """
        logger.debug(f">>> update_stock() called with id={product_id}, change={change}")
        product = self.get_by_id(product_id)

        new_stock = product.stock + change
        if new_stock < 0:
            logger.warning(
                f"Stock update would result in negative stock: "
                f"current={product.stock}, change={change}, result={new_stock}"
            )
            raise InsufficientStockError(product_id, product.stock, change)
        if new_stock > INT_MAX:
            logger.warning(
                f"Stock update would exceed the maximum: "
                f"current={product.stock}, change={change}, result={new_stock}"
            )
            raise StockLimitExceededError(product_id, product.stock, change, INT_MAX)

        product.stock = new_stock
        if new_stock == 0 and product.status == ProductStatus.ACTIVE:
            product.status = ProductStatus.OUT_OF_STOCK
            logger.info(f"Product {product_id} is now out of stock")
        elif new_stock > 0 and product.status == ProductStatus.OUT_OF_STOCK:
            product.status = ProductStatus.ACTIVE
            logger.info(f"Product {product_id} is back in stock")

        return self.repository.save(product)

    def delete(self, product_id: int) -> None:
        """
        Delete a product permanently.

        Raises:
            ProductNotFoundError: If the product doesn't exist
        """
        logger.debug(f">>> delete() called with id={product_id}")
        product = self.get_by_id(product_id)
        name = product.name

        self.repository.delete(product)
        logger.info(f"Deleted product: id={product_id}, name='{name}'")

    def discontinue(self, product_id: int) -> Product:
        """
        Soft-delete a product by marking it DISCONTINUED, whatever its status.

        Raises:
            ProductNotFoundError: If the product doesn't exist
        """
        logger.debug(f">>> discontinue() called with id={product_id}")
        product = self.get_by_id(product_id)

        product.status = ProductStatus.DISCONTINUED
        product = self.repository.save(product)

        logger.info(f"Discontinued product: id={product_id}")
        return product

    def _validate_price(self, price: Optional[Decimal]) -> None:
        if price is None or price <= 0:
            logger.warning(f"Rejected invalid price: {price}")
            raise InvalidPriceError(price)

    def _validate_status_transition(self, current: ProductStatus, requested: ProductStatus) -> None:
        """A discontinued product cannot be reactivated; other transitions are free."""
        if current == ProductStatus.DISCONTINUED and requested == ProductStatus.ACTIVE:
            logger.warning(f"Rejected status transition {current.value} -> {requested.value}")
            raise InvalidStatusTransitionError(current, requested)

    def _log_changes(self, product: Product, changes: dict) -> None:
        if not logger.isEnabledFor(logging.DEBUG):
            return

        diffs = []
        for field, value in changes.items():
            old = getattr(product, field)
            if old != value:
                diffs.append(f"{field}[{old!r}->{value!r}]")

        if diffs:
            logger.debug(f"Changes for product {product.id}: {' '.join(diffs)}")
        else:
            logger.debug(f"No changes detected for product {product.id}")

    def _simulate_slow_query(self) -> None:
        if self.settings.SIMULATE_SLOW_QUERIES:
            delay = self.settings.SLOW_QUERY_DELAY_SECONDS
            logger.warning(f"SIMULATION: Adding {delay} second delay to simulate slow query")
            time.sleep(delay)

    def _simulate_random_error(self) -> None:
        if self.settings.SIMULATE_RANDOM_ERRORS and random.random() < self.settings.RANDOM_ERROR_RATE:
            logger.warning("SIMULATION: Throwing random error for resilience testing")
            raise RuntimeError("Simulated random error for debugging")
