"""Errors raised by the product service.

Every business-rule violation carries an ``error_code`` and the offending
value so the API layer can report it verbatim. Anything that is not a
``ProductServiceError`` is treated as an unexpected failure.
"""
from decimal import Decimal
from typing import Optional

from app.models.product import ProductStatus


class ProductServiceError(Exception):
    """Base class for all product service errors."""
    error_code = "PRODUCT_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ProductNotFoundError(ProductServiceError):
    """Exception raised when the requested product doesn't exist."""
    error_code = "NOT_FOUND"

    def __init__(self, product_id: Optional[int] = None, name: Optional[str] = None):
        if name is not None:
            message = f"Product not found with name: {name}"
        else:
            message = f"Product not found with id: {product_id}"
        super().__init__(message)
        self.product_id = product_id
        self.name = name


class BusinessRuleError(ProductServiceError):
    """A business rule or invariant was violated."""
    error_code = "BUSINESS_ERROR"


class DuplicateNameError(BusinessRuleError):
    error_code = "DUPLICATE_NAME"

    def __init__(self, name: str):
        super().__init__(f"Product with name '{name}' already exists")
        self.name = name


class InvalidPriceError(BusinessRuleError):
    error_code = "INVALID_PRICE"

    def __init__(self, price: Optional[Decimal]):
        super().__init__(f"Price must be greater than 0 (got {price})")
        self.price = price


class InsufficientStockError(BusinessRuleError):
    """Exception raised when a stock change would drive stock below zero."""
    error_code = "INSUFFICIENT_STOCK"

    def __init__(self, product_id: int, current: int, change: int):
        super().__init__(
            f"Cannot reduce stock below 0. Current: {current}, Requested change: {change}"
        )
        self.product_id = product_id
        self.current = current
        self.change = change


class InvalidStatusTransitionError(BusinessRuleError):
    error_code = "INVALID_STATUS_TRANSITION"

    def __init__(self, current: ProductStatus, requested: ProductStatus):
        super().__init__(
            f"Cannot change status from {current.value} to {requested.value}"
        )
        self.current = current
        self.requested = requested


class StockLimitExceededError(BusinessRuleError):
    """Exception raised when a stock change would exceed the storable maximum."""
    error_code = "STOCK_LIMIT_EXCEEDED"

    def __init__(self, product_id: int, current: int, change: int, limit: int):
        super().__init__(
            f"Cannot raise stock above {limit}. Current: {current}, Requested change: {change}"
        )
        self.product_id = product_id
        self.current = current
        self.change = change
        self.limit = limit
