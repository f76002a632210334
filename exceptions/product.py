"""
Product-related exceptions.
"""

from .base import StorefrontException


class ProductException(StorefrontException):
    """Base exception for product-related errors."""
    error_code = "product_error"


class ProductNotFoundException(ProductException):
    """Raised when product is not found in database."""
    error_code = "product_not_found"

    def __init__(self, product_id: int):
        super().__init__(
            f"Product {product_id} not found",
            details={'product_id': product_id}
        )
        self.product_id = product_id


class ProductUnavailableException(ProductException):
    """Raised when a product is inactive, suspended, soft-deleted or sold out."""
    error_code = "product_unavailable"

    def __init__(self, product_id: int, product_name: str):
        super().__init__(
            f"Product '{product_name}' is no longer available",
            details={'product_id': product_id, 'product_name': product_name}
        )
        self.product_id = product_id
        self.product_name = product_name


class InvalidStockAdjustmentException(ProductException):
    """Raised when a stock change would leave a product with negative stock."""
    error_code = "invalid_stock_adjustment"

    def __init__(self, product_id: int, current_quantity: int, requested_quantity: int):
        super().__init__(
            f"Stock of product {product_id} cannot go below zero "
            f"(current: {current_quantity}, requested: {requested_quantity})",
            details={
                'product_id': product_id,
                'current_quantity': current_quantity,
                'requested_quantity': requested_quantity
            }
        )
        self.product_id = product_id
        self.current_quantity = current_quantity
        self.requested_quantity = requested_quantity
