"""
Shipping-related exceptions.
"""

from .base import StorefrontException


class ShippingException(StorefrontException):
    """Base exception for shipping-related errors."""
    error_code = "shipping_error"


class InvalidShippingAddressException(ShippingException):
    """Raised when shipping address is missing or invalid. Checked before any transaction."""
    error_code = "invalid_shipping_address"

    def __init__(self, reason: str):
        super().__init__(
            f"Invalid shipping address: {reason}",
            details={'reason': reason}
        )
        self.reason = reason
