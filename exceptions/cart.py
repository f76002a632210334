"""
Cart-related exceptions.
"""

from .base import StorefrontException


class CartException(StorefrontException):
    """Base exception for cart-related errors."""
    error_code = "cart_error"


class EmptyCartException(CartException):
    """Raised when trying to checkout with empty cart."""
    error_code = "empty_cart"

    def __init__(self, user_id: int):
        super().__init__(
            "Cart is empty",
            details={'user_id': user_id}
        )
        self.user_id = user_id


class CartItemNotFoundException(CartException):
    """Raised when cart item not found."""
    error_code = "cart_item_not_found"

    def __init__(self, cart_item_id: int):
        super().__init__(
            f"Cart item {cart_item_id} not found",
            details={'cart_item_id': cart_item_id}
        )
        self.cart_item_id = cart_item_id


class InvalidCartStateException(CartException):
    """Raised when cart is in invalid state for operation (e.g. already checked out)."""
    error_code = "invalid_cart_state"

    def __init__(self, cart_id: int, reason: str):
        super().__init__(
            f"Invalid state for cart {cart_id}: {reason}",
            details={'cart_id': cart_id, 'reason': reason}
        )
        self.cart_id = cart_id
        self.reason = reason


class InvalidQuantityException(CartException):
    """Raised when a requested quantity is not allowed."""
    error_code = "invalid_quantity"

    def __init__(self, quantity: int, reason: str):
        super().__init__(
            f"Invalid quantity {quantity}: {reason}",
            details={'quantity': quantity, 'reason': reason}
        )
        self.quantity = quantity
        self.reason = reason
