"""
Payment-related exceptions.
"""

from decimal import Decimal

from .base import StorefrontException


class PaymentException(StorefrontException):
    """Base exception for payment-related errors."""
    error_code = "payment_error"


class PaymentFailedException(PaymentException):
    """Raised when the gateway declines a payment. Rolls back the whole checkout."""
    error_code = "payment_failed"

    def __init__(self, order_number: str, reason: str):
        super().__init__(
            f"Payment for order {order_number} failed: {reason}",
            details={'order_number': order_number, 'reason': reason}
        )
        self.order_number = order_number
        self.reason = reason


class InvalidPaymentAmountException(PaymentException):
    """Raised when payment amount does not match the order total."""
    error_code = "invalid_payment_amount"

    def __init__(self, expected: Decimal, received: Decimal):
        super().__init__(
            f"Invalid payment amount: expected {expected}, received {received}",
            details={'expected': str(expected), 'received': str(received)}
        )
        self.expected = expected
        self.received = received


class InvalidPaymentMethodException(PaymentException):
    """Raised when the payment method is not one of the accepted methods."""
    error_code = "invalid_payment_method"

    def __init__(self, payment_method: str):
        super().__init__(
            f"Invalid payment method '{payment_method}'",
            details={'payment_method': payment_method}
        )
        self.payment_method = payment_method


class PaymentNotFoundException(PaymentException):
    """Raised when an order has no payment record."""
    error_code = "payment_not_found"

    def __init__(self, order_id: int):
        super().__init__(
            f"Payment for order {order_id} not found",
            details={'order_id': order_id}
        )
        self.order_id = order_id
