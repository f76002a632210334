"""
Custom exceptions for the storefront checkout core.

This module provides a hierarchy of custom exceptions for consistent error handling
throughout the application.

Exception Hierarchy:
--------------------
StorefrontException (base)
├── OrderException
│   ├── OrderNotFoundException
│   ├── InsufficientStockException
│   ├── InvalidStateTransitionException
│   └── OrderOwnershipException
├── PaymentException
│   ├── PaymentFailedException
│   ├── InvalidPaymentAmountException
│   ├── InvalidPaymentMethodException
│   └── PaymentNotFoundException
├── ProductException
│   ├── ProductNotFoundException
│   ├── ProductUnavailableException
│   └── InvalidStockAdjustmentException
├── CartException
│   ├── EmptyCartException
│   ├── CartItemNotFoundException
│   ├── InvalidCartStateException
│   └── InvalidQuantityException
└── ShippingException
    └── InvalidShippingAddressException

Usage:
------
Services raise specific exceptions:
    raise InsufficientStockException(product.id, product.name, requested=3, available=1)

The order processing boundary translates them into structured results:
    result = await OrderService.place_order(user_id, address)
    if not result.success:
        print(result.error, result.message)   # "insufficient_stock", "Insufficient stock for ..."
"""

from .base import StorefrontException
from .cart import (
    CartException,
    EmptyCartException,
    CartItemNotFoundException,
    InvalidCartStateException,
    InvalidQuantityException
)
from .order import (
    OrderException,
    OrderNotFoundException,
    InsufficientStockException,
    InvalidStateTransitionException,
    OrderOwnershipException
)
from .payment import (
    PaymentException,
    PaymentFailedException,
    InvalidPaymentAmountException,
    InvalidPaymentMethodException,
    PaymentNotFoundException
)
from .product import (
    ProductException,
    ProductNotFoundException,
    ProductUnavailableException,
    InvalidStockAdjustmentException
)
from .shipping import ShippingException, InvalidShippingAddressException

__all__ = [
    # Base
    'StorefrontException',

    # Cart
    'CartException',
    'EmptyCartException',
    'CartItemNotFoundException',
    'InvalidCartStateException',
    'InvalidQuantityException',

    # Order
    'OrderException',
    'OrderNotFoundException',
    'InsufficientStockException',
    'InvalidStateTransitionException',
    'OrderOwnershipException',

    # Payment
    'PaymentException',
    'PaymentFailedException',
    'InvalidPaymentAmountException',
    'InvalidPaymentMethodException',
    'PaymentNotFoundException',

    # Product
    'ProductException',
    'ProductNotFoundException',
    'ProductUnavailableException',
    'InvalidStockAdjustmentException',

    # Shipping
    'ShippingException',
    'InvalidShippingAddressException',
]
