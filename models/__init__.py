"""
Models Package

This file ensures all SQLAlchemy models are imported and registered,
which is required for foreign keys to resolve when tables are created.
"""

from models.base import Base
from models.user import User
from models.product import Product
from models.cart import Cart
from models.cartItem import CartItem
from models.order import Order
from models.orderItem import OrderItem
from models.payment import Payment
from models.inventoryLog import InventoryLog

__all__ = [
    'Base',
    'User',
    'Product',
    'Cart',
    'CartItem',
    'Order',
    'OrderItem',
    'Payment',
    'InventoryLog',
]
