"""
Order-related exceptions.
"""

from .base import StorefrontException


class OrderException(StorefrontException):
    """Base exception for order-related errors."""
    error_code = "order_error"


class OrderNotFoundException(OrderException):
    """Raised when order is not found in database."""
    error_code = "order_not_found"

    def __init__(self, order_id: int):
        super().__init__(
            f"Order {order_id} not found",
            details={'order_id': order_id}
        )
        self.order_id = order_id


class InsufficientStockException(OrderException):
    """
    Raised when a requested quantity exceeds the product's stock.

    Raised under lock during checkout (authoritative, causes full rollback)
    and by the advisory cart validation.
    """
    error_code = "insufficient_stock"

    def __init__(self, product_id: int, product_name: str, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for '{product_name}'. Requested: {requested}, Available: {available}",
            details={
                'product_id': product_id,
                'product_name': product_name,
                'requested': requested,
                'available': available,
            }
        )
        self.product_id = product_id
        self.product_name = product_name
        self.requested = requested
        self.available = available


class InvalidStateTransitionException(OrderException):
    """Raised when an order or payment is in the wrong state for the requested operation."""
    error_code = "invalid_state_transition"

    def __init__(self, entity: str, entity_id: int | None, current_state: str, target_state: str):
        super().__init__(
            f"Cannot move {entity} {entity_id} from '{current_state}' to '{target_state}'",
            details={
                'entity': entity,
                'entity_id': entity_id,
                'current_state': current_state,
                'target_state': target_state,
            }
        )
        self.entity = entity
        self.entity_id = entity_id
        self.current_state = current_state
        self.target_state = target_state


class OrderOwnershipException(OrderException):
    """Raised when user attempts to access/modify order they don't own."""
    error_code = "order_not_found"

    def __init__(self, order_id: int, user_id: int):
        super().__init__(
            f"User {user_id} does not have permission to access order {order_id}",
            details={'order_id': order_id, 'user_id': user_id}
        )
        self.order_id = order_id
        self.user_id = user_id
