from enum import Enum


class OrderStatus(str, Enum):
    PENDING = "pending"          # Created inside the checkout transaction, awaiting payment
    PROCESSING = "processing"    # Payment completed
    COMPLETED = "completed"      # Fulfilled (final)
    CANCELLED = "cancelled"      # Cancelled, stock restored (final)
