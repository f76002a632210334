from enum import Enum


class InventoryAction(str, Enum):
    SALE = "sale"              # Checkout deducted stock
    RETURN = "return"          # Cancellation put stock back
    RESTOCK = "restock"
    ADJUSTMENT = "adjustment"
