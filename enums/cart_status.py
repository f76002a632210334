from enum import Enum


class CartStatus(str, Enum):
    ACTIVE = "active"
    CHECKED_OUT = "checked_out"   # Terminal, set once by a successful checkout
