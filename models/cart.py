# cart is the user's mutable selection of products prior to purchase.
#
# note that stock is NOT reserved by a cart, so the availability of every
# product is checked again (under lock) when the cart is checked out
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel
from sqlalchemy import Column, Integer, ForeignKey, DateTime, Index, Enum as SQLEnum

from enums.cart_status import CartStatus
from models.base import Base
from models.cartItem import CartItemDTO


class Cart(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    status = Column(SQLEnum(CartStatus), nullable=False, default=CartStatus.ACTIVE)
    checked_out_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    __table_args__ = (
        Index('ix_carts_user_status', 'user_id', 'status'),
    )


class CartDTO(BaseModel):
    id: int | None = None
    user_id: int | None = None
    status: CartStatus | None = None
    checked_out_at: datetime | None = None
    items: list[CartItemDTO] = []

    @property
    def is_active(self) -> bool:
        return self.status == CartStatus.ACTIVE

    @property
    def is_empty(self) -> bool:
        return len(self.items) == 0

    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self.items)

    @property
    def total_amount(self) -> Decimal:
        # Live prices: the cart total is informational, orders use a snapshot
        return sum((item.subtotal for item in self.items), Decimal("0.00"))


class CartValidationResult(BaseModel):
    """Advisory pre-checkout check, see CartService.validate_cart."""
    valid: bool
    error: str | None = None
    message: str | None = None
    details: dict = {}
