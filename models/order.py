from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel
from sqlalchemy import Column, Integer, String, Text, DateTime, Numeric, ForeignKey, CheckConstraint, Index
from sqlalchemy import Enum as SQLEnum

from enums.order_status import OrderStatus
from enums.payment_method import PaymentMethod
from models.base import Base
from models.orderItem import OrderItemDTO
from models.payment import PaymentDTO


class Order(Base):
    __tablename__ = 'orders'

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False)
    # ORD-YYYYMMDD-XXXXXX, the unique index is the final guard against collisions
    order_number = Column(String(32), nullable=False, unique=True)
    status = Column(SQLEnum(OrderStatus), nullable=False, default=OrderStatus.PENDING)
    total_amount = Column(Numeric(10, 2), nullable=False)
    shipping_address = Column(Text, nullable=False)
    payment_method = Column(SQLEnum(PaymentMethod), nullable=False)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)
    cancelled_at = Column(DateTime, nullable=True)

    __table_args__ = (
        CheckConstraint('total_amount >= 0', name='check_order_total_amount_non_negative'),
        Index('ix_orders_user_created', 'user_id', 'created_at'),
        Index('ix_orders_status', 'status'),
    )


class OrderDTO(BaseModel):
    id: int | None = None
    user_id: int | None = None
    order_number: str | None = None
    status: OrderStatus | None = None
    total_amount: Decimal | None = None
    shipping_address: str | None = None
    payment_method: PaymentMethod | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    cancelled_at: datetime | None = None
    items: list[OrderItemDTO] = []
    payment: PaymentDTO | None = None

    @property
    def total_items(self) -> int:
        return sum(item.quantity for item in self.items)


class OrderResult(BaseModel):
    """
    Structured outcome of an order operation.

    Domain failures are reported here instead of raised, e.g.
    {success: False, error: "insufficient_stock", message: "..."}.
    """
    success: bool
    order: OrderDTO | None = None
    error: str | None = None
    message: str | None = None
    details: dict = {}
