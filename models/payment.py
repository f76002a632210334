from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel
from sqlalchemy import Column, Integer, String, DateTime, Numeric, ForeignKey, CheckConstraint, Enum as SQLEnum

from enums.payment_method import PaymentMethod
from enums.payment_status import PaymentStatus
from models.base import Base


class Payment(Base):
    __tablename__ = 'payments'

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey('orders.id', ondelete='CASCADE'), nullable=False, unique=True)
    payment_method = Column(SQLEnum(PaymentMethod), nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    status = Column(SQLEnum(PaymentStatus), nullable=False, default=PaymentStatus.PENDING, index=True)
    transaction_id = Column(String(64), nullable=True, index=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    __table_args__ = (
        CheckConstraint('amount >= 0', name='check_payment_amount_non_negative'),
    )


class PaymentDTO(BaseModel):
    id: int | None = None
    order_id: int | None = None
    payment_method: PaymentMethod | None = None
    amount: Decimal | None = None
    status: PaymentStatus | None = None
    transaction_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class PaymentResult(BaseModel):
    """Outcome of a single gateway call."""
    success: bool
    transaction_id: str | None = None
    message: str | None = None
    error: str | None = None
