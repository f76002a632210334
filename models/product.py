from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel
from sqlalchemy import Column, Integer, String, Text, Numeric, Boolean, DateTime, CheckConstraint, Index

from models.base import Base


# stock_quantity is the single resource contended by concurrent checkouts.
# It is only changed while the row is locked (see services/inventory.py).
class Product(Base):
    __tablename__ = 'products'

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    price = Column(Numeric(10, 2), nullable=False)
    stock_quantity = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    is_suspended = Column(Boolean, nullable=False, default=False)
    deleted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)
    updated_at = Column(DateTime, nullable=False, default=datetime.now, onupdate=datetime.now)

    __table_args__ = (
        CheckConstraint('stock_quantity >= 0', name='check_stock_quantity_non_negative'),
        CheckConstraint('price >= 0', name='check_product_price_non_negative'),
        Index('ix_products_active_suspended', 'is_active', 'is_suspended'),
    )


class ProductDTO(BaseModel):
    id: int | None = None
    name: str | None = None
    description: str | None = None
    price: Decimal | None = None
    stock_quantity: int | None = None
    is_active: bool | None = None
    is_suspended: bool | None = None
    deleted_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_sellable(self) -> bool:
        """Active, not suspended and not soft-deleted. Says nothing about stock."""
        return bool(self.is_active) and not self.is_suspended and self.deleted_at is None

    def has_sufficient_stock(self, quantity: int) -> bool:
        return (self.stock_quantity or 0) >= quantity
