from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, CheckConstraint, Index, Enum as SQLEnum

from enums.inventory_action import InventoryAction
from models.base import Base


# Append-only history of Product.stock_quantity. Every entry is written in the
# same transaction as the stock change it records, while the product row is locked.
class InventoryLog(Base):
    __tablename__ = 'inventory_logs'

    __table_args__ = (
        CheckConstraint('quantity_before >= 0', name='ck_inventory_log_before_non_negative'),
        CheckConstraint('quantity_after >= 0', name='ck_inventory_log_after_non_negative'),
        Index('ix_inventory_logs_product_id', 'product_id'),
        Index('ix_inventory_logs_action_type', 'action_type'),
        Index('ix_inventory_logs_created_at', 'created_at'),
    )

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey('products.id'), nullable=False)
    order_id = Column(Integer, ForeignKey('orders.id'), nullable=True)
    quantity_before = Column(Integer, nullable=False)
    quantity_after = Column(Integer, nullable=False)
    action_type = Column(SQLEnum(InventoryAction), nullable=False)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.now)


class InventoryLogDTO(BaseModel):
    id: int | None = None
    product_id: int | None = None
    order_id: int | None = None
    quantity_before: int | None = None
    quantity_after: int | None = None
    action_type: InventoryAction | None = None
    notes: str | None = None
    created_at: datetime | None = None

    @property
    def quantity_change(self) -> int:
        return (self.quantity_after or 0) - (self.quantity_before or 0)
