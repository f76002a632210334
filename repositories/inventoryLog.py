from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush
from enums.inventory_action import InventoryAction
from models.inventoryLog import InventoryLog, InventoryLogDTO


class InventoryLogRepository:
    @staticmethod
    async def create(inventory_log_dto: InventoryLogDTO, session: AsyncSession | Session) -> int:
        inventory_log = InventoryLog(**inventory_log_dto.model_dump(exclude_none=True))
        session.add(inventory_log)
        await session_flush(session)
        return inventory_log.id

    @staticmethod
    async def get_by_product_id(product_id: int, session: AsyncSession | Session,
                                action_type: InventoryAction | None = None,
                                limit: int = 50) -> list[InventoryLogDTO]:
        """Newest first."""
        stmt = select(InventoryLog).where(InventoryLog.product_id == product_id)
        if action_type is not None:
            stmt = stmt.where(InventoryLog.action_type == action_type)
        stmt = stmt.order_by(InventoryLog.id.desc()).limit(limit)
        inventory_logs = await session_execute(stmt, session)
        return [InventoryLogDTO.model_validate(inventory_log, from_attributes=True)
                for inventory_log in inventory_logs.scalars().all()]

    @staticmethod
    async def get_by_order_id(order_id: int, session: AsyncSession | Session) -> list[InventoryLogDTO]:
        stmt = select(InventoryLog).where(InventoryLog.order_id == order_id).order_by(InventoryLog.id)
        inventory_logs = await session_execute(stmt, session)
        return [InventoryLogDTO.model_validate(inventory_log, from_attributes=True)
                for inventory_log in inventory_logs.scalars().all()]
