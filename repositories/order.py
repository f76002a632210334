from datetime import datetime

from sqlalchemy import select, update, exists
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush
from enums.order_status import OrderStatus
from models.order import Order, OrderDTO


class OrderRepository:
    @staticmethod
    async def create(order_dto: OrderDTO, session: AsyncSession | Session) -> int:
        order = Order(**order_dto.model_dump(exclude={'items', 'payment'}, exclude_none=True))
        session.add(order)
        await session_flush(session)
        return order.id

    @staticmethod
    async def get_by_id(order_id: int, session: AsyncSession | Session) -> OrderDTO | None:
        stmt = select(Order).where(Order.id == order_id)
        order = await session_execute(stmt, session)
        order = order.scalar()
        if order is not None:
            return OrderDTO.model_validate(order, from_attributes=True)
        else:
            return None

    @staticmethod
    async def get_for_update(order_id: int, session: AsyncSession | Session) -> OrderDTO | None:
        stmt = (select(Order)
                .where(Order.id == order_id)
                .with_for_update()
                .execution_options(populate_existing=True))
        order = await session_execute(stmt, session)
        order = order.scalar()
        if order is not None:
            return OrderDTO.model_validate(order, from_attributes=True)
        else:
            return None

    @staticmethod
    async def exists_by_order_number(order_number: str, session: AsyncSession | Session) -> bool:
        stmt = select(exists().where(Order.order_number == order_number))
        result = await session_execute(stmt, session)
        return bool(result.scalar())

    @staticmethod
    async def get_by_user_id(user_id: int, session: AsyncSession | Session,
                             limit: int | None = None) -> list[OrderDTO]:
        stmt = (select(Order)
                .where(Order.user_id == user_id)
                .order_by(Order.created_at.desc(), Order.id.desc()))
        if limit is not None:
            stmt = stmt.limit(limit)
        orders = await session_execute(stmt, session)
        return [OrderDTO.model_validate(order, from_attributes=True) for order in orders.scalars().all()]

    @staticmethod
    async def update_status(order_id: int, status: OrderStatus, session: AsyncSession | Session) -> None:
        values = {'status': status, 'updated_at': datetime.now()}
        if status == OrderStatus.CANCELLED:
            values['cancelled_at'] = datetime.now()
        stmt = update(Order).where(Order.id == order_id).values(**values)
        await session_execute(stmt, session)
