from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush
from enums.payment_status import PaymentStatus
from models.payment import Payment, PaymentDTO


class PaymentRepository:
    @staticmethod
    async def create(payment_dto: PaymentDTO, session: AsyncSession | Session) -> int:
        payment = Payment(**payment_dto.model_dump(exclude_none=True))
        session.add(payment)
        await session_flush(session)
        return payment.id

    @staticmethod
    async def get_by_id(payment_id: int, session: AsyncSession | Session) -> PaymentDTO | None:
        stmt = select(Payment).where(Payment.id == payment_id)
        payment = await session_execute(stmt, session)
        payment = payment.scalar()
        if payment is not None:
            return PaymentDTO.model_validate(payment, from_attributes=True)
        else:
            return None

    @staticmethod
    async def get_by_order_id(order_id: int, session: AsyncSession | Session) -> PaymentDTO | None:
        stmt = select(Payment).where(Payment.order_id == order_id)
        payment = await session_execute(stmt, session)
        payment = payment.scalar()
        if payment is not None:
            return PaymentDTO.model_validate(payment, from_attributes=True)
        else:
            return None

    @staticmethod
    async def update_status(payment_id: int, status: PaymentStatus, session: AsyncSession | Session,
                            transaction_id: str | None = None) -> None:
        values = {'status': status, 'updated_at': datetime.now()}
        if transaction_id is not None:
            values['transaction_id'] = transaction_id
        stmt = update(Payment).where(Payment.id == payment_id).values(**values)
        await session_execute(stmt, session)
