import logging
import random
import secrets
import time
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

import config
from enums.order_status import OrderStatus
from enums.payment_method import PaymentMethod
from enums.payment_status import PaymentStatus
from exceptions.payment import PaymentFailedException, InvalidPaymentAmountException, PaymentNotFoundException
from models.order import OrderDTO
from models.payment import PaymentDTO, PaymentResult
from repositories.order import OrderRepository
from repositories.payment import PaymentRepository
from utils.order_state_machine import OrderStateMachine, PaymentStateMachine

logger = logging.getLogger(__name__)


def generate_transaction_id() -> str:
    return f"TXN-{int(time.time())}-{secrets.token_hex(4).upper()}"


class MockPaymentGateway:
    """
    Simulated payment gateway.

    Card payments succeed with probability success_rate, PayPal and bank
    transfers always succeed. Pass rng (random.Random) for deterministic
    results.
    """

    def __init__(self, success_rate: float | None = None, rng: random.Random | None = None):
        self.success_rate = config.CARD_PAYMENT_SUCCESS_RATE if success_rate is None else success_rate
        self.rng = rng or random.Random()

    async def charge(self, payment_method: PaymentMethod, amount: Decimal) -> PaymentResult:
        if payment_method.is_card:
            if self.rng.random() < self.success_rate:
                return PaymentResult(success=True, transaction_id=generate_transaction_id(),
                                     message="Payment processed successfully")
            return PaymentResult(success=False, error="Card declined")
        if payment_method == PaymentMethod.PAYPAL:
            return PaymentResult(success=True, transaction_id=generate_transaction_id(),
                                 message="PayPal payment processed successfully")
        # Bank transfers are confirmed later by the bank, the mock accepts them immediately
        return PaymentResult(success=True, transaction_id=generate_transaction_id(),
                             message="Bank transfer initiated. Awaiting confirmation.")

    async def refund(self, transaction_id: str) -> PaymentResult:
        return PaymentResult(success=True, transaction_id=f"REFUND-{transaction_id}",
                             message="Refund processed successfully")

    async def verify(self, transaction_id: str) -> PaymentResult:
        return PaymentResult(success=True, transaction_id=transaction_id, message=PaymentStatus.COMPLETED.value)


class PaymentService:

    @staticmethod
    def validate_amount(expected: Decimal, received: Decimal) -> None:
        if abs(Decimal(expected) - Decimal(received)) > config.PAYMENT_AMOUNT_TOLERANCE:
            raise InvalidPaymentAmountException(expected, received)

    @staticmethod
    async def process_payment(
        order: OrderDTO,
        session: AsyncSession | Session,
        gateway: MockPaymentGateway,
        amount: Decimal | None = None
    ) -> PaymentDTO:
        """
        Charge the order total and advance payment and order state.

        Flow:
        1. Create payment record (pending)
        2. Validate amount against the order total
        3. Charge through the gateway
        4. Success: payment -> completed with transaction id, order -> processing
           Failure: payment -> failed, PaymentFailedException

        Must run inside the checkout transaction, a raised exception rolls
        back the order, the stock deduction and the payment record.

        Raises:
            InvalidPaymentAmountException: amount differs from the order total
            PaymentFailedException: gateway declined the charge
        """
        amount = order.total_amount if amount is None else amount
        PaymentService.validate_amount(order.total_amount, amount)

        payment_id = await PaymentRepository.create(PaymentDTO(
            order_id=order.id,
            payment_method=order.payment_method,
            amount=amount,
            status=PaymentStatus.PENDING
        ), session)

        result = await gateway.charge(order.payment_method, amount)

        if not result.success:
            PaymentStateMachine.validate_transition(payment_id, PaymentStatus.PENDING, PaymentStatus.FAILED)
            await PaymentRepository.update_status(payment_id, PaymentStatus.FAILED, session)
            logger.warning(f"Payment {payment_id} for order {order.order_number} failed: {result.error}")
            raise PaymentFailedException(order.order_number, result.error or "payment declined")

        PaymentStateMachine.validate_transition(payment_id, PaymentStatus.PENDING, PaymentStatus.COMPLETED)
        await PaymentRepository.update_status(payment_id, PaymentStatus.COMPLETED, session,
                                              transaction_id=result.transaction_id)
        OrderStateMachine.validate_transition(order.id, order.status, OrderStatus.PROCESSING, order.user_id)
        await OrderRepository.update_status(order.id, OrderStatus.PROCESSING, session)

        logger.info(f"Payment {payment_id} completed for order {order.order_number} "
                    f"({order.payment_method.value}, {amount}) txn {result.transaction_id}")
        return await PaymentRepository.get_by_id(payment_id, session)

    @staticmethod
    async def get_payment(order_id: int, session: AsyncSession | Session) -> PaymentDTO:
        payment = await PaymentRepository.get_by_order_id(order_id, session)
        if payment is None:
            raise PaymentNotFoundException(order_id)
        return payment

    @staticmethod
    async def refund(order_id: int, session: AsyncSession | Session, gateway: MockPaymentGateway) -> PaymentResult:
        """
        Refund the completed payment of an order (payment -> refunded).

        Raises:
            PaymentNotFoundException: order has no payment
            InvalidStateTransitionException: payment is not completed
        """
        payment = await PaymentService.get_payment(order_id, session)
        PaymentStateMachine.validate_transition(payment.id, payment.status, PaymentStatus.REFUNDED)

        result = await gateway.refund(payment.transaction_id)
        await PaymentRepository.update_status(payment.id, PaymentStatus.REFUNDED, session)
        logger.info(f"Payment {payment.id} of order {order_id} refunded, reference {result.transaction_id}")
        return result
