import logging
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

import config
from db import get_db_session
from enums.order_status import OrderStatus
from enums.payment_method import PaymentMethod
from enums.payment_status import PaymentStatus
from exceptions.base import StorefrontException
from exceptions.cart import EmptyCartException
from exceptions.order import OrderNotFoundException, OrderOwnershipException
from exceptions.payment import InvalidPaymentMethodException
from exceptions.shipping import InvalidShippingAddressException
from models.order import OrderDTO, OrderResult
from models.orderItem import OrderItemDTO
from repositories.cart import CartRepository
from repositories.cartItem import CartItemRepository
from repositories.order import OrderRepository
from repositories.orderItem import OrderItemRepository
from repositories.payment import PaymentRepository
from repositories.product import ProductRepository
from services.cart import CartService
from services.inventory import InventoryService
from services.payment import MockPaymentGateway, PaymentService
from utils.order_number import generate_order_number
from utils.order_state_machine import OrderStateMachine
from utils.transaction_manager import TransactionManager, TransactionRetryExhausted

logger = logging.getLogger(__name__)

ORDER_PROCESSING_FAILED = "order_processing_failed"
ORDER_PROCESSING_FAILED_MESSAGE = "Order processing failed. Please try again."


class OrderService:

    @staticmethod
    async def place_order(
        user_id: int,
        shipping_address: str,
        payment_method: str | PaymentMethod | None = None,
        gateway: MockPaymentGateway | None = None
    ) -> OrderResult:
        """
        Turn the user's active cart into an order.

        Flow:
        1. Advisory cart validation, shipping address and payment method
           checks (no transaction opened)
        2. One transaction: lock cart, lock products (ascending id), re-check
           stock, create order + items snapshot, deduct stock, charge,
           check out the cart
        3. Lock timeouts and order number collisions retry the whole
           transaction (LOCK_RETRY_ATTEMPTS)

        Domain failures are returned as OrderResult(success=False, error=<code>),
        the cart is left untouched and nothing of the attempt is persisted.

        Args:
            user_id: Authenticated user placing the order
            shipping_address: Free-form address, must not be blank
            payment_method: One of PaymentMethod (default DEFAULT_PAYMENT_METHOD)
            gateway: Payment gateway (default MockPaymentGateway())

        Returns:
            OrderResult with the created order (items and payment loaded)
        """
        gateway = gateway or MockPaymentGateway()
        try:
            await OrderService._precheck_cart(user_id)
            shipping_address = OrderService._validate_shipping_address(shipping_address)
            method = OrderService._validate_payment_method(payment_method)

            order = await OrderService._checkout(user_id, shipping_address, method, gateway)
            logger.info(f"Order {order.order_number} placed by user {user_id}: "
                        f"{order.total_items} items, total {order.total_amount}")
            return OrderResult(success=True, order=order, message="Order placed successfully")

        except StorefrontException as e:
            logger.info(f"Order placement for user {user_id} rejected ({e.error_code}): {e.message}")
            return OrderResult(success=False, error=e.error_code, message=e.message, details=e.details)
        except TransactionRetryExhausted as e:
            logger.error(f"Order placement for user {user_id} gave up: {e.last_exception}")
            return OrderResult(success=False, error=ORDER_PROCESSING_FAILED, message=ORDER_PROCESSING_FAILED_MESSAGE)
        except Exception as e:
            logger.exception(f"Order processing failed for user {user_id}: {e}")
            return OrderResult(success=False, error=ORDER_PROCESSING_FAILED, message=ORDER_PROCESSING_FAILED_MESSAGE)

    @staticmethod
    async def _precheck_cart(user_id: int) -> None:
        async with get_db_session() as session:
            cart = await CartRepository.get_active(user_id, session)
            if cart is None:
                raise EmptyCartException(user_id)
            items = await CartRepository.get_items(cart.id, session)
            cart = cart.model_copy(update={'items': items})
            products = await ProductRepository.get_by_ids([item.product_id for item in items], session)
        CartService.ensure_checkout_ready(cart, products)

    @staticmethod
    def _validate_shipping_address(shipping_address: str | None) -> str:
        if shipping_address is None or not shipping_address.strip():
            raise InvalidShippingAddressException("shipping address is required")
        return shipping_address.strip()

    @staticmethod
    def _validate_payment_method(payment_method: str | PaymentMethod | None) -> PaymentMethod:
        payment_method = payment_method or config.DEFAULT_PAYMENT_METHOD
        try:
            return PaymentMethod.from_string(payment_method)
        except ValueError:
            raise InvalidPaymentMethodException(str(payment_method))

    @staticmethod
    @TransactionManager.with_retry()
    async def _checkout(user_id: int, shipping_address: str, payment_method: PaymentMethod,
                        gateway: MockPaymentGateway) -> OrderDTO:
        async with TransactionManager.atomic_transaction() as session:
            # Cart first: a concurrent checkout of the same cart waits here and
            # then finds no active cart
            cart = await CartRepository.get_active_for_update(user_id, session)
            if cart is None:
                raise EmptyCartException(user_id)
            items = await CartRepository.get_items(cart.id, session)
            cart = cart.model_copy(update={'items': items})
            if cart.is_empty:
                raise EmptyCartException(user_id)

            products = await InventoryService.lock_products([item.product_id for item in items], session)
            CartService.ensure_checkout_ready(cart, products)

            order_number = await generate_order_number(
                lambda candidate: OrderRepository.exists_by_order_number(candidate, session)
            )
            # Name and price are copied from the locked rows, later catalog changes don't touch the order
            order_items = [
                OrderItemDTO(
                    product_id=item.product_id,
                    product_name=products[item.product_id].name,
                    quantity=item.quantity,
                    price_at_purchase=products[item.product_id].price
                )
                for item in items
            ]
            total_amount = sum((order_item.subtotal for order_item in order_items), Decimal("0.00"))

            order_id = await OrderRepository.create(OrderDTO(
                user_id=user_id,
                order_number=order_number,
                status=OrderStatus.PENDING,
                total_amount=total_amount,
                shipping_address=shipping_address,
                payment_method=payment_method
            ), session)
            await OrderItemRepository.create_many(
                [order_item.model_copy(update={'order_id': order_id}) for order_item in order_items], session
            )

            for item in items:
                await InventoryService.deduct_stock(products[item.product_id], item.quantity, session,
                                                    order_id=order_id, notes=f"Order {order_number}")

            order = await OrderRepository.get_by_id(order_id, session)
            await PaymentService.process_payment(order, session, gateway)

            await CartItemRepository.delete_by_cart_id(cart.id, session)
            await CartRepository.mark_checked_out(cart.id, session)

            return await OrderService._load_order(order_id, session)

    @staticmethod
    async def cancel_order(order_id: int, user_id: int | None = None,
                           gateway: MockPaymentGateway | None = None) -> OrderResult:
        """
        Cancel a pending or processing order.

        Restores stock of every order line (under lock) and refunds a
        completed payment. Completed and cancelled orders are rejected with
        invalid_state_transition and left unchanged.

        Args:
            order_id: Order to cancel
            user_id: Requesting user, must own the order (None for system/admin)
            gateway: Payment gateway used for the refund
        """
        gateway = gateway or MockPaymentGateway()
        try:
            order = await OrderService._cancel(order_id, user_id, gateway)
            logger.info(f"Order {order.order_number} cancelled")
            return OrderResult(success=True, order=order, message="Order cancelled")
        except StorefrontException as e:
            logger.info(f"Cancellation of order {order_id} rejected ({e.error_code}): {e.message}")
            return OrderResult(success=False, error=e.error_code, message=e.message, details=e.details)
        except TransactionRetryExhausted as e:
            logger.error(f"Cancellation of order {order_id} gave up: {e.last_exception}")
            return OrderResult(success=False, error=ORDER_PROCESSING_FAILED, message=ORDER_PROCESSING_FAILED_MESSAGE)
        except Exception as e:
            logger.exception(f"Cancellation of order {order_id} failed: {e}")
            return OrderResult(success=False, error=ORDER_PROCESSING_FAILED, message=ORDER_PROCESSING_FAILED_MESSAGE)

    @staticmethod
    @TransactionManager.with_retry()
    async def _cancel(order_id: int, user_id: int | None, gateway: MockPaymentGateway) -> OrderDTO:
        async with TransactionManager.atomic_transaction() as session:
            order = await OrderService._lock_own_order(order_id, user_id, session)
            OrderStateMachine.validate_transition(order.id, order.status, OrderStatus.CANCELLED, user_id)

            order_items = await OrderItemRepository.get_by_order_id(order.id, session)
            products = await InventoryService.lock_products([item.product_id for item in order_items], session)
            for item in order_items:
                products[item.product_id] = await InventoryService.restore_stock(
                    products[item.product_id], item.quantity, session,
                    order_id=order.id, notes=f"Order {order.order_number} cancelled"
                )

            payment = await PaymentRepository.get_by_order_id(order.id, session)
            if payment is not None and payment.status == PaymentStatus.COMPLETED:
                await PaymentService.refund(order.id, session, gateway)

            await OrderRepository.update_status(order.id, OrderStatus.CANCELLED, session)
            return await OrderService._load_order(order.id, session)

    @staticmethod
    async def complete_order(order_id: int) -> OrderResult:
        """Mark a processing (paid) order as completed."""
        try:
            order = await OrderService._complete(order_id)
            logger.info(f"Order {order.order_number} completed")
            return OrderResult(success=True, order=order, message="Order completed")
        except StorefrontException as e:
            logger.info(f"Completion of order {order_id} rejected ({e.error_code}): {e.message}")
            return OrderResult(success=False, error=e.error_code, message=e.message, details=e.details)
        except TransactionRetryExhausted as e:
            logger.error(f"Completion of order {order_id} gave up: {e.last_exception}")
            return OrderResult(success=False, error=ORDER_PROCESSING_FAILED, message=ORDER_PROCESSING_FAILED_MESSAGE)
        except Exception as e:
            logger.exception(f"Completion of order {order_id} failed: {e}")
            return OrderResult(success=False, error=ORDER_PROCESSING_FAILED, message=ORDER_PROCESSING_FAILED_MESSAGE)

    @staticmethod
    @TransactionManager.with_retry()
    async def _complete(order_id: int) -> OrderDTO:
        async with TransactionManager.atomic_transaction() as session:
            order = await OrderService._lock_own_order(order_id, None, session)
            OrderStateMachine.validate_transition(order.id, order.status, OrderStatus.COMPLETED)
            await OrderRepository.update_status(order.id, OrderStatus.COMPLETED, session)
            return await OrderService._load_order(order.id, session)

    @staticmethod
    async def get_order(order_id: int, user_id: int) -> OrderDTO:
        """
        Raises:
            OrderNotFoundException
            OrderOwnershipException: order belongs to another user
        """
        async with get_db_session() as session:
            order = await OrderRepository.get_by_id(order_id, session)
            if order is None:
                raise OrderNotFoundException(order_id)
            if order.user_id != user_id:
                raise OrderOwnershipException(order_id, user_id)
            return await OrderService._load_order(order_id, session)

    @staticmethod
    async def list_orders(user_id: int, limit: int | None = None) -> list[OrderDTO]:
        """Orders of a user, newest first."""
        async with get_db_session() as session:
            orders = await OrderRepository.get_by_user_id(user_id, session, limit=limit)
            return [await OrderService._load_order(order.id, session) for order in orders]

    @staticmethod
    async def _lock_own_order(order_id: int, user_id: int | None, session: AsyncSession | Session) -> OrderDTO:
        order = await OrderRepository.get_for_update(order_id, session)
        if order is None:
            raise OrderNotFoundException(order_id)
        if user_id is not None and order.user_id != user_id:
            raise OrderOwnershipException(order_id, user_id)
        return order

    @staticmethod
    async def _load_order(order_id: int, session: AsyncSession | Session) -> OrderDTO:
        order = await OrderRepository.get_by_id(order_id, session)
        items = await OrderItemRepository.get_by_order_id(order_id, session)
        payment = await PaymentRepository.get_by_order_id(order_id, session)
        return order.model_copy(update={'items': items, 'payment': payment})
