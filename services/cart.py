import logging

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_commit
from exceptions.cart import (
    EmptyCartException,
    CartItemNotFoundException,
    InvalidCartStateException,
    InvalidQuantityException
)
from exceptions.base import StorefrontException
from exceptions.order import InsufficientStockException
from exceptions.product import ProductNotFoundException, ProductUnavailableException
from models.cart import CartDTO, CartValidationResult
from models.cartItem import CartItemDTO
from models.product import ProductDTO
from repositories.cart import CartRepository
from repositories.cartItem import CartItemRepository
from repositories.product import ProductRepository

logger = logging.getLogger(__name__)


class CartService:
    """
    Cart operations for the current user.

    Mutators raise typed exceptions to the caller and commit on success.
    They lock the user's active cart row, the same lock checkout takes, and
    are meant to run in a writer session (get_db_session(writer=True)).
    Stock is checked but never reserved here, the authoritative check
    happens under lock at checkout.
    """

    @staticmethod
    async def get_or_create_cart(user_id: int, session: AsyncSession | Session) -> CartDTO:
        cart = await CartRepository.get_or_create(user_id, session)
        await session_commit(session)
        return cart

    @staticmethod
    async def get_cart(user_id: int, session: AsyncSession | Session) -> CartDTO:
        """Active cart with its items (current product names and prices)."""
        cart = await CartService.get_or_create_cart(user_id, session)
        items = await CartRepository.get_items(cart.id, session)
        return cart.model_copy(update={'items': items})

    @staticmethod
    async def add_item(user_id: int, product_id: int, quantity: int,
                       session: AsyncSession | Session) -> CartDTO:
        """
        Add a product to the active cart, merging with an existing line.

        Raises:
            InvalidQuantityException: quantity < 1
            ProductNotFoundException: unknown product
            ProductUnavailableException: inactive, suspended or deleted product
            InsufficientStockException: resulting quantity exceeds current stock
        """
        if quantity < 1:
            raise InvalidQuantityException(quantity, "quantity must be positive")

        cart = await CartService._lock_active_cart(user_id, session)
        product = await ProductRepository.get_by_id(product_id, session)
        if product is None:
            raise ProductNotFoundException(product_id)
        if not product.is_sellable:
            raise ProductUnavailableException(product.id, product.name)

        existing = await CartItemRepository.get_by_product(cart.id, product_id, session)
        new_quantity = quantity + (existing.quantity if existing else 0)
        if not product.has_sufficient_stock(new_quantity):
            raise InsufficientStockException(product.id, product.name, new_quantity, product.stock_quantity)

        if existing is None:
            await CartItemRepository.create(
                CartItemDTO(cart_id=cart.id, product_id=product_id, quantity=quantity), session
            )
        else:
            await CartItemRepository.update_quantity(existing.id, new_quantity, session)
        await session_commit(session)
        logger.info(f"User {user_id} added product {product_id} x{quantity} to cart {cart.id}")
        return await CartService.get_cart(user_id, session)

    @staticmethod
    async def update_item(user_id: int, cart_item_id: int, quantity: int,
                          session: AsyncSession | Session) -> CartDTO:
        """Set the quantity of a cart line. A quantity of 0 removes the line."""
        if quantity < 0:
            raise InvalidQuantityException(quantity, "quantity cannot be negative")

        _, cart_item = await CartService._get_own_item(user_id, cart_item_id, session)
        if quantity == 0:
            await CartItemRepository.remove_from_cart(cart_item.id, session)
        else:
            product = await ProductRepository.get_by_id(cart_item.product_id, session)
            if not product.has_sufficient_stock(quantity):
                raise InsufficientStockException(product.id, product.name, quantity, product.stock_quantity)
            await CartItemRepository.update_quantity(cart_item.id, quantity, session)
        await session_commit(session)
        return await CartService.get_cart(user_id, session)

    @staticmethod
    async def remove_item(user_id: int, cart_item_id: int, session: AsyncSession | Session) -> CartDTO:
        _, cart_item = await CartService._get_own_item(user_id, cart_item_id, session)
        await CartItemRepository.remove_from_cart(cart_item.id, session)
        await session_commit(session)
        return await CartService.get_cart(user_id, session)

    @staticmethod
    async def clear_cart(user_id: int, session: AsyncSession | Session) -> CartDTO:
        cart = await CartService._lock_active_cart(user_id, session)
        await CartItemRepository.delete_by_cart_id(cart.id, session)
        await session_commit(session)
        return cart.model_copy(update={'items': []})

    @staticmethod
    async def validate_cart(user_id: int, session: AsyncSession | Session) -> CartValidationResult:
        """
        Advisory pre-checkout check against current (unlocked) stock.

        Returns valid=False with the first problem found: empty cart,
        unavailable product or insufficient stock.
        """
        cart = await CartService.get_cart(user_id, session)
        products = await ProductRepository.get_by_ids([item.product_id for item in cart.items], session)
        try:
            CartService.ensure_checkout_ready(cart, products)
        except StorefrontException as e:
            return CartValidationResult(valid=False, error=e.error_code, message=e.message, details=e.details)
        return CartValidationResult(valid=True)

    @staticmethod
    def ensure_checkout_ready(cart: CartDTO, products: dict[int, ProductDTO]) -> None:
        """
        Raising variant of validate_cart.

        Called by the order processor twice: before the transaction with
        unlocked reads, and again with the rows read under lock.

        Raises:
            EmptyCartException
            ProductUnavailableException
            InsufficientStockException
        """
        if cart.is_empty:
            raise EmptyCartException(cart.user_id)

        for item in cart.items:
            product = products.get(item.product_id)
            if product is None or not product.is_sellable:
                raise ProductUnavailableException(
                    item.product_id, product.name if product else item.product_name
                )
            if not product.has_sufficient_stock(item.quantity):
                raise InsufficientStockException(product.id, product.name, item.quantity, product.stock_quantity)

    @staticmethod
    def _ensure_active(cart: CartDTO) -> None:
        if not cart.is_active:
            raise InvalidCartStateException(cart.id, f"cart is {cart.status.value}")

    @staticmethod
    async def _lock_active_cart(user_id: int, session: AsyncSession | Session) -> CartDTO:
        # Same row lock as checkout, so an edit never lands in a cart being checked out
        cart = await CartRepository.get_or_create_for_update(user_id, session)
        CartService._ensure_active(cart)
        return cart

    @staticmethod
    async def _get_own_item(user_id: int, cart_item_id: int,
                            session: AsyncSession | Session) -> tuple[CartDTO, CartItemDTO]:
        cart = await CartService._lock_active_cart(user_id, session)
        cart_item = await CartItemRepository.get_by_id(cart_item_id, session)
        # Items of other carts are reported as missing
        if cart_item is None or cart_item.cart_id != cart.id:
            raise CartItemNotFoundException(cart_item_id)
        return cart, cart_item
