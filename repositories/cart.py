from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush
from enums.cart_status import CartStatus
from models.cart import Cart, CartDTO
from models.cartItem import CartItem, CartItemDTO
from models.product import Product


class CartRepository:
    @staticmethod
    async def get_active(user_id: int, session: AsyncSession | Session) -> CartDTO | None:
        stmt = (select(Cart)
                .where(Cart.user_id == user_id, Cart.status == CartStatus.ACTIVE)
                .order_by(Cart.id.desc())
                .limit(1))
        cart = await session_execute(stmt, session)
        cart = cart.scalar()
        if cart is not None:
            return CartDTO.model_validate(cart, from_attributes=True)
        else:
            return None

    @staticmethod
    async def get_active_for_update(user_id: int, session: AsyncSession | Session) -> CartDTO | None:
        """
        Lock the user's active cart row.

        Two checkouts of the same cart serialize here; the second one sees the
        cart as checked out and finds no active cart.
        """
        stmt = (select(Cart)
                .where(Cart.user_id == user_id, Cart.status == CartStatus.ACTIVE)
                .order_by(Cart.id.desc())
                .limit(1)
                .with_for_update()
                .execution_options(populate_existing=True))
        cart = await session_execute(stmt, session)
        cart = cart.scalar()
        if cart is not None:
            return CartDTO.model_validate(cart, from_attributes=True)
        else:
            return None

    @staticmethod
    async def get_or_create(user_id: int, session: AsyncSession | Session) -> CartDTO:
        cart = await CartRepository.get_active(user_id, session)
        if cart is None:
            cart = Cart(user_id=user_id, status=CartStatus.ACTIVE)
            session.add(cart)
            await session_flush(session)
            return CartDTO.model_validate(cart, from_attributes=True)
        else:
            return cart

    @staticmethod
    async def get_or_create_for_update(user_id: int, session: AsyncSession | Session) -> CartDTO:
        """
        Locked active cart for an edit. A cart checked out while the edit
        was waiting for the lock no longer matches, so a fresh cart is opened.
        """
        cart = await CartRepository.get_active_for_update(user_id, session)
        if cart is None:
            cart = Cart(user_id=user_id, status=CartStatus.ACTIVE)
            session.add(cart)
            await session_flush(session)
            return CartDTO.model_validate(cart, from_attributes=True)
        else:
            return cart

    @staticmethod
    async def get_items(cart_id: int, session: AsyncSession | Session) -> list[CartItemDTO]:
        """
        Cart lines joined with the product's current name and price, ordered
        by product id.
        """
        stmt = (select(CartItem, Product.name, Product.price)
                .join(Product, Product.id == CartItem.product_id)
                .where(CartItem.cart_id == cart_id)
                .order_by(CartItem.product_id))
        result = await session_execute(stmt, session)
        items = []
        for cart_item, product_name, price in result.all():
            item = CartItemDTO.model_validate(cart_item, from_attributes=True)
            items.append(item.model_copy(update={'product_name': product_name, 'unit_price': price}))
        return items

    @staticmethod
    async def mark_checked_out(cart_id: int, session: AsyncSession | Session) -> None:
        # Only an active cart can be checked out; a checked out cart is never reactivated
        stmt = (update(Cart)
                .where(Cart.id == cart_id, Cart.status == CartStatus.ACTIVE)
                .values(status=CartStatus.CHECKED_OUT,
                        checked_out_at=datetime.now(),
                        updated_at=datetime.now()))
        await session_execute(stmt, session)
