from sqlalchemy import select, update, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush
from models.cartItem import CartItem, CartItemDTO


class CartItemRepository:
    @staticmethod
    async def create(cart_item: CartItemDTO, session: AsyncSession | Session) -> int:
        cart_item = CartItem(**cart_item.model_dump(exclude={'product_name', 'unit_price'}, exclude_none=True))
        session.add(cart_item)
        await session_flush(session)
        return cart_item.id

    @staticmethod
    async def get_by_id(cart_item_id: int, session: AsyncSession | Session) -> CartItemDTO | None:
        stmt = select(CartItem).where(CartItem.id == cart_item_id)
        cart_item = await session_execute(stmt, session)
        cart_item = cart_item.scalar()
        if cart_item is not None:
            return CartItemDTO.model_validate(cart_item, from_attributes=True)
        else:
            return None

    @staticmethod
    async def get_by_product(cart_id: int, product_id: int, session: AsyncSession | Session) -> CartItemDTO | None:
        stmt = select(CartItem).where(CartItem.cart_id == cart_id, CartItem.product_id == product_id)
        cart_item = await session_execute(stmt, session)
        cart_item = cart_item.scalar()
        if cart_item is not None:
            return CartItemDTO.model_validate(cart_item, from_attributes=True)
        else:
            return None

    @staticmethod
    async def update_quantity(cart_item_id: int, quantity: int, session: AsyncSession | Session) -> None:
        stmt = update(CartItem).where(CartItem.id == cart_item_id).values(quantity=quantity)
        await session_execute(stmt, session)

    @staticmethod
    async def remove_from_cart(cart_item_id: int, session: AsyncSession | Session) -> None:
        stmt = delete(CartItem).where(CartItem.id == cart_item_id)
        await session_execute(stmt, session)

    @staticmethod
    async def delete_by_cart_id(cart_id: int, session: AsyncSession | Session) -> None:
        stmt = delete(CartItem).where(CartItem.cart_id == cart_id)
        await session_execute(stmt, session)
