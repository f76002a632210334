"""
Integration Tests: concurrent checkouts against shared inventory

Every checkout runs in its own task and session; only the database
locking protocol keeps them from overselling.
"""

import asyncio

import pytest
from sqlalchemy import select, func

from enums.cart_status import CartStatus
from models.cart import Cart
from models.cartItem import CartItem
from models.order import Order
from services.cart import CartService
from services.order import OrderService


class TestNoOversell:

    @pytest.mark.asyncio
    async def test_concurrent_checkouts_sell_at_most_stock(self, make_user, make_product, fill_cart,
                                                           get_product, count_rows, approving_gateway):
        """Stock N=10, K=8 buyers of Q=3 each: exactly floor(10/3)=3 succeed, 1 unit left."""
        stock, quantity, buyers = 10, 3, 8
        product_id = await make_product(name="Limited", stock=stock)
        user_ids = [await make_user(f"Buyer {n}") for n in range(buyers)]
        for user_id in user_ids:
            await fill_cart(user_id, {product_id: quantity})

        results = await asyncio.gather(*(
            OrderService.place_order(user_id, f"{user_id} Main St", gateway=approving_gateway)
            for user_id in user_ids
        ))

        succeeded = [result for result in results if result.success]
        failed = [result for result in results if not result.success]
        assert len(succeeded) == stock // quantity
        assert {result.error for result in failed} == {"insufficient_stock"}
        assert (await get_product(product_id)).stock_quantity == stock - len(succeeded) * quantity
        assert await count_rows(Order) == len(succeeded)
        assert len({result.order.order_number for result in succeeded}) == len(succeeded)

    @pytest.mark.asyncio
    async def test_products_locked_in_any_cart_order(self, make_user, make_product, fill_cart,
                                                     get_product, approving_gateway):
        """Two carts with the same products added in opposite order both go through."""
        first = await make_product(name="First", stock=10)
        second = await make_product(name="Second", stock=10)
        alice = await make_user("Alice")
        bob = await make_user("Bob")
        await fill_cart(alice, {first: 1, second: 1})
        await fill_cart(bob, {second: 1, first: 1})

        results = await asyncio.gather(
            OrderService.place_order(alice, "1 Main St", gateway=approving_gateway),
            OrderService.place_order(bob, "2 Main St", gateway=approving_gateway),
        )

        assert all(result.success for result in results)
        assert (await get_product(first)).stock_quantity == 8
        assert (await get_product(second)).stock_quantity == 8

    @pytest.mark.asyncio
    async def test_same_cart_checked_out_once(self, make_user, make_product, fill_cart, get_product,
                                              get_cart, approving_gateway):
        """A double submit of the same cart produces one order."""
        user_id = await make_user()
        product_id = await make_product(stock=10)
        await fill_cart(user_id, {product_id: 2})

        results = await asyncio.gather(
            OrderService.place_order(user_id, "1 Main St", gateway=approving_gateway),
            OrderService.place_order(user_id, "1 Main St", gateway=approving_gateway),
        )

        assert sorted(result.success for result in results) == [False, True]
        assert next(result for result in results if not result.success).error == "empty_cart"
        assert (await get_product(product_id)).stock_quantity == 8
        assert (await get_cart(user_id)).status == CartStatus.CHECKED_OUT


class TestCartEditDuringCheckout:

    @pytest.mark.asyncio
    async def test_added_item_never_lands_in_checked_out_cart(self, database, make_user, make_product,
                                                               fill_cart, approving_gateway):
        """The edit goes either into the order or into a fresh active cart."""
        user_id = await make_user()
        desk = await make_product(name="Desk", stock=10)
        lamp = await make_product(name="Lamp", stock=10)
        await fill_cart(user_id, {desk: 1})

        async def add_lamp():
            async with database.get_db_session(writer=True) as session:
                return await CartService.add_item(user_id, lamp, 1, session)

        placed, _ = await asyncio.gather(
            OrderService.place_order(user_id, "1 Main St", gateway=approving_gateway),
            add_lamp(),
        )

        assert placed.success is True
        async with database.get_db_session() as session:
            result = await session.execute(
                select(func.count())
                .select_from(CartItem)
                .join(Cart, Cart.id == CartItem.cart_id)
                .where(Cart.status == CartStatus.CHECKED_OUT)
            )
            assert result.scalar_one() == 0

        async with database.get_db_session(writer=True) as session:
            active_cart = await CartService.get_cart(user_id, session)
        lamp_ordered = any(item.product_id == lamp for item in placed.order.items)
        lamp_in_cart = any(item.product_id == lamp for item in active_cart.items)
        assert lamp_ordered != lamp_in_cart
