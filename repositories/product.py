from datetime import datetime
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from db import session_execute, session_flush
from models.product import Product, ProductDTO


class ProductRepository:
    @staticmethod
    async def create(product_dto: ProductDTO, session: AsyncSession | Session) -> int:
        product = Product(**product_dto.model_dump(exclude_none=True))
        session.add(product)
        await session_flush(session)
        return product.id

    @staticmethod
    async def get_by_id(product_id: int, session: AsyncSession | Session) -> ProductDTO | None:
        stmt = select(Product).where(Product.id == product_id)
        product = await session_execute(stmt, session)
        product = product.scalar()
        if product is not None:
            return ProductDTO.model_validate(product, from_attributes=True)
        else:
            return None

    @staticmethod
    async def get_by_ids(product_ids: list[int], session: AsyncSession | Session) -> dict[int, ProductDTO]:
        """
        Batch load products in one query.

        Returns:
            Dict mapping product_id -> ProductDTO (missing ids are simply absent)
        """
        if not product_ids:
            return {}
        stmt = select(Product).where(Product.id.in_(product_ids))
        result = await session_execute(stmt, session)
        return {product.id: ProductDTO.model_validate(product, from_attributes=True)
                for product in result.scalars().all()}

    @staticmethod
    async def lock_for_update(product_id: int, session: AsyncSession | Session) -> ProductDTO | None:
        """
        SELECT ... FOR UPDATE on a single product row.

        populate_existing makes sure the returned values are the ones read
        under the lock and not a copy cached earlier in this session.
        On SQLite FOR UPDATE is not rendered; the transaction already holds
        the database write lock (BEGIN IMMEDIATE, see db.py).
        """
        stmt = (select(Product)
                .where(Product.id == product_id)
                .with_for_update()
                .execution_options(populate_existing=True))
        product = await session_execute(stmt, session)
        product = product.scalar()
        if product is not None:
            return ProductDTO.model_validate(product, from_attributes=True)
        else:
            return None

    @staticmethod
    async def decrement_stock(product_id: int, quantity: int, session: AsyncSession | Session) -> None:
        stmt = (update(Product)
                .where(Product.id == product_id)
                .values(stock_quantity=Product.stock_quantity - quantity,
                        updated_at=datetime.now()))
        await session_execute(stmt, session)

    @staticmethod
    async def increment_stock(product_id: int, quantity: int, session: AsyncSession | Session) -> None:
        stmt = (update(Product)
                .where(Product.id == product_id)
                .values(stock_quantity=Product.stock_quantity + quantity,
                        updated_at=datetime.now()))
        await session_execute(stmt, session)

    @staticmethod
    async def set_stock(product_id: int, quantity: int, session: AsyncSession | Session) -> None:
        stmt = (update(Product)
                .where(Product.id == product_id)
                .values(stock_quantity=quantity, updated_at=datetime.now()))
        await session_execute(stmt, session)

    @staticmethod
    async def update_price(product_id: int, price: Decimal, session: AsyncSession | Session) -> None:
        stmt = update(Product).where(Product.id == product_id).values(price=price, updated_at=datetime.now())
        await session_execute(stmt, session)

    @staticmethod
    async def set_suspended(product_id: int, is_suspended: bool, session: AsyncSession | Session) -> None:
        stmt = (update(Product)
                .where(Product.id == product_id)
                .values(is_suspended=is_suspended, updated_at=datetime.now()))
        await session_execute(stmt, session)

    @staticmethod
    async def soft_delete(product_id: int, session: AsyncSession | Session) -> None:
        # Rows are kept so order items keep a valid product reference
        stmt = (update(Product)
                .where(Product.id == product_id)
                .values(is_active=False, deleted_at=datetime.now(), updated_at=datetime.now()))
        await session_execute(stmt, session)
