"""
Pytest configuration and fixtures for tests.

This file is automatically loaded by pytest and provides shared fixtures
and configuration for all tests.
"""

import sys
import os
from decimal import Decimal

import pytest
import pytest_asyncio
from fakeredis import FakeAsyncRedis

# Add parent directory to Python path so tests can import modules
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

# Settings must be in place before config is imported anywhere
os.environ.setdefault("DB_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("LOCK_TIMEOUT_SECONDS", "5")
os.environ.setdefault("LOCK_RETRY_ATTEMPTS", "1")
os.environ.setdefault("CARD_PAYMENT_SUCCESS_RATE", "0.95")
os.environ.setdefault("PAYMENT_AMOUNT_TOLERANCE", "0.01")
os.environ.setdefault("SESSION_TTL_SECONDS", "3600")
os.environ.setdefault("LOG_LEVEL", "INFO")

from models.product import ProductDTO
from models.user import UserDTO
from services.payment import MockPaymentGateway


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def database(tmp_path):
    """
    File-backed SQLite database per test.

    A file (not :memory:) is used so that concurrent sessions see the same
    database and BEGIN IMMEDIATE locking is exercised.
    """
    import db

    db.init_engine(f"sqlite+aiosqlite:///{tmp_path / 'storefront_test.db'}")
    await db.create_db_and_tables()

    yield db

    await db.dispose_engine()


@pytest_asyncio.fixture
async def make_user(database):
    """Factory: create a user, returns its id."""
    from repositories.user import UserRepository

    counter = {'n': 0}

    async def _make_user(name: str = "Test User") -> int:
        counter['n'] += 1
        async with database.get_db_session() as session:
            user_id = await UserRepository.create(
                UserDTO(email=f"user{counter['n']}@example.com", name=name), session
            )
            await session.commit()
        return user_id

    return _make_user


@pytest_asyncio.fixture
async def make_product(database):
    """Factory: create a product, returns its id."""
    from repositories.product import ProductRepository

    async def _make_product(name: str = "Product", price: str = "10.00", stock: int = 100,
                            **flags) -> int:
        async with database.get_db_session() as session:
            product_id = await ProductRepository.create(
                ProductDTO(name=name, description=f"{name} description", price=Decimal(price),
                           stock_quantity=stock, **flags),
                session
            )
            await session.commit()
        return product_id

    return _make_product


@pytest_asyncio.fixture
async def fill_cart(database):
    """Factory: put products into a user's active cart, {product_id: quantity}."""
    from services.cart import CartService

    async def _fill_cart(user_id: int, lines: dict[int, int]):
        async with database.get_db_session(writer=True) as session:
            cart = None
            for product_id, quantity in lines.items():
                cart = await CartService.add_item(user_id, product_id, quantity, session)
        return cart

    return _fill_cart


@pytest_asyncio.fixture
async def get_product(database):
    """Factory: read a product in a short-lived session."""
    from repositories.product import ProductRepository

    async def _get_product(product_id: int) -> ProductDTO:
        async with database.get_db_session() as session:
            return await ProductRepository.get_by_id(product_id, session)

    return _get_product


@pytest_asyncio.fixture
async def count_rows(database):
    """Factory: count rows of a model."""
    from sqlalchemy import select, func

    async def _count_rows(model) -> int:
        async with database.get_db_session() as session:
            result = await session.execute(select(func.count()).select_from(model))
            return result.scalar_one()

    return _count_rows


@pytest_asyncio.fixture
async def get_cart(database):
    """Factory: read the user's most recent cart (any status) with items."""
    from sqlalchemy import select
    from models.cart import Cart, CartDTO
    from repositories.cart import CartRepository

    async def _get_cart(user_id: int) -> CartDTO | None:
        async with database.get_db_session() as session:
            result = await session.execute(
                select(Cart).where(Cart.user_id == user_id).order_by(Cart.id.desc()).limit(1)
            )
            cart = result.scalar()
            if cart is None:
                return None
            cart = CartDTO.model_validate(cart, from_attributes=True)
            items = await CartRepository.get_items(cart.id, session)
            return cart.model_copy(update={'items': items})

    return _get_cart


# ============================================================================
# Payment Fixtures
# ============================================================================

@pytest.fixture
def approving_gateway():
    """Gateway that accepts every charge."""
    return MockPaymentGateway(success_rate=1.0)


@pytest.fixture
def declining_gateway():
    """Gateway that declines every card charge."""
    return MockPaymentGateway(success_rate=0.0)


# ============================================================================
# Redis Fixtures
# ============================================================================

@pytest_asyncio.fixture
async def redis_client():
    """Create fake Redis client for testing (no real Redis server needed)."""
    client = FakeAsyncRedis(decode_responses=True)
    yield client
    await client.aclose()
