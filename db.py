from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncGenerator
import logging

from sqlalchemy import event, Result, CursorResult
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession, AsyncEngine

import config
from models.base import Base

"""
Imports of these models are needed to correctly create tables in the database.
For more information see https://stackoverflow.com/questions/7478403/sqlalchemy-classes-across-files
"""
from models.user import User
from models.product import Product
from models.cart import Cart
from models.cartItem import CartItem
from models.order import Order
from models.orderItem import OrderItem
from models.payment import Payment
from models.inventoryLog import InventoryLog

logger = logging.getLogger(__name__)

engine: AsyncEngine | None = None
session_maker: async_sessionmaker[AsyncSession] | None = None
writer_session_maker: async_sessionmaker[AsyncSession] | None = None

# Execution option carried by writer sessions, see get_db_session(writer=True)
BEGIN_IMMEDIATE = "begin_immediate"


def _install_sqlite_listeners(async_engine: AsyncEngine) -> None:
    """
    SQLite has no row-level locks. Writer sessions start their transaction
    with BEGIN IMMEDIATE, which takes the database write lock up front and
    serializes concurrent checkouts the same way SELECT ... FOR UPDATE does
    on a server database. Readers use a plain (deferred) BEGIN and are not
    queued behind writers. Waiting is bounded by the busy timeout.
    """

    @event.listens_for(async_engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        # Disable the driver's implicit BEGIN so ours is the only one
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.execute(f"PRAGMA busy_timeout = {config.LOCK_TIMEOUT_SECONDS * 1000}")
        cursor.close()

    @event.listens_for(async_engine.sync_engine, "begin")
    def do_begin(conn):
        if conn.get_execution_options().get(BEGIN_IMMEDIATE):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")


def init_engine(url: str | None = None, **engine_kwargs) -> AsyncEngine:
    """(Re)create the module-level engine and session factories."""
    global engine, session_maker, writer_session_maker

    url = url or config.DB_URL
    backend = make_url(url).get_backend_name()

    if backend == "sqlite":
        database = make_url(url).database
        if database and database != ":memory:":
            Path(database).parent.mkdir(parents=True, exist_ok=True)
        engine_kwargs.setdefault("connect_args", {"timeout": config.LOCK_TIMEOUT_SECONDS})

    engine = create_async_engine(url, echo=config.DB_ECHO, **engine_kwargs)
    if backend == "sqlite":
        _install_sqlite_listeners(engine)

    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    # Same pool; the option only changes how SQLite begins the transaction
    writer_session_maker = async_sessionmaker(
        engine.execution_options(**{BEGIN_IMMEDIATE: True}), class_=AsyncSession, expire_on_commit=False
    )
    logger.debug(f"Database engine initialized for backend '{backend}'")
    return engine


async def dispose_engine() -> None:
    if engine is not None:
        await engine.dispose()


@asynccontextmanager
async def get_db_session(writer: bool = False) -> AsyncGenerator[AsyncSession, None]:
    """
    writer=True is for sessions that read rows and then change them. On
    SQLite their transactions take the write lock at BEGIN, so two writers
    never both hold a read lock they later try to upgrade.
    """
    if session_maker is None:
        init_engine()
    factory = writer_session_maker if writer else session_maker
    async with factory() as session:
        yield session


async def session_execute(stmt, session: AsyncSession) -> Result[Any] | CursorResult[Any]:
    return await session.execute(stmt)


async def session_flush(session: AsyncSession) -> None:
    await session.flush()


async def session_commit(session: AsyncSession) -> None:
    await session.commit()


async def session_rollback(session: AsyncSession) -> None:
    await session.rollback()


async def create_db_and_tables():
    if engine is None:
        init_engine()
    # create_all skips tables that already exist
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info(f"Database tables ready: {', '.join(Base.metadata.tables)}")
