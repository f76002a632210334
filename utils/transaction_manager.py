import logging
import asyncio
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional
from functools import wraps
from datetime import datetime

from sqlalchemy.exc import OperationalError, IntegrityError
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

import config
from db import get_db_session, session_commit, session_rollback

logger = logging.getLogger(__name__)

# Driver messages that mean "could not get the lock in time" across backends
LOCK_ERROR_MARKERS = (
    "database is locked",             # sqlite
    "lock wait timeout",              # mysql
    "try restarting transaction",     # mysql
    "deadlock",                       # postgres, mysql
    "lock timeout",                   # postgres
    "could not obtain lock",          # postgres NOWAIT
    "could not serialize access",     # postgres serializable
)


class TransactionLockTimeout(Exception):
    """Exception raised when database lock acquisition times out"""
    pass


class TransactionRetryExhausted(Exception):
    """Exception raised when maximum retry attempts are exhausted"""

    def __init__(self, message: str, last_exception: Exception | None = None):
        super().__init__(message)
        self.last_exception = last_exception


def is_lock_error(error: Exception) -> bool:
    message = str(error).lower()
    return any(marker in message for marker in LOCK_ERROR_MARKERS)


class TransactionManager:
    """
    Utility class for managing database transactions with proper locking,
    rollback mechanisms, and retry logic for race condition prevention.
    """

    # Retry configuration
    RETRY_DELAY_BASE = 0.05  # Base delay in seconds

    @staticmethod
    async def _configure_session(session: AsyncSession, timeout: int) -> None:
        # SQLite is configured on connect/begin in db.py
        dialect = session.bind.dialect.name
        if dialect == "postgresql":
            await session.execute(text(f"SET TRANSACTION ISOLATION LEVEL {config.TRANSACTION_ISOLATION_LEVEL}"))
            await session.execute(text(f"SET LOCAL lock_timeout = '{timeout}s'"))
        elif dialect in ("mysql", "mariadb"):
            await session.execute(text(f"SET SESSION innodb_lock_wait_timeout = {timeout}"))
            await session.execute(text(f"SET TRANSACTION ISOLATION LEVEL {config.TRANSACTION_ISOLATION_LEVEL}"))

    @staticmethod
    @asynccontextmanager
    async def atomic_transaction(timeout: Optional[int] = None) -> AsyncGenerator[AsyncSession, None]:
        """
        Context manager for atomic database transactions with bounded lock waits.

        Commits when the block exits normally; rolls back and re-raises on any
        exception. Lock-wait and deadlock errors are re-raised as
        TransactionLockTimeout so callers can retry the whole attempt.

        Usage:
            async with TransactionManager.atomic_transaction() as session:
                # Database operations here
                await session.execute(...)
        """
        timeout = timeout or config.LOCK_TIMEOUT_SECONDS
        session = None

        try:
            async with get_db_session(writer=True) as session:
                await TransactionManager._configure_session(session, timeout)

                transaction_start = datetime.now()
                logger.debug(f"Transaction started at {transaction_start}")

                yield session

                await session_commit(session)
                duration = (datetime.now() - transaction_start).total_seconds()
                logger.debug(f"Transaction committed successfully in {duration:.2f}s")

        except Exception as e:
            if session is not None:
                try:
                    await session_rollback(session)
                    logger.info(f"Transaction rolled back due to error: {str(e)}")
                except Exception as rollback_error:
                    logger.critical(f"Failed to rollback transaction: {str(rollback_error)}")
            if isinstance(e, OperationalError) and is_lock_error(e):
                raise TransactionLockTimeout(f"Could not acquire lock within {timeout}s: {e.orig}") from e
            raise

    @staticmethod
    def with_retry(max_retries: Optional[int] = None, delay_base: Optional[float] = None):
        """
        Decorator for automatic retry of a whole transaction attempt with exponential backoff.

        Only transient failures are retried: lock timeouts/deadlocks and
        integrity errors (e.g. a unique order number taken by a concurrent
        transaction). Domain errors propagate on the first attempt.

        Args:
            max_retries: Maximum number of retry attempts (default LOCK_RETRY_ATTEMPTS)
            delay_base: Base delay for exponential backoff
        """
        if max_retries is None:
            max_retries = config.LOCK_RETRY_ATTEMPTS
        delay_base = delay_base or TransactionManager.RETRY_DELAY_BASE

        def decorator(func):
            @wraps(func)
            async def wrapper(*args, **kwargs):
                last_exception = None

                for attempt in range(max_retries + 1):
                    try:
                        return await func(*args, **kwargs)
                    except (IntegrityError, TransactionLockTimeout) as e:
                        last_exception = e

                        if attempt == max_retries:
                            logger.error(f"Function {func.__name__} failed after {max_retries} retries: {str(e)}")
                            break

                        delay = delay_base * (2 ** attempt) + (delay_base * 0.1 * attempt)
                        logger.warning(f"Attempt {attempt + 1} failed for {func.__name__}, "
                                       f"retrying in {delay:.2f}s: {str(e)}")
                        await asyncio.sleep(delay)

                raise TransactionRetryExhausted(
                    f"{func.__name__} failed after {max_retries + 1} attempts", last_exception
                ) from last_exception

            return wrapper
        return decorator
