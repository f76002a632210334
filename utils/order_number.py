"""
Human-readable order numbers: ORD-<YYYYMMDD>-<6 uppercase hex>.

The random suffix alone leaves 16^6 possibilities per day, so every
candidate is checked against the orders table before it is used. The
unique index on orders.order_number still rejects a number claimed by a
concurrent transaction that has not committed yet; that IntegrityError is
retried by the order processor.
"""

import logging
import secrets
from datetime import datetime
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)

ORDER_NUMBER_PREFIX = "ORD"
SUFFIX_BYTES = 3
MAX_ATTEMPTS = 50


class OrderNumberExhausted(Exception):
    """Raised when no free order number was found within MAX_ATTEMPTS."""
    pass


def generate_candidate(now: datetime | None = None) -> str:
    now = now or datetime.now()
    return f"{ORDER_NUMBER_PREFIX}-{now:%Y%m%d}-{secrets.token_hex(SUFFIX_BYTES).upper()}"


async def generate_order_number(is_taken: Callable[[str], Awaitable[bool]],
                                now: datetime | None = None,
                                max_attempts: int = MAX_ATTEMPTS) -> str:
    """
    Generate an order number that is not taken yet.

    Args:
        is_taken: Async predicate, usually an existence check against the
            orders table inside the current transaction
        now: Date used for the date part (default: today)
        max_attempts: Candidates to try before giving up

    Returns:
        Unused order number

    Raises:
        OrderNumberExhausted: If every candidate was taken
    """
    for attempt in range(1, max_attempts + 1):
        candidate = generate_candidate(now)
        if not await is_taken(candidate):
            return candidate
        logger.debug(f"Order number {candidate} already taken (attempt {attempt})")
    raise OrderNumberExhausted(f"No free order number after {max_attempts} attempts")
