import os
import sys
from decimal import Decimal, InvalidOperation

from dotenv import load_dotenv

# Load .env but don't override existing environment variables
# This allows tests to set DB_URL before import
load_dotenv(".env", override=False)


def _fail(name: str, reason: str, expected: str):
    print(f"\n ERROR: Invalid {name} configuration\n", file=sys.stderr)
    print(f"Reason: {reason}", file=sys.stderr)
    print(f"Expected: {expected}", file=sys.stderr)
    print(f"Current value: {os.environ.get(name, '(not set)')}\n", file=sys.stderr)
    sys.exit(1)


def _int_env(name: str, default: int, minimum: int = 0) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError as e:
        _fail(name, str(e), f"integer >= {minimum}")
    if value < minimum:
        _fail(name, f"{value} is below {minimum}", f"integer >= {minimum}")
    return value


def _bool_env(name: str, default: bool) -> bool:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


# Database
DB_URL = os.environ.get("DB_URL", "sqlite+aiosqlite:///data/storefront.db")
DB_ECHO = _bool_env("DB_ECHO", False)

# Session store (Redis)
REDIS_URL = os.environ.get("REDIS_URL", "redis://localhost:6379/0")
SESSION_TTL_SECONDS = _int_env("SESSION_TTL_SECONDS", 24 * 60 * 60, minimum=1)

# Logging
LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
LOG_RETENTION_DAYS = _int_env("LOG_RETENTION_DAYS", 7, minimum=1)
LOG_MASK_SECRETS = _bool_env("LOG_MASK_SECRETS", True)

# Inventory locking
# Lock waits are bounded; a timed-out checkout is retried LOCK_RETRY_ATTEMPTS times
LOCK_TIMEOUT_SECONDS = _int_env("LOCK_TIMEOUT_SECONDS", 5, minimum=1)
LOCK_RETRY_ATTEMPTS = _int_env("LOCK_RETRY_ATTEMPTS", 1)
# Server databases only. Stock and cart rows are always read with SELECT ... FOR UPDATE,
# which returns the latest committed row at any level; stricter levels add serialization
# failures, not safety (DESIGN.md, "Isolation level"). SQLite uses BEGIN IMMEDIATE instead.
TRANSACTION_ISOLATION_LEVEL = os.environ.get("TRANSACTION_ISOLATION_LEVEL", "READ COMMITTED").upper()
if TRANSACTION_ISOLATION_LEVEL not in ("READ COMMITTED", "REPEATABLE READ", "SERIALIZABLE"):
    _fail("TRANSACTION_ISOLATION_LEVEL", "unsupported isolation level",
          "READ COMMITTED, REPEATABLE READ or SERIALIZABLE")

# Payments (mocked gateway)
try:
    CARD_PAYMENT_SUCCESS_RATE = float(os.environ.get("CARD_PAYMENT_SUCCESS_RATE", "0.95"))
    if not 0.0 <= CARD_PAYMENT_SUCCESS_RATE <= 1.0:
        raise ValueError("must be between 0.0 and 1.0")
except ValueError as e:
    _fail("CARD_PAYMENT_SUCCESS_RATE", str(e), "float between 0.0 and 1.0")

try:
    PAYMENT_AMOUNT_TOLERANCE = Decimal(os.environ.get("PAYMENT_AMOUNT_TOLERANCE", "0.01"))
except InvalidOperation as e:
    _fail("PAYMENT_AMOUNT_TOLERANCE", repr(e), "decimal amount, e.g. 0.01")

DEFAULT_PAYMENT_METHOD = os.environ.get("DEFAULT_PAYMENT_METHOD", "credit_card")
