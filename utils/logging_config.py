"""
Logging setup for the storefront: rotating file plus console, with card
numbers, credentials and customer PII masked before anything is written.
"""

import logging
import logging.handlers
import re
from pathlib import Path
from typing import Pattern

import config

LOG_FORMAT = '%(asctime)s | %(name)-25s | %(levelname)-8s | %(message)s'
LOG_DATE_FORMAT = '%Y-%m-%d %H:%M:%S'
LOG_FILE_NAME = "storefront.log"


class SecretMaskingFilter(logging.Filter):
    """
    Replaces sensitive values in a record's message and string arguments
    with [REDACTED_*] markers. Order numbers and transaction ids are kept.
    """

    PATTERNS: list[tuple[Pattern, str]] = [
        (re.compile(r'(token["\']?\s*[:=]\s*["\']?)([A-Za-z0-9_\-:.]{16,})(["\']?)', re.IGNORECASE), r'\1[REDACTED_TOKEN]\3'),
        (re.compile(r'(Bearer\s+)([A-Za-z0-9_\-\.]+)', re.IGNORECASE), r'\1[REDACTED_BEARER_TOKEN]'),
        (re.compile(r'(password["\']?\s*[:=]\s*["\']?)([^\s"\']+)(["\']?)', re.IGNORECASE), r'\1[REDACTED_PASSWORD]\3'),
        # 13-19 digits, optionally grouped by spaces or dashes
        (re.compile(r'\b(?:\d[ -]?){12,18}\d\b'), '[REDACTED_CARD]'),
        (re.compile(r'\b([a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,})\b'), '[REDACTED_EMAIL]'),
        (re.compile(r'(address["\']?\s*[:=]\s*["\']?)([^"\']{10,})(["\']?)', re.IGNORECASE), r'\1[REDACTED_ADDRESS]\3'),
    ]

    @classmethod
    def mask(cls, text: str) -> str:
        for pattern, replacement in cls.PATTERNS:
            text = pattern.sub(replacement, text)
        return text

    def filter(self, record: logging.LogRecord) -> bool:
        if record.msg:
            record.msg = self.mask(str(record.msg))
        if record.args:
            record.args = tuple(self.mask(arg) if isinstance(arg, str) else arg for arg in record.args)
        return True


def setup_logging(log_dir: str | Path = "logs") -> logging.Logger:
    """
    Replace the root logger's handlers with a midnight-rotating file handler
    (<log_dir>/storefront.log, LOG_RETENTION_DAYS backups) and a console
    handler, both at LOG_LEVEL. Call once at startup.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_level = getattr(logging, config.LOG_LEVEL.upper(), logging.INFO)

    handlers = [
        logging.handlers.TimedRotatingFileHandler(
            filename=log_dir / LOG_FILE_NAME,
            when="midnight",
            backupCount=config.LOG_RETENTION_DAYS,
            encoding="utf-8"
        ),
        logging.StreamHandler(),
    ]
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
    for handler in handlers:
        handler.setFormatter(formatter)
        handler.setLevel(log_level)
        if config.LOG_MASK_SECRETS:
            handler.addFilter(SecretMaskingFilter())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root_logger.addHandler(handler)

    root_logger.info(f"Logging initialized: level={config.LOG_LEVEL}, retention={config.LOG_RETENTION_DAYS} days, "
                     f"masking={'on' if config.LOG_MASK_SECRETS else 'off'}")
    return root_logger
