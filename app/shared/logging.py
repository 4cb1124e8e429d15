"""
Logging configuration.

Every record passes through CredentialRedactingFilter before it is
written: API tokens, the cron secret and processor access tokens travel in
headers and query strings that uvicorn and httpx like to log.
"""

import logging
import re
import sys

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
REDACTED = "***"

_CREDENTIAL_PATTERNS = (
    re.compile(r"(Bearer\s+)[A-Za-z0-9._~+/=-]+", re.IGNORECASE),
    re.compile(r"((?:secret|access_token|token)=)[^&\s\"']+", re.IGNORECASE),
    re.compile(r"(/bot)\d+:[A-Za-z0-9_-]+"),
)

QUIET_LOGGERS = ("uvicorn.access", "httpx", "httpcore", "apscheduler")


def redact(message: str) -> str:
    for pattern in _CREDENTIAL_PATTERNS:
        message = pattern.sub(lambda m: m.group(1) + REDACTED, message)
    return message


class CredentialRedactingFilter(logging.Filter):
    """Rewrites the formatted message with credentials masked."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        cleaned = redact(message)
        if cleaned != message:
            record.msg = cleaned
            record.args = None
        return True


def configure_logging(level: str = "INFO") -> None:
    """Configure process-wide logging.

    Args:
        level: The log level string (DEBUG, INFO, WARNING, ERROR).
    """
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    handler.addFilter(CredentialRedactingFilter())
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        handlers=[handler],
        force=True,
    )

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
