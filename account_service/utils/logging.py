# account_service/utils/logging.py
"""
Logging setup for the account service.

One stdout handler on the root logger, with:
- the request's correlation ID stamped on every record
- text output for development, one JSON object per line for production
- third-party chatter (passlib, SQLAlchemy engine, HTTP clients) held at WARNING

Credential material must never reach a log line. Messages in this codebase
only mention user ids, and the JSON formatter masks any ``extra`` field whose
name looks like a credential (password, token, secret, hash).

Usage:
    from account_service.utils import setup_logging

    setup_logging(settings.log_level, settings.log_format)
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

from account_service.utils.context import get_correlation_id


TEXT_FORMAT = "%(asctime)s | %(levelname)-8s | %(correlation_id)s | %(name)s | %(message)s"
TEXT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

NO_CORRELATION_ID = "-"
REDACTED = "***"

QUIET_LOGGERS = (
    "passlib",
    "sqlalchemy.engine",
    "multipart",
    "httpx",
    "httpcore",
    "asyncio",
)

_SENSITIVE_MARKERS = ("password", "token", "secret", "hash")

# Attributes every LogRecord has; anything else came in through ``extra=``
_RECORD_ATTRS = frozenset(
    vars(logging.LogRecord("", 0, "", 0, "", None, None))
) | {"message", "asctime", "correlation_id"}


class CorrelationIdFilter(logging.Filter):
    """Stamp ``record.correlation_id`` for use as %(correlation_id)s."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or NO_CORRELATION_ID
        return True


class JsonFormatter(logging.Formatter):
    """
    One JSON object per record.

    {"timestamp": "...", "level": "INFO", "logger": "...",
     "correlation_id": "...", "message": "...", "extra": {...}}
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "correlation_id": getattr(record, "correlation_id", NO_CORRELATION_ID),
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        extra = {
            key: _json_safe(key, value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS
        }
        if extra:
            entry["extra"] = extra

        return json.dumps(entry)


def _json_safe(key: str, value: Any) -> Any:
    if any(marker in key.lower() for marker in _SENSITIVE_MARKERS):
        return REDACTED
    try:
        json.dumps(value)
    except (TypeError, ValueError):
        return str(value)
    return value


def setup_logging(level: str = "INFO", log_format: str = "text", quiet_third_party: bool = True) -> None:
    """
    Install the root handler. Safe to call more than once.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: "text" or "json"
        quiet_third_party: Raise library loggers to WARNING

    Raises:
        ValueError: Unknown level name
    """
    root_level = _get_log_level(level)

    if log_format.lower() == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(TEXT_FORMAT, datefmt=TEXT_DATE_FORMAT)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.addFilter(CorrelationIdFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(root_level)

    if quiet_third_party:
        for name in QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(f"Logging configured: level={level}, format={log_format}")


def _get_log_level(level: str) -> int:
    value = logging.getLevelName(level.strip().upper())
    if not isinstance(value, int):
        raise ValueError(
            f"Invalid log level: '{level}'. "
            "Valid levels are: DEBUG, INFO, WARNING, ERROR, CRITICAL"
        )
    return value
