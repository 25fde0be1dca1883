# tests/utils/test_logging.py
"""
Tests for logging configuration.
"""

import json
import logging

import pytest

from account_service.utils.context import clear_correlation_id, set_correlation_id
from account_service.utils.logging import (
    NO_CORRELATION_ID,
    REDACTED,
    CorrelationIdFilter,
    JsonFormatter,
    _get_log_level,
)


def _record(message: str = "hello", **extra) -> logging.LogRecord:
    record = logging.LogRecord("account_service.test", logging.INFO, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestCorrelationIdFilter:
    """Tests for CorrelationIdFilter."""

    def test_adds_current_correlation_id(self):
        set_correlation_id("trace-abc")
        try:
            record = _record()
            assert CorrelationIdFilter().filter(record) is True
            assert record.correlation_id == "trace-abc"
        finally:
            clear_correlation_id()

    def test_placeholder_outside_request(self):
        clear_correlation_id()
        record = _record()

        CorrelationIdFilter().filter(record)

        assert record.correlation_id == NO_CORRELATION_ID


class TestJsonFormatter:
    """Tests for JsonFormatter."""

    def test_formats_core_fields(self):
        record = _record("User logged in", correlation_id="trace-1")

        entry = json.loads(JsonFormatter().format(record))

        assert entry["level"] == "INFO"
        assert entry["logger"] == "account_service.test"
        assert entry["correlation_id"] == "trace-1"
        assert entry["message"] == "User logged in"
        assert "timestamp" in entry

    def test_includes_extra_fields(self):
        record = _record(correlation_id="trace-1", user_id="u-1", attempt=2)

        entry = json.loads(JsonFormatter().format(record))

        assert entry["extra"] == {"user_id": "u-1", "attempt": 2}

    def test_non_serializable_extra_is_stringified(self):
        record = _record(correlation_id="trace-1", payload={1, 2})

        entry = json.loads(JsonFormatter().format(record))

        assert isinstance(entry["extra"]["payload"], str)

    def test_credential_extras_are_masked(self):
        record = _record(correlation_id="trace-1", reset_token="abc", new_password="pw", user_id="u-1")

        entry = json.loads(JsonFormatter().format(record))

        assert entry["extra"] == {"reset_token": REDACTED, "new_password": REDACTED, "user_id": "u-1"}


class TestLogLevel:
    """Tests for log level parsing."""

    @pytest.mark.parametrize(
        "value, expected",
        [("debug", logging.DEBUG), (" INFO ", logging.INFO), ("warn", logging.WARNING)],
    )
    def test_valid_levels(self, value, expected):
        assert _get_log_level(value) == expected

    def test_invalid_level(self):
        with pytest.raises(ValueError, match="Invalid log level"):
            _get_log_level("verbose")
