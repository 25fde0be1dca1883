# account_service/utils/__init__.py
"""
Cross-cutting utilities:
- logging: Logging configuration with correlation ID support
- context: Request context (correlation ID)
- cookies: Session cookie helpers

Usage:
    from account_service.utils import setup_logging
    from account_service.utils import get_correlation_id, set_correlation_id
"""

from account_service.utils.context import (
    get_correlation_id,
    set_correlation_id,
    reset_correlation_id,
    clear_correlation_id,
)
from account_service.utils.logging import setup_logging

__all__ = [
    # Logging
    "setup_logging",
    # Context
    "get_correlation_id",
    "set_correlation_id",
    "reset_correlation_id",
    "clear_correlation_id",
]
