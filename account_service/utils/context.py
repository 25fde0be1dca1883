# account_service/utils/context.py
"""
Correlation ID storage for the current request.

The ID lives in a ContextVar. Starlette copies the context into the
threadpool that runs sync endpoints, so the workflow and store log under the
ID of the request that called them. Work submitted to the hashing pool runs
outside that context and logs with the placeholder instead.

The middleware sets the ID and restores the previous value with the token it
got back:

    token = set_correlation_id("abc-123")
    try:
        ...
    finally:
        reset_correlation_id(token)
"""

from contextvars import ContextVar, Token

_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> str | None:
    """The current request's correlation ID, or None outside a request."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str) -> Token:
    return _correlation_id.set(correlation_id)


def reset_correlation_id(token: Token) -> None:
    _correlation_id.reset(token)


def clear_correlation_id() -> None:
    _correlation_id.set(None)
