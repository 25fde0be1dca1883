# account_service/middleware/correlation.py
"""
Request tracing through a correlation ID.

Every request gets one ID, taken from the first usable header below or
generated as a UUID4. It is bound to the request's context for logging and
echoed back on the response, error responses included.

    X-Correlation-ID   preferred, set by clients and upstream services
    X-Request-ID       accepted from proxies that only know this name

A supplied value that is empty or longer than MAX_CORRELATION_ID_LENGTH is
ignored.

    curl -i -H "X-Correlation-ID: login-debug-7" http://localhost:8000/login
    -> X-Correlation-ID: login-debug-7
"""

import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from account_service.utils.context import reset_correlation_id, set_correlation_id

CORRELATION_ID_HEADER = "X-Correlation-ID"
REQUEST_ID_HEADER = "X-Request-ID"

MAX_CORRELATION_ID_LENGTH = 128


def resolve_correlation_id(request: Request) -> str:
    supplied = (
        request.headers.get(name, "").strip()
        for name in (CORRELATION_ID_HEADER, REQUEST_ID_HEADER)
    )
    for candidate in supplied:
        if 0 < len(candidate) <= MAX_CORRELATION_ID_LENGTH:
            return candidate
    return str(uuid.uuid4())


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Bind a correlation ID to each request and return it in the response."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable[[Request], Response],
    ) -> Response:
        correlation_id = resolve_correlation_id(request)
        token = set_correlation_id(correlation_id)
        try:
            response = await call_next(request)
        finally:
            reset_correlation_id(token)

        response.headers[CORRELATION_ID_HEADER] = correlation_id
        return response
