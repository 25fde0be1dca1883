# account_service/middleware/rate_limit.py
"""
Per-client request limits for the credential endpoints.

Login, registration and the two endpoints that send mail are the ones worth
throttling: they either guess passwords or make us send email. Limits come
from account_service/services/constants.py and are counted per client IP in
process memory.

    @router.post("/login")
    @limiter.limit(RATE_LIMIT_AUTH_LOGIN)
    def login(request: Request, ...):
        ...

slowapi decorators bind to ``limiter`` at import time, so it is a module
attribute; create_app() flips ``limiter.enabled`` from
settings.rate_limit_enabled.
"""

import logging

from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.requests import Request
from starlette.responses import JSONResponse

from account_service.services.constants import (
    RATE_LIMIT_DEFAULT,
    RATE_LIMIT_HEALTH,
    RATE_LIMIT_AUTH_LOGIN,
    RATE_LIMIT_AUTH_REGISTER,
    RATE_LIMIT_AUTH_PASSWORD_RESET,
    RATE_LIMIT_AUTH_EMAIL,
)

logger = logging.getLogger(__name__)


def client_address(request: Request) -> str:
    """
    Rate-limit key for a request.

    The socket peer is the client unless it is a proxy we trust, in which
    case the proxy's X-Forwarded-For (first hop) or X-Real-IP names the
    client. Anyone else could pick their own bucket by sending the header.
    """
    peer = get_remote_address(request)
    settings = request.app.state.context.settings
    if not (settings.trust_proxy_headers or peer in settings.trusted_proxy_ips):
        return peer

    forwarded_for = request.headers.get("X-Forwarded-For", "")
    first_hop = forwarded_for.split(",")[0].strip()
    return first_hop or request.headers.get("X-Real-IP") or peer


limiter = Limiter(key_func=client_address, default_limits=[RATE_LIMIT_DEFAULT])


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """429 in the standard envelope; Retry-After is the limit's window."""
    window_seconds = exc.limit.limit.get_expiry()
    logger.warning(f"Rate limit hit on {request.url.path} by {client_address(request)}: {exc.detail}")

    return JSONResponse(
        status_code=429,
        content={"status": "fail", "message": f"Too many requests. Limit is {exc.detail}"},
        headers={"Retry-After": str(window_seconds)},
    )


__all__ = [
    "limiter",
    "client_address",
    "rate_limit_exceeded_handler",
    "SlowAPIMiddleware",
    "RATE_LIMIT_DEFAULT",
    "RATE_LIMIT_HEALTH",
    "RATE_LIMIT_AUTH_LOGIN",
    "RATE_LIMIT_AUTH_REGISTER",
    "RATE_LIMIT_AUTH_PASSWORD_RESET",
    "RATE_LIMIT_AUTH_EMAIL",
]
