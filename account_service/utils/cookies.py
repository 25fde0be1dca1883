"""
HTTP cookie utilities for the session token.

The session JWT is stored in an httpOnly cookie so scripts cannot read it.
Its max-age matches the token's own expiry.
"""

from fastapi import Response

from account_service.config import Settings


SESSION_TOKEN_COOKIE = "token"


def set_session_cookie(response: Response, token: str, settings: Settings) -> None:
    """
    Set the session token as an httpOnly cookie.

    Args:
        response: FastAPI Response object
        token: Session JWT
        settings: Application settings (expiry and environment)
    """
    # SameSite=Lax blocks cross-site POSTs while allowing top-level navigation.
    # Browsers accept non-Secure cookies on localhost only.
    response.set_cookie(
        key=SESSION_TOKEN_COOKIE,
        value=token,
        max_age=settings.jwt_expire_minutes * 60,
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
        path="/",
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        key=SESSION_TOKEN_COOKIE,
        path="/",  # Must match the path used when setting
        httponly=True,
        secure=settings.is_production,
        samesite="lax",
    )


def get_session_token_from_cookie(cookies: dict[str, str]) -> str | None:
    """
    Extract the session token from request cookies.

    Returns:
        Token string or None if not present
    """
    return cookies.get(SESSION_TOKEN_COOKIE) or None
