"""
Session token (JWT) creation and validation.

Handles:
- Session tokens bound to a user id, with a configurable lifetime
- Signature and expiry validation with optional clock-skew leeway

Security notes:
- Session tokens are NOT stored server side (stateless)
- The signing secret is passed in per call; this class never keeps it
- Uses HS256 by default (symmetric, fast)
"""

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from account_service.services.exceptions import InvalidSignatureError, TokenExpiredError


SESSION_TOKEN_TYPE = "session"


class TokenService:
    """
    Issues and validates signed, time-limited session tokens.

    Session tokens contain:
    - sub: User ID (string)
    - iat: Issued at timestamp
    - exp: Expiration timestamp
    - jti: Random token id (two tokens issued in the same second still differ)
    - type: "session"
    """

    def __init__(self, algorithm: str = "HS256", leeway_seconds: int = 0) -> None:
        """
        Args:
            algorithm: JWT signing algorithm
            leeway_seconds: Clock skew tolerated when checking expiry
        """
        self._algorithm = algorithm
        self._leeway_seconds = leeway_seconds

    def issue(self, subject_id: str, secret: str, ttl_minutes: int) -> str:
        """
        Create a new session token.

        Args:
            subject_id: The user's id
            secret: Signing secret
            ttl_minutes: Lifetime in minutes (negative values produce an
                already-expired token)

        Returns:
            Encoded JWT string

        Example:
            token = TokenService().issue(user.id, settings.jwt_secret, 60)
        """
        now = datetime.now(timezone.utc)
        payload = {
            "sub": str(subject_id),
            "iat": now,
            "exp": now + timedelta(minutes=ttl_minutes),
            "jti": uuid.uuid4().hex,
            "type": SESSION_TOKEN_TYPE,
        }
        return jwt.encode(payload, secret, algorithm=self._algorithm)

    def validate(self, token: str, secret: str) -> str:
        """
        Validate a session token and return its subject.

        Args:
            token: The JWT string to validate
            secret: Signing secret

        Returns:
            The subject (user id) encoded in the token

        Raises:
            TokenExpiredError: If the token has expired
            InvalidSignatureError: If the signature does not verify or the
                token is malformed
        """
        payload = self._decode(token, secret)

        if payload.get("type") != SESSION_TOKEN_TYPE:
            raise InvalidSignatureError("Invalid token type")

        subject = payload.get("sub")
        if not subject:
            raise InvalidSignatureError("Token has no subject")

        return subject

    def get_token_expiry(self, token: str) -> datetime | None:
        """
        Read the expiration time of a token without verifying it.

        Args:
            token: The JWT string

        Returns:
            Expiration datetime (UTC) or None if absent or unreadable
        """
        try:
            claims = jwt.get_unverified_claims(token)
        except JWTError:
            return None
        exp = claims.get("exp")
        if exp is None:
            return None
        return datetime.fromtimestamp(exp, tz=timezone.utc)

    def _decode(self, token: str, secret: str) -> dict[str, Any]:
        try:
            return jwt.decode(
                token,
                secret,
                algorithms=[self._algorithm],
                options={"leeway": self._leeway_seconds},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpiredError("Session token has expired", token_type=SESSION_TOKEN_TYPE)
        except JWTError as e:
            raise InvalidSignatureError(f"Invalid token: {e}")
