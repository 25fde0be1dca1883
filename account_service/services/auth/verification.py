"""
Single-use verification tokens for email verification and password reset.

Lifecycle per (user, purpose):

    None ──generate──▶ Pending ──consume──▶ Consumed
                          │
                          └──consume after expiry──▶ Expired

- Tokens are UUIDv4 strings (122 random bits).
- generate() overwrites any previous token for the same user and purpose,
  so at most one token is ever pending.
- consume() is an atomic compare-and-swap in the store; a token can be
  consumed at most once even under concurrent requests.
"""

import logging
import uuid
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from account_service.models import TokenPurpose
from account_service.services.auth.types import ClaimStatus, IssuedToken
from account_service.services.exceptions import InvalidTokenError, TokenExpiredError
from account_service.services.protocols import UserStore


logger = logging.getLogger(__name__)

_EXPIRED_MESSAGES = {
    TokenPurpose.EMAIL_VERIFICATION: "Email verification link has expired. Please request a new one.",
    TokenPurpose.PASSWORD_RESET: "Password reset link has expired. Please request a new one.",
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class VerificationTokenManager:
    """
    Generates and consumes verification tokens through a UserStore.

    Stateless apart from the store; construct one per request.
    """

    def __init__(
        self,
        store: UserStore,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._store = store
        self._clock = clock

    def new_token(self, ttl: timedelta) -> IssuedToken:
        """
        Create a token and its expiry without storing it.

        Used when the token is persisted together with a new user record.
        """
        return IssuedToken(token=str(uuid.uuid4()), expires_at=self._clock() + ttl)

    def generate(self, user_id: str, purpose: TokenPurpose, ttl: timedelta) -> str:
        """
        Issue a new pending token for a user, superseding any previous one.

        Args:
            user_id: Owner of the token
            purpose: EMAIL_VERIFICATION or PASSWORD_RESET
            ttl: Lifetime of the token

        Returns:
            The token string to send to the user
        """
        issued = self.new_token(ttl)
        self._store.update_verification_token(
            user_id,
            issued.token,
            issued.expires_at,
            purpose=purpose,
        )
        logger.info(f"Issued {purpose.value} token for user {user_id}")
        return issued.token

    def consume(self, token: str, purpose: TokenPurpose) -> str:
        """
        Consume a pending token and return its owner.

        For EMAIL_VERIFICATION the owner is marked verified.

        Args:
            token: Token string received from the user
            purpose: Purpose the token must have been issued for

        Returns:
            The user id that owned the token

        Raises:
            InvalidTokenError: If the token is unknown, consumed, superseded
                or was issued for another purpose
            TokenExpiredError: If the token is past its expiry
        """
        if not token:
            raise InvalidTokenError()

        claim = self._store.claim_verification_token(token, purpose, self._clock())

        if claim.status == ClaimStatus.EXPIRED:
            logger.info(f"Expired {purpose.value} token presented for user {claim.user_id}")
            raise TokenExpiredError(_EXPIRED_MESSAGES[purpose], token_type=purpose.value)

        if claim.status != ClaimStatus.CLAIMED:
            raise InvalidTokenError()

        logger.info(f"Consumed {purpose.value} token for user {claim.user_id}")
        return claim.user_id
