"""
Data types shared by the credential services and the user store.

These are plain frozen dataclasses so services never hold ORM objects
(and never trigger lazy loads) outside the store.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from account_service.models import UserRole


@dataclass(frozen=True)
class UserIdentity:
    """
    Minimal view of a user record needed by the credential subsystem.

    Attributes:
        id: User id (UUID string)
        name: Display name
        email: Lower-cased email address
        password_hash: Stored argon2 credential
        verified: Whether the email address has been verified
        role: Account role
        verification_token: Current email-verification token, if any
        token_expires_at: Expiry of verification_token
        created_at: Account creation time
        updated_at: Last modification time
    """
    id: str
    name: str
    email: str
    password_hash: str
    verified: bool
    role: UserRole
    verification_token: str | None = None
    token_expires_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def __repr__(self) -> str:
        # Keep credentials out of logs and tracebacks
        return f"UserIdentity(id={self.id!r}, email={self.email!r}, verified={self.verified})"

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN


@dataclass(frozen=True)
class IssuedToken:
    """A freshly generated verification token and its expiry."""
    token: str
    expires_at: datetime


class ClaimStatus(str, Enum):
    CLAIMED = "claimed"
    MISSING = "missing"
    EXPIRED = "expired"


@dataclass(frozen=True)
class TokenClaim:
    """
    Outcome of an atomic verification-token consume attempt.

    Attributes:
        status: CLAIMED (this caller won the token), MISSING (unknown,
            consumed, expired earlier or superseded), EXPIRED (pending but
            past expiry; now marked expired)
        user_id: Owner of the token when status is CLAIMED or EXPIRED
    """
    status: ClaimStatus
    user_id: str | None = None


@dataclass(frozen=True)
class LoginResult:
    """Successful login: the user and the issued session token."""
    user: UserIdentity
    token: str
    expires_in: int
