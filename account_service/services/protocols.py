# account_service/services/protocols.py
"""
Protocol interfaces for service dependency injection.

Using typing.Protocol enables structural subtyping:
- The SQLAlchemy store satisfies UserStore without inheriting from it
- Test doubles work without explicit inheritance
- Clear documentation of what the credential services need from storage
"""

from __future__ import annotations

from datetime import datetime
from typing import Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from account_service.models import TokenPurpose, UserRole
    from account_service.services.auth.types import TokenClaim, UserIdentity


class UserStore(Protocol):
    """
    Persistence interface used by the credential services.

    Implementations raise DuplicateEmailError on an email uniqueness
    violation and StoreUnavailableError for every other storage failure.
    """

    def find_user(
        self,
        *,
        user_id: str | None = None,
        name: str | None = None,
        email: str | None = None,
        token: str | None = None,
    ) -> UserIdentity | None:
        ...

    def insert_user(
        self,
        name: str,
        email: str,
        password_hash: str,
        verification_token: str,
        expires_at: datetime,
    ) -> UserIdentity:
        ...

    def update_password(self, user_id: str, password_hash: str) -> None:
        ...

    def update_name(self, user_id: str, name: str) -> UserIdentity:
        ...

    def update_role(self, user_id: str, role: UserRole) -> UserIdentity | None:
        ...

    def update_verification_token(
        self,
        user_id: str,
        token: str,
        expires_at: datetime,
        purpose: TokenPurpose = ...,
    ) -> None:
        ...

    def claim_verification_token(
        self,
        token: str,
        purpose: TokenPurpose,
        now: datetime,
    ) -> TokenClaim:
        ...

    def mark_verified(self, token: str) -> None:
        ...

    def count_users(self) -> int:
        ...

    def list_users(self, page: int, limit: int) -> list[UserIdentity]:
        ...


class MailSender(Protocol):
    """Best-effort delivery of account emails. Raises MailDeliveryError."""

    def send_verification_email(self, to_email: str, to_name: str, token: str) -> None:
        ...

    def send_password_reset_email(self, to_email: str, to_name: str, token: str) -> None:
        ...
