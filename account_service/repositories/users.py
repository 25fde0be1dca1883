# account_service/repositories/users.py
"""
SQLAlchemy implementation of the UserStore protocol.

One store wraps one request-scoped Session. Every public method is its own
transaction: it commits on success and rolls back on failure.

Error policy:
- IntegrityError on insert_user → DuplicateEmailError
- Any other SQLAlchemyError → StoreUnavailableError (details only logged)

Verification tokens live in their own table with one row per
(user, purpose). Consuming a token is a single conditional UPDATE
(compare-and-swap on token value + pending state + expiry), so a token that
was superseded or already consumed by a concurrent request matches no row.

Bulk UPDATEs bypass the identity map, so reads use populate_existing to
see committed values.
"""

import logging
from contextlib import contextmanager
from collections.abc import Iterator
from datetime import datetime, timezone

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session
from tenacity import (
    retry,
    stop_after_attempt,
    retry_if_exception_type,
    before_sleep_log,
)

from account_service.models import TokenPurpose, TokenState, User, UserRole, VerificationToken
from account_service.services.auth.types import ClaimStatus, TokenClaim, UserIdentity
from account_service.services.exceptions import DuplicateEmailError, StoreUnavailableError

logger = logging.getLogger(__name__)

# Upserting a token row can race with another upsert for the same user and
# purpose; one retry resolves it because the row then exists.
_UPSERT_ATTEMPTS = 2


class SqlAlchemyUserStore:
    """User store backed by a SQLAlchemy Session."""

    def __init__(self, db: Session) -> None:
        self._db = db

    # =========================================================================
    # QUERIES
    # =========================================================================

    def find_user(
        self,
        *,
        user_id: str | None = None,
        name: str | None = None,
        email: str | None = None,
        token: str | None = None,
    ) -> UserIdentity | None:
        """
        Find a single user matching all given filters.

        Args:
            user_id: Match by id
            name: Match by exact name
            email: Match by email (case-insensitive)
            token: Match by any verification token value the user holds

        Returns:
            UserIdentity or None if no user matches
        """
        query = select(User)
        if user_id is not None:
            query = query.where(User.id == user_id)
        if name is not None:
            query = query.where(User.name == name)
        if email is not None:
            query = query.where(User.email == email.lower())
        if token is not None:
            query = query.join(VerificationToken).where(VerificationToken.token == token)

        with self._guard("find_user"):
            query = query.limit(1).execution_options(populate_existing=True)
            user = self._db.execute(query).scalar_one_or_none()
            if user is None:
                return None
            return self._to_identity(user)

    def count_users(self) -> int:
        with self._guard("count_users"):
            return self._db.execute(select(func.count()).select_from(User)).scalar_one()

    def list_users(self, page: int, limit: int) -> list[UserIdentity]:
        """List users newest first, 1-based page."""
        offset = (page - 1) * limit
        query = (
            select(User)
            .order_by(User.created_at.desc(), User.id.desc())
            .offset(offset)
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        with self._guard("list_users"):
            users = self._db.execute(query).scalars().all()
            return [self._to_identity(user, with_token=False) for user in users]

    # =========================================================================
    # COMMANDS
    # =========================================================================

    def insert_user(
        self,
        name: str,
        email: str,
        password_hash: str,
        verification_token: str,
        expires_at: datetime,
    ) -> UserIdentity:
        """
        Insert an unverified user together with its email-verification token.

        Raises:
            DuplicateEmailError: If the email is already registered
        """
        user = User(
            name=name,
            email=email.lower(),
            password=password_hash,
            verified=False,
        )
        user.verification_tokens.append(
            VerificationToken(
                purpose=TokenPurpose.EMAIL_VERIFICATION,
                token=verification_token,
                state=TokenState.PENDING,
                expires_at=expires_at,
            )
        )

        try:
            with self._guard("insert_user"):
                self._db.add(user)
                self._db.commit()
        except IntegrityError:
            raise DuplicateEmailError(email)

        return self._to_identity(user)

    def update_password(self, user_id: str, password_hash: str) -> None:
        with self._guard("update_password"):
            self._db.execute(
                update(User)
                .where(User.id == user_id)
                .values(password=password_hash, updated_at=_utcnow()),
                execution_options={"synchronize_session": False},
            )
            self._db.commit()

    def update_name(self, user_id: str, name: str) -> UserIdentity:
        with self._guard("update_name"):
            user = self._db.get(User, user_id, populate_existing=True)
            if user is None:
                raise StoreUnavailableError("update_name", "user not found")
            user.name = name
            self._db.commit()
            return self._to_identity(user)

    def update_role(self, user_id: str, role: UserRole) -> UserIdentity | None:
        """Set the role of a user. Returns None when the user does not exist."""
        with self._guard("update_role"):
            user = self._db.get(User, user_id, populate_existing=True)
            if user is None:
                return None
            user.role = role
            self._db.commit()
            return self._to_identity(user)

    def update_verification_token(
        self,
        user_id: str,
        token: str,
        expires_at: datetime,
        purpose: TokenPurpose = TokenPurpose.EMAIL_VERIFICATION,
    ) -> None:
        """
        Store a new pending token for (user, purpose), replacing any previous one.
        """

        @retry(
            stop=stop_after_attempt(_UPSERT_ATTEMPTS),
            retry=retry_if_exception_type(IntegrityError),
            before_sleep=before_sleep_log(logger, logging.INFO),
            reraise=True,
        )
        def _upsert() -> None:
            with self._guard("update_verification_token"):
                row = self._db.execute(
                    select(VerificationToken)
                    .where(
                        VerificationToken.user_id == user_id,
                        VerificationToken.purpose == purpose,
                    )
                    .with_for_update()
                    .execution_options(populate_existing=True)
                ).scalar_one_or_none()

                if row is None:
                    row = VerificationToken(user_id=user_id, purpose=purpose)
                    self._db.add(row)

                row.token = token
                row.expires_at = expires_at
                row.state = TokenState.PENDING
                row.created_at = _utcnow()
                row.consumed_at = None
                self._db.commit()

        try:
            _upsert()
        except IntegrityError as e:
            raise StoreUnavailableError("update_verification_token", "concurrent upsert") from e

    def claim_verification_token(
        self,
        token: str,
        purpose: TokenPurpose,
        now: datetime,
    ) -> TokenClaim:
        """
        Atomically move a pending, unexpired token to CONSUMED.

        Claiming an EMAIL_VERIFICATION token marks its owner verified in the
        same transaction. A pending token found past its expiry is moved to
        EXPIRED instead.
        """
        with self._guard("claim_verification_token"):
            result = self._db.execute(
                update(VerificationToken)
                .where(
                    VerificationToken.token == token,
                    VerificationToken.purpose == purpose,
                    VerificationToken.state == TokenState.PENDING,
                    VerificationToken.expires_at > now,
                )
                .values(state=TokenState.CONSUMED, consumed_at=now),
                execution_options={"synchronize_session": False},
            )

            if result.rowcount == 1:
                user_id = self._token_owner(token)
                if purpose == TokenPurpose.EMAIL_VERIFICATION:
                    self._set_verified(User.id == user_id)
                self._db.commit()
                return TokenClaim(ClaimStatus.CLAIMED, user_id)

            row = self._db.execute(
                select(VerificationToken).where(
                    VerificationToken.token == token,
                    VerificationToken.purpose == purpose,
                ).execution_options(populate_existing=True)
            ).scalar_one_or_none()

            if row is None or row.state != TokenState.PENDING:
                self._db.rollback()
                return TokenClaim(ClaimStatus.MISSING)

            expired = self._db.execute(
                update(VerificationToken)
                .where(
                    VerificationToken.token == token,
                    VerificationToken.state == TokenState.PENDING,
                )
                .values(state=TokenState.EXPIRED),
                execution_options={"synchronize_session": False},
            )
            self._db.commit()

            if expired.rowcount == 1:
                return TokenClaim(ClaimStatus.EXPIRED, row.user_id)
            return TokenClaim(ClaimStatus.MISSING)

    def mark_verified(self, token: str) -> None:
        """Set verified=True on the user owning the given token."""
        owner = select(VerificationToken.user_id).where(VerificationToken.token == token)
        with self._guard("mark_verified"):
            self._set_verified(User.id.in_(owner))
            self._db.commit()

    def _set_verified(self, condition) -> None:
        self._db.execute(
            update(User)
            .where(condition)
            .values(verified=True, updated_at=_utcnow()),
            execution_options={"synchronize_session": False},
        )

    # =========================================================================
    # HELPERS
    # =========================================================================

    @contextmanager
    def _guard(self, operation: str) -> Iterator[None]:
        """Roll back on failure; collapse non-integrity errors to StoreUnavailableError."""
        try:
            yield
        except IntegrityError:
            self._db.rollback()
            raise
        except SQLAlchemyError as e:
            self._db.rollback()
            logger.error(f"User store operation '{operation}' failed: {e}")
            raise StoreUnavailableError(operation, str(e)) from e

    def _token_owner(self, token: str) -> str:
        return self._db.execute(
            select(VerificationToken.user_id).where(VerificationToken.token == token)
        ).scalar_one()

    def _to_identity(self, user: User, with_token: bool = True) -> UserIdentity:
        pending = None
        if with_token:
            pending = self._db.execute(
                select(VerificationToken).where(
                    VerificationToken.user_id == user.id,
                    VerificationToken.purpose == TokenPurpose.EMAIL_VERIFICATION,
                    VerificationToken.state == TokenState.PENDING,
                ).execution_options(populate_existing=True)
            ).scalar_one_or_none()

        return UserIdentity(
            id=user.id,
            name=user.name,
            email=user.email,
            password_hash=user.password,
            verified=user.verified,
            role=user.role,
            verification_token=pending.token if pending else None,
            token_expires_at=_as_utc(pending.expires_at) if pending else None,
            created_at=_as_utc(user.created_at),
            updated_at=_as_utc(user.updated_at),
        )


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime | None) -> datetime | None:
    # SQLite returns naive datetimes
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
