# account_service/models.py
import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class UserRole(str, enum.Enum):
    ADMIN = "admin"
    USER = "user"


class TokenPurpose(str, enum.Enum):
    EMAIL_VERIFICATION = "email_verification"
    PASSWORD_RESET = "password_reset"


class TokenState(str, enum.Enum):
    """
    Lifecycle of a verification token.

    State transitions:
        (no row) → PENDING            on generate
        PENDING → CONSUMED            on first successful consume
        PENDING → EXPIRED             on consume after expires_at
        any state → PENDING           on generate (new token value)
    """
    PENDING = "pending"
    CONSUMED = "consumed"
    EXPIRED = "expired"


class User(Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(100))
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    password: Mapped[str] = mapped_column(String(255))
    verified: Mapped[bool] = mapped_column(Boolean, default=False)
    role: Mapped[UserRole] = mapped_column(Enum(UserRole), default=UserRole.USER)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    verification_tokens: Mapped[list["VerificationToken"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
    )


class VerificationToken(Base):
    """
    Single-use token proving control of an email address or authorizing a reset.

    One row per (user, purpose): issuing a new token overwrites the row, so
    the previous token value stops matching immediately.
    """
    __tablename__ = "verification_tokens"
    __table_args__ = (
        UniqueConstraint("user_id", "purpose", name="uq_verification_token_user_purpose"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    purpose: Mapped[TokenPurpose] = mapped_column(Enum(TokenPurpose))
    token: Mapped[str] = mapped_column(String(64), unique=True, index=True)
    state: Mapped[TokenState] = mapped_column(Enum(TokenState), default=TokenState.PENDING)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    consumed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True, default=None)

    user: Mapped["User"] = relationship(back_populates="verification_tokens")
