"""
Account credential workflow.

Handles:
- User registration
- Login (email/password)
- Email verification
- Resending verification emails
- Password reset (forgot + reset)
- Password change and name update for signed-in users
- Role changes and user listing for admins
- Session authentication

Security features:
- Argon2 hashing on a bounded worker pool
- Identical error for unknown email and wrong password
- Single-use, expiring verification and reset tokens
- No user enumeration through resend / forgot-password
"""

import logging
from collections.abc import Callable
from datetime import timedelta

from email_validator import EmailNotValidError, validate_email

from account_service.config import Settings
from account_service.models import TokenPurpose, UserRole
from account_service.services.auth.hashing_pool import HashingExecutor
from account_service.services.auth.jwt_handler import TokenService
from account_service.services.auth.password import PasswordHasher
from account_service.services.auth.types import LoginResult, UserIdentity
from account_service.services.auth.verification import VerificationTokenManager
from account_service.services.exceptions import (
    EmptyPasswordError,
    InvalidCredentialsError,
    MailDeliveryError,
    PasswordTooLongError,
    PermissionDeniedError,
    TokenNotProvidedError,
    UserNoLongerExistsError,
    UserNotFoundError,
    ValidationError,
)
from account_service.services.protocols import MailSender, UserStore


logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 8
MAX_NAME_LENGTH = 100
MAX_PAGE_SIZE = 50


class AccountCredentialWorkflow:
    """
    Orchestrates the credential subsystem for one request.

    All collaborators are injected; nothing here holds global state.
    """

    def __init__(
        self,
        settings: Settings,
        store: UserStore,
        hasher: PasswordHasher,
        executor: HashingExecutor,
        tokens: TokenService,
        mailer: MailSender,
        verification: VerificationTokenManager | None = None,
    ) -> None:
        self._settings = settings
        self._store = store
        self._hasher = hasher
        self._executor = executor
        self._tokens = tokens
        self._mailer = mailer
        self._verification = verification or VerificationTokenManager(store)

    # =========================================================================
    # REGISTRATION & LOGIN
    # =========================================================================

    def register(
        self,
        name: str,
        email: str,
        password: str,
        confirm_password: str,
    ) -> UserIdentity:
        """
        Register a new, unverified user and send the verification email.

        Args:
            name: Display name
            email: Email address (validated and lower-cased)
            password: Plain text password
            confirm_password: Must equal password

        Returns:
            The created user

        Raises:
            ValidationError: If any input is invalid
            DuplicateEmailError: If the email is already registered
            HashingCapacityError: If the hashing pool is saturated
        """
        name = self._validate_name(name)
        email = self._validate_email(email)
        self._validate_new_password(password, confirm_password)

        password_hash = self._executor.run(self._hasher.hash, password)
        issued = self._verification.new_token(
            timedelta(hours=self._settings.email_verification_expire_hours)
        )

        user = self._store.insert_user(
            name,
            email,
            password_hash,
            issued.token,
            issued.expires_at,
        )

        self._deliver(self._mailer.send_verification_email, user.email, user.name, issued.token)

        logger.info(f"User registered: {user.id}")
        return user

    def login(self, email: str, password: str) -> LoginResult:
        """
        Authenticate with email/password and issue a session token.

        Raises:
            InvalidCredentialsError: Unknown email, wrong password, or a
                password outside the accepted length
        """
        user = self._store.find_user(email=(email or "").strip().lower())
        stored_hash = user.password_hash if user is not None else self._hasher.dummy_hash

        try:
            matches = self._executor.run(self._hasher.verify, password, stored_hash)
        except (EmptyPasswordError, PasswordTooLongError):
            raise InvalidCredentialsError()

        # Unknown emails still pay for a verification
        if user is None or not matches:
            raise InvalidCredentialsError()

        if self._hasher.needs_rehash(user.password_hash):
            new_hash = self._executor.run(self._hasher.hash, password)
            self._store.update_password(user.id, new_hash)
            logger.info(f"Rehashed credential for user {user.id}")

        ttl_minutes = self._settings.jwt_expire_minutes
        token = self._tokens.issue(user.id, self._settings.jwt_secret, ttl_minutes)

        logger.info(f"User logged in: {user.id}")
        return LoginResult(user=user, token=token, expires_in=ttl_minutes * 60)

    def authenticate(self, token: str | None) -> UserIdentity:
        """
        Resolve a session token to its user.

        Raises:
            TokenNotProvidedError: If no token was sent
            TokenExpiredError: If the token has expired
            InvalidSignatureError: If the token is forged or malformed
            UserNoLongerExistsError: If the user was deleted
        """
        if not token:
            raise TokenNotProvidedError()

        user_id = self._tokens.validate(token, self._settings.jwt_secret)

        user = self._store.find_user(user_id=user_id)
        if user is None:
            raise UserNoLongerExistsError()
        return user

    # =========================================================================
    # EMAIL VERIFICATION
    # =========================================================================

    def verify_email(self, token: str) -> None:
        """
        Consume an email-verification token and mark its owner verified.

        Raises:
            InvalidTokenError: Unknown, consumed or superseded token
            TokenExpiredError: Token past its expiry
        """
        user_id = self._verification.consume(token, TokenPurpose.EMAIL_VERIFICATION)
        logger.info(f"Email verified for user {user_id}")

    def resend_verification(self, email: str) -> None:
        """
        Issue a fresh verification token, superseding the previous one.

        Silent for unknown or already verified emails.
        """
        user = self._store.find_user(email=self._validate_email(email))

        # No-op either way to prevent user enumeration
        if user is None:
            logger.info("Verification resend requested for unknown email")
            return
        if user.verified:
            logger.info(f"Verification resend requested for verified user {user.id}")
            return

        token = self._verification.generate(
            user.id,
            TokenPurpose.EMAIL_VERIFICATION,
            timedelta(hours=self._settings.email_verification_expire_hours),
        )
        self._deliver(self._mailer.send_verification_email, user.email, user.name, token)

    # =========================================================================
    # PASSWORD MANAGEMENT
    # =========================================================================

    def forgot_password(self, email: str) -> None:
        """Send a password reset link. Silent for unknown emails."""
        user = self._store.find_user(email=self._validate_email(email))
        if user is None:
            logger.info("Password reset requested for unknown email")
            return

        token = self._verification.generate(
            user.id,
            TokenPurpose.PASSWORD_RESET,
            timedelta(hours=self._settings.password_reset_expire_hours),
        )
        self._deliver(self._mailer.send_password_reset_email, user.email, user.name, token)

    def reset_password(self, token: str, password: str, confirm_password: str) -> None:
        """
        Set a new password using a password-reset token.

        The new hash is computed before the token is consumed, so a
        saturated hashing pool leaves the token usable.

        Raises:
            ValidationError: Missing token or invalid new password
            InvalidTokenError: Unknown, consumed or superseded token
            TokenExpiredError: Token past its expiry
        """
        if not token:
            raise ValidationError("Token is required", field="token")
        self._validate_new_password(password, confirm_password)

        password_hash = self._executor.run(self._hasher.hash, password)
        user_id = self._verification.consume(token, TokenPurpose.PASSWORD_RESET)
        self._store.update_password(user_id, password_hash)

        logger.info(f"Password reset for user {user_id}")

    def change_password(
        self,
        user_id: str,
        old_password: str,
        password: str,
        confirm_password: str,
    ) -> None:
        """
        Change the password of a signed-in user.

        Raises:
            InvalidCredentialsError: If old_password does not match
            ValidationError: If the new password is invalid
        """
        user = self._store.find_user(user_id=user_id)
        if user is None:
            raise UserNoLongerExistsError()

        self._validate_new_password(password, confirm_password)

        try:
            matches = self._executor.run(self._hasher.verify, old_password, user.password_hash)
        except (EmptyPasswordError, PasswordTooLongError):
            raise InvalidCredentialsError()
        if not matches:
            raise InvalidCredentialsError()

        password_hash = self._executor.run(self._hasher.hash, password)
        self._store.update_password(user.id, password_hash)

        logger.info(f"Password changed for user {user.id}")

    # =========================================================================
    # PROFILE & ADMIN
    # =========================================================================

    def update_name(self, user_id: str, name: str) -> UserIdentity:
        return self._store.update_name(user_id, self._validate_name(name))

    def list_users(self, page: int, limit: int) -> tuple[list[UserIdentity], int]:
        """
        List users newest first.

        Args:
            page: 1-based page number
            limit: Page size, 1 to 50

        Returns:
            (users on the page, total user count)
        """
        if page < 1:
            raise ValidationError("Page must be at least 1", field="page")
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValidationError(f"Limit must be between 1 and {MAX_PAGE_SIZE}", field="limit")

        users = self._store.list_users(page, limit)
        return users, self._store.count_users()

    def update_role(self, acting_user_id: str, user_id: str, role: UserRole | str) -> UserIdentity:
        """
        Change the role of another user. The caller must already be an admin.

        Raises:
            ValidationError: Unknown role name
            PermissionDeniedError: An admin tried to change their own role
            UserNotFoundError: No user with that id
        """
        try:
            role = UserRole(role)
        except ValueError:
            raise ValidationError(
                f"Role must be one of: {', '.join(r.value for r in UserRole)}", field="role"
            )

        # Keeps at least the acting admin in place
        if user_id == acting_user_id:
            raise PermissionDeniedError("You cannot change your own role")

        user = self._store.update_role(user_id, role)
        if user is None:
            raise UserNotFoundError(user_id)

        logger.info(f"Role of user {user_id} set to {role.value} by {acting_user_id}")
        return user

    # =========================================================================
    # HELPERS
    # =========================================================================

    def _deliver(self, send: Callable[[str, str, str], None], to_email: str, to_name: str, token: str) -> None:
        """Send a mail best-effort: delivery failures are logged, not raised."""
        try:
            send(to_email, to_name, token)
        except MailDeliveryError as e:
            logger.warning(f"Error sending email to {to_email}: {e.reason}")

    @staticmethod
    def _validate_name(name: str) -> str:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Name is required", field="name")
        if len(name) > MAX_NAME_LENGTH:
            raise ValidationError(f"Name must be at most {MAX_NAME_LENGTH} characters", field="name")
        return name

    @staticmethod
    def _validate_email(email: str) -> str:
        email = (email or "").strip()
        if not email:
            raise ValidationError("Email is required", field="email")
        try:
            result = validate_email(email, check_deliverability=False)
        except EmailNotValidError:
            raise ValidationError("Email is invalid", field="email")
        return result.normalized.lower()

    @staticmethod
    def _validate_new_password(password: str, confirm_password: str) -> None:
        if not password:
            raise EmptyPasswordError()
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must contain {MIN_PASSWORD_LENGTH} characters",
                field="password",
            )
        if password != confirm_password:
            raise ValidationError("Passwords do not match", field="confirm_password")
