# account_service/services/exceptions.py
"""
Service layer exceptions.

These exceptions represent domain-specific errors and contain NO HTTP knowledge.
The application layer (main.py) maps them to HTTP responses.

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError
    │   ├── EmptyPasswordError
    │   └── PasswordTooLongError
    ├── DuplicateEmailError
    ├── UserNotFoundError
    ├── AuthenticationError
    │   ├── InvalidCredentialsError
    │   ├── InvalidTokenError
    │   ├── TokenExpiredError
    │   ├── InvalidSignatureError
    │   ├── TokenNotProvidedError
    │   └── UserNoLongerExistsError
    ├── PermissionDeniedError
    ├── CredentialError
    │   ├── HashingError
    │   │   └── HashingCapacityError
    │   └── MalformedHashError
    ├── StoreUnavailableError
    └── MailDeliveryError
"""


class ServiceError(Exception):
    """
    Base exception for all service layer errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(ServiceError):
    """
    Raised when input validation fails in the service layer.

    Attributes:
        field: The field that failed validation (optional)
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        self.field = field
        super().__init__(message)


class EmptyPasswordError(ValidationError):
    """Raised when a zero-length password reaches the hasher."""

    def __init__(self) -> None:
        super().__init__("Password is required", field="password")


class PasswordTooLongError(ValidationError):
    """
    Raised when a password exceeds the hashing input bound.

    Attributes:
        max_length: Maximum accepted length in bytes
    """

    def __init__(self, max_length: int) -> None:
        self.max_length = max_length
        super().__init__(f"Max password length is {max_length}", field="password")


class DuplicateEmailError(ServiceError):
    """Raised when the store reports an email uniqueness violation."""

    def __init__(self, email: str) -> None:
        self.email = email
        super().__init__("Email already exists")


class UserNotFoundError(ServiceError):
    """
    Raised when an operation targets a user id that does not exist.

    Attributes:
        user_id: The id that was looked up
    """

    def __init__(self, user_id: str) -> None:
        self.user_id = user_id
        super().__init__(f"User {user_id} not found")


# =============================================================================
# AUTHENTICATION ERRORS
# =============================================================================


class AuthenticationError(ServiceError):
    """Base exception for authentication failures."""

    def __init__(self, message: str = "User not authenticated") -> None:
        super().__init__(message)


class InvalidCredentialsError(AuthenticationError):
    """
    Raised on login failure.

    The message is the same whether the email is unknown or the password
    is wrong.
    """

    def __init__(self, message: str = "Wrong credentials provided") -> None:
        super().__init__(message)


class InvalidTokenError(AuthenticationError):
    """Raised when a verification token is unknown, consumed or superseded."""

    def __init__(self, message: str = "Invalid token") -> None:
        super().__init__(message)


class TokenExpiredError(AuthenticationError):
    """
    Raised when a session or verification token has expired.

    Attributes:
        token_type: "session", "email_verification" or "password_reset"
    """

    def __init__(self, message: str = "Token has expired", token_type: str = "session") -> None:
        self.token_type = token_type
        super().__init__(message)


class InvalidSignatureError(AuthenticationError):
    """Raised when a session token fails signature or format checks."""

    def __init__(self, message: str = "Invalid token") -> None:
        super().__init__(message)


class TokenNotProvidedError(AuthenticationError):
    """Raised when a protected endpoint is called without a session token."""

    def __init__(self) -> None:
        super().__init__("Token not provided")


class UserNoLongerExistsError(AuthenticationError):
    """Raised when a valid session token names a user that is gone."""

    def __init__(self) -> None:
        super().__init__("User no longer exist")


class PermissionDeniedError(ServiceError):
    """Raised when an authenticated user lacks the required role."""

    def __init__(self, message: str = "Permission denied") -> None:
        super().__init__(message)


# =============================================================================
# CREDENTIAL (HASHING) ERRORS
# =============================================================================


class CredentialError(ServiceError):
    """Base exception for password hashing infrastructure faults."""
    pass


class HashingError(CredentialError):
    """Raised when the hashing backend fails to produce a hash."""

    def __init__(self, message: str = "Hashing error") -> None:
        super().__init__(message)


class HashingCapacityError(HashingError):
    """
    Raised when the hashing pool cannot accept or finish work in time.

    This is a retryable error.
    """

    def __init__(self, message: str = "Password hashing is at capacity") -> None:
        super().__init__(message)


class MalformedHashError(CredentialError):
    """Raised when a stored hash cannot be parsed."""

    def __init__(self) -> None:
        super().__init__("Invalid hash format")


# =============================================================================
# COLLABORATOR ERRORS
# =============================================================================


class StoreUnavailableError(ServiceError):
    """
    Raised for any user store failure other than a uniqueness violation.

    Attributes:
        operation: Store operation that failed
    """

    def __init__(self, operation: str, reason: str | None = None) -> None:
        self.operation = operation
        self.reason = reason
        super().__init__(f"User store operation '{operation}' failed")


class MailDeliveryError(ServiceError):
    """
    Raised by the mail sender when a message cannot be delivered.

    Never surfaced to clients; the workflow logs and swallows it.
    """

    def __init__(self, recipient: str, reason: str) -> None:
        self.recipient = recipient
        self.reason = reason
        super().__init__(f"Failed to send email to {recipient}: {reason}")


__all__ = [
    # Base
    "ServiceError",
    # Validation
    "ValidationError",
    "EmptyPasswordError",
    "PasswordTooLongError",
    "DuplicateEmailError",
    "UserNotFoundError",
    # Authentication
    "AuthenticationError",
    "InvalidCredentialsError",
    "InvalidTokenError",
    "TokenExpiredError",
    "InvalidSignatureError",
    "TokenNotProvidedError",
    "UserNoLongerExistsError",
    "PermissionDeniedError",
    # Credentials
    "CredentialError",
    "HashingError",
    "HashingCapacityError",
    "MalformedHashError",
    # Collaborators
    "StoreUnavailableError",
    "MailDeliveryError",
]
