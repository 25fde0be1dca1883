# account_service/services/__init__.py
"""
Account logic, independent of the web layer.

Nothing under services/ imports FastAPI or knows a status code; failures
are ServiceError subclasses that main.py maps to responses. Collaborators
(store, mailer, hashing pool) arrive through constructors.

Layout:
    services/
    ├── __init__.py          # Re-exports
    ├── exceptions.py        # Domain exceptions
    ├── protocols.py         # Collaborator interfaces (Protocol classes)
    └── auth/                # Credential & token subsystem
        ├── password.py      # Argon2 hashing
        ├── hashing_pool.py  # Bounded hashing executor
        ├── jwt_handler.py   # Session tokens
        ├── verification.py  # Verification / reset tokens
        ├── email_service.py # Account emails
        ├── types.py         # Shared data types
        └── service.py       # AccountCredentialWorkflow
"""

from account_service.services.exceptions import (
    ServiceError,
    ValidationError,
    DuplicateEmailError,
    UserNotFoundError,
    AuthenticationError,
    InvalidCredentialsError,
    InvalidTokenError,
    TokenExpiredError,
    PermissionDeniedError,
    CredentialError,
    StoreUnavailableError,
    MailDeliveryError,
)
from account_service.services.protocols import UserStore, MailSender

__all__ = [
    "ServiceError",
    "ValidationError",
    "DuplicateEmailError",
    "UserNotFoundError",
    "AuthenticationError",
    "InvalidCredentialsError",
    "InvalidTokenError",
    "TokenExpiredError",
    "PermissionDeniedError",
    "CredentialError",
    "StoreUnavailableError",
    "MailDeliveryError",
    "UserStore",
    "MailSender",
]
