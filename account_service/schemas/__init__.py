"""
Pydantic schemas for request/response validation.
"""

from account_service.schemas.auth import (
    RegisterRequest,
    LoginRequest,
    ResendVerificationRequest,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    MessageResponse,
    LoginResponse,
)
from account_service.schemas.users import (
    UserResponse,
    UserData,
    UserEnvelope,
    UserListResponse,
    NameUpdateRequest,
    PasswordUpdateRequest,
)
from account_service.schemas.errors import ErrorResponse

__all__ = [
    "RegisterRequest",
    "LoginRequest",
    "ResendVerificationRequest",
    "ForgotPasswordRequest",
    "ResetPasswordRequest",
    "MessageResponse",
    "LoginResponse",
    "UserResponse",
    "UserData",
    "UserEnvelope",
    "UserListResponse",
    "NameUpdateRequest",
    "PasswordUpdateRequest",
    "ErrorResponse",
]
