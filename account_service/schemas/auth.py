"""
Authentication request/response schemas.

Defines Pydantic models for:
- User registration
- Login
- Email verification resend
- Password reset
"""

from pydantic import BaseModel, EmailStr, Field

from account_service.services.auth.password import MAX_PASSWORD_LENGTH


# =============================================================================
# REQUEST SCHEMAS
# =============================================================================


class RegisterRequest(BaseModel):
    """Request body for user registration."""

    name: str = Field(
        ...,
        max_length=100,
        description="Display name",
        examples=["Jane Doe"],
    )
    email: EmailStr = Field(
        ...,
        description="User's email address",
        examples=["user@example.com"],
    )
    password: str = Field(
        ...,
        min_length=8,
        max_length=MAX_PASSWORD_LENGTH,
        description="Password (min 8 characters)",
        examples=["MySecurePassword123!"],
    )
    confirm_password: str = Field(
        ...,
        description="Must match password",
        examples=["MySecurePassword123!"],
    )


class LoginRequest(BaseModel):
    """Request body for user login."""

    email: EmailStr = Field(
        ...,
        description="User's email address",
        examples=["user@example.com"],
    )
    password: str = Field(
        ...,
        description="User's password",
        examples=["MySecurePassword123!"],
    )


class ResendVerificationRequest(BaseModel):
    """Request body for resending the verification email."""

    email: EmailStr = Field(..., examples=["user@example.com"])


class ForgotPasswordRequest(BaseModel):
    """Request body for requesting a password reset email."""

    email: EmailStr = Field(..., examples=["user@example.com"])


class ResetPasswordRequest(BaseModel):
    """Request body for setting a new password with a reset token."""

    token: str = Field(..., description="Password reset token")
    password: str = Field(
        ...,
        min_length=8,
        max_length=MAX_PASSWORD_LENGTH,
        description="New password (min 8 characters)",
    )
    confirm_password: str = Field(..., description="Must match password")


# =============================================================================
# RESPONSE SCHEMAS
# =============================================================================


class MessageResponse(BaseModel):
    """Generic success response with a message."""

    status: str = "success"
    message: str


class LoginResponse(BaseModel):
    """
    Response body for login.

    The same token is also set as the httpOnly `token` cookie.
    """

    status: str = "success"
    token: str
