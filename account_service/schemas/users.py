"""
User profile request/response schemas.
"""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from account_service.models import UserRole
from account_service.services.auth.password import MAX_PASSWORD_LENGTH


class UserResponse(BaseModel):
    """
    Public view of a user.

    Built from a UserIdentity; credential and token fields are never exposed.
    """

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    email: str
    role: UserRole
    verified: bool
    created_at: datetime | None = None
    updated_at: datetime | None = None


class UserData(BaseModel):
    user: UserResponse


class UserEnvelope(BaseModel):
    """Response body for a single user: {status, data: {user}}."""

    status: str = "success"
    data: UserData


class UserListResponse(BaseModel):
    """Response body for the admin user listing."""

    status: str = "success"
    users: list[UserResponse]
    results: int = Field(..., description="Total number of users")


class NameUpdateRequest(BaseModel):
    name: str = Field(..., max_length=100, examples=["Jane Doe"])


class PasswordUpdateRequest(BaseModel):
    """Request body for changing the password of the signed-in user."""

    old_password: str = Field(..., description="Current password")
    password: str = Field(
        ...,
        min_length=8,
        max_length=MAX_PASSWORD_LENGTH,
        description="New password (min 8 characters)",
    )
    confirm_password: str = Field(..., description="Must match password")


class RoleUpdateRequest(BaseModel):
    """Request body for an admin changing another user's role."""

    role: UserRole = Field(..., examples=["admin"])
