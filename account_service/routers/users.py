# account_service/routers/users.py
"""
User profile endpoints.

Provides:
- GET /users/me - Current user profile
- PATCH /users/me/name - Change display name
- PUT /users/me/password - Change password
- GET /users - List users (admin only)
- PATCH /users/{user_id}/role - Change a user's role (admin only)
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from account_service.dependencies import get_current_user, get_workflow, require_admin
from account_service.schemas.auth import MessageResponse
from account_service.schemas.users import (
    NameUpdateRequest,
    PasswordUpdateRequest,
    RoleUpdateRequest,
    UserData,
    UserEnvelope,
    UserListResponse,
    UserResponse,
)
from account_service.services.auth import AccountCredentialWorkflow
from account_service.services.auth.service import MAX_PAGE_SIZE
from account_service.services.auth.types import UserIdentity


router = APIRouter(prefix="/users", tags=["Users"])


def _envelope(user: UserIdentity) -> UserEnvelope:
    return UserEnvelope(data=UserData(user=UserResponse.model_validate(user)))


@router.get(
    "/me",
    response_model=UserEnvelope,
    summary="Get current user",
)
def get_me(
    current_user: Annotated[UserIdentity, Depends(get_current_user)],
) -> UserEnvelope:
    return _envelope(current_user)


@router.patch(
    "/me/name",
    response_model=UserEnvelope,
    summary="Update display name",
)
def update_name(
    data: NameUpdateRequest,
    current_user: Annotated[UserIdentity, Depends(get_current_user)],
    workflow: Annotated[AccountCredentialWorkflow, Depends(get_workflow)],
) -> UserEnvelope:
    user = workflow.update_name(current_user.id, data.name)
    return _envelope(user)


@router.put(
    "/me/password",
    response_model=MessageResponse,
    summary="Change password",
    description="Requires the current password.",
)
def update_password(
    data: PasswordUpdateRequest,
    current_user: Annotated[UserIdentity, Depends(get_current_user)],
    workflow: Annotated[AccountCredentialWorkflow, Depends(get_workflow)],
) -> MessageResponse:
    workflow.change_password(
        current_user.id,
        old_password=data.old_password,
        password=data.password,
        confirm_password=data.confirm_password,
    )
    return MessageResponse(message="Password updated successfully")


@router.get(
    "",
    response_model=UserListResponse,
    summary="List users",
    description="Newest first. Admin only.",
)
def list_users(
    _admin: Annotated[UserIdentity, Depends(require_admin)],
    workflow: Annotated[AccountCredentialWorkflow, Depends(get_workflow)],
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=MAX_PAGE_SIZE)] = 10,
) -> UserListResponse:
    users, total = workflow.list_users(page, limit)
    return UserListResponse(
        users=[UserResponse.model_validate(user) for user in users],
        results=total,
    )


@router.patch(
    "/{user_id}/role",
    response_model=UserEnvelope,
    summary="Change a user's role",
    description="Admin only. Admins cannot change their own role.",
)
def update_role(
    user_id: str,
    data: RoleUpdateRequest,
    admin: Annotated[UserIdentity, Depends(require_admin)],
    workflow: Annotated[AccountCredentialWorkflow, Depends(get_workflow)],
) -> UserEnvelope:
    user = workflow.update_role(admin.id, user_id, data.role)
    return _envelope(user)
