# account_service/routers/auth.py
"""
Account lifecycle endpoints: sign-up, sign-in, sign-out and the two
emailed-link flows (verification, password reset).

    POST /register              create an unverified account, mail a link
    POST /login                 session JWT in the body and the `token` cookie
    POST /logout                expire the cookie
    GET  /verify-email?token=   spend a verification link
    POST /resend-verification   replace the verification link
    POST /forgot-password       mail a reset link
    POST /reset-password        spend a reset link, set a new password

The mail-sending endpoints give the same answer whether or not the address
belongs to an account.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from fastapi.responses import JSONResponse

from account_service.config import Settings
from account_service.dependencies import get_settings_dep, get_workflow
from account_service.middleware.rate_limit import (
    limiter,
    RATE_LIMIT_AUTH_LOGIN,
    RATE_LIMIT_AUTH_REGISTER,
    RATE_LIMIT_AUTH_PASSWORD_RESET,
    RATE_LIMIT_AUTH_EMAIL,
)
from account_service.schemas.auth import (
    RegisterRequest,
    LoginRequest,
    ResendVerificationRequest,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    MessageResponse,
    LoginResponse,
)
from account_service.services.auth import AccountCredentialWorkflow
from account_service.utils.cookies import set_session_cookie, clear_session_cookie


router = APIRouter(tags=["Authentication"])


# =============================================================================
# REGISTRATION & LOGIN
# =============================================================================


@router.post(
    "/register",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
    description="Create an unverified account. A verification email is sent.",
)
@limiter.limit(RATE_LIMIT_AUTH_REGISTER)
def register(
    request: Request,  # slowapi reads the client from here
    data: RegisterRequest,
    workflow: Annotated[AccountCredentialWorkflow, Depends(get_workflow)],
) -> MessageResponse:
    workflow.register(
        name=data.name,
        email=data.email,
        password=data.password,
        confirm_password=data.confirm_password,
    )
    return MessageResponse(
        message="Registration successful! Please check your email to verify your account."
    )


@router.post(
    "/login",
    response_model=LoginResponse,
    summary="Start a session",
    description=(
        "Authenticate with email and password. The session token is returned "
        "in the body and set as an httpOnly cookie."
    ),
)
@limiter.limit(RATE_LIMIT_AUTH_LOGIN)
def login(
    request: Request,
    data: LoginRequest,
    workflow: Annotated[AccountCredentialWorkflow, Depends(get_workflow)],
    settings: Annotated[Settings, Depends(get_settings_dep)],
) -> JSONResponse:
    result = workflow.login(email=data.email, password=data.password)

    response = JSONResponse(content=LoginResponse(token=result.token).model_dump())
    set_session_cookie(response, result.token, settings)
    return response


@router.post(
    "/logout",
    response_model=MessageResponse,
    summary="End the session",
    description="Clear the session cookie.",
)
def logout(
    settings: Annotated[Settings, Depends(get_settings_dep)],
) -> JSONResponse:
    response = JSONResponse(
        content=MessageResponse(message="Successfully logged out").model_dump()
    )
    clear_session_cookie(response, settings)
    return response


# =============================================================================
# EMAIL VERIFICATION
# =============================================================================


@router.get(
    "/verify-email",
    response_model=MessageResponse,
    summary="Confirm an email address",
    description="Consume the single-use token from the verification email.",
)
@limiter.limit(RATE_LIMIT_AUTH_EMAIL)
def verify_email(
    request: Request,
    workflow: Annotated[AccountCredentialWorkflow, Depends(get_workflow)],
    token: Annotated[str, Query(description="Email verification token")] = "",
) -> MessageResponse:
    workflow.verify_email(token)
    return MessageResponse(message="Email verified successfully")


@router.post(
    "/resend-verification",
    response_model=MessageResponse,
    summary="Send a fresh verification link",
    description="Issue a new verification link; the previous one stops working.",
)
@limiter.limit(RATE_LIMIT_AUTH_EMAIL)
def resend_verification(
    request: Request,
    data: ResendVerificationRequest,
    workflow: Annotated[AccountCredentialWorkflow, Depends(get_workflow)],
) -> MessageResponse:
    workflow.resend_verification(data.email)
    return MessageResponse(message="If that email exists, a verification link has been sent")


# =============================================================================
# PASSWORD RESET
# =============================================================================


@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    summary="Send a password reset link",
    description="Send a password reset link. Answers the same way for unknown emails.",
)
@limiter.limit(RATE_LIMIT_AUTH_PASSWORD_RESET)
def forgot_password(
    request: Request,
    data: ForgotPasswordRequest,
    workflow: Annotated[AccountCredentialWorkflow, Depends(get_workflow)],
) -> MessageResponse:
    workflow.forgot_password(data.email)
    return MessageResponse(message="If that email exists, a password reset link has been sent")


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    summary="Set a new password from a reset link",
    description="Set a new password using the single-use token from the reset email.",
)
@limiter.limit(RATE_LIMIT_AUTH_PASSWORD_RESET)
def reset_password(
    request: Request,
    data: ResetPasswordRequest,
    workflow: Annotated[AccountCredentialWorkflow, Depends(get_workflow)],
) -> MessageResponse:
    workflow.reset_password(
        token=data.token,
        password=data.password,
        confirm_password=data.confirm_password,
    )
    return MessageResponse(message="Password reset successfully")
