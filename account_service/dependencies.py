# account_service/dependencies.py
"""
Dependency injection for FastAPI routes.

Long-lived collaborators (engine, hashing pool, token service, mail sender)
are built once by ``build_context`` and stored on ``app.state.context``.
Request-scoped objects (database session, user store, workflow) are built
per request from that context.

Usage in routers:
    from account_service.dependencies import get_workflow, get_current_user

    @router.get("/users/me")
    def get_me(
        current_user: UserIdentity = Depends(get_current_user),
    ):
        ...
"""

import logging
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import Engine
from sqlalchemy.orm import Session, sessionmaker

from account_service.config import Settings
from account_service.database import build_engine, build_session_factory, get_db
from account_service.repositories import SqlAlchemyUserStore
from account_service.services.auth import (
    AccountCredentialWorkflow,
    EmailService,
    HashingExecutor,
    PasswordHasher,
    TokenService,
)
from account_service.services.auth.types import UserIdentity
from account_service.services.exceptions import PermissionDeniedError
from account_service.services.protocols import MailSender
from account_service.utils.cookies import get_session_token_from_cookie

logger = logging.getLogger(__name__)

# auto_error=False: the token may come from the cookie instead
_bearer_scheme = HTTPBearer(auto_error=False)


# =============================================================================
# APPLICATION CONTEXT
# =============================================================================


@dataclass
class AppContext:
    """
    Process-wide collaborators shared by all requests.

    Attributes:
        settings: Application settings
        engine: SQLAlchemy engine
        session_factory: Builds one Session per request
        hasher: Argon2 password hasher
        hashing_executor: Bounded pool that runs the hasher
        token_service: Session JWT issuer/validator
        mail_sender: Account email delivery
    """
    settings: Settings
    engine: Engine
    session_factory: sessionmaker[Session]
    hasher: PasswordHasher
    hashing_executor: HashingExecutor
    token_service: TokenService
    mail_sender: MailSender

    def close(self) -> None:
        self.hashing_executor.shutdown()
        self.engine.dispose()


def build_context(settings: Settings) -> AppContext:
    """Build the application context from settings."""
    engine = build_engine(settings)
    return AppContext(
        settings=settings,
        engine=engine,
        session_factory=build_session_factory(engine),
        hasher=PasswordHasher(
            time_cost=settings.argon2_time_cost,
            memory_cost=settings.argon2_memory_cost,
            parallelism=settings.argon2_parallelism,
        ),
        hashing_executor=HashingExecutor(
            max_workers=settings.hashing_max_workers,
            max_pending=settings.hashing_max_pending,
            queue_timeout=settings.hashing_queue_timeout_seconds,
            result_timeout=settings.hashing_result_timeout_seconds,
        ),
        token_service=TokenService(
            algorithm=settings.jwt_algorithm,
            leeway_seconds=settings.jwt_clock_skew_seconds,
        ),
        mail_sender=EmailService(settings),
    )


# =============================================================================
# REQUEST-SCOPED DEPENDENCIES
# =============================================================================


def get_context(request: Request) -> AppContext:
    return request.app.state.context


def get_settings_dep(context: Annotated[AppContext, Depends(get_context)]) -> Settings:
    return context.settings


def get_user_store(db: Annotated[Session, Depends(get_db)]) -> SqlAlchemyUserStore:
    return SqlAlchemyUserStore(db)


def get_workflow(
    context: Annotated[AppContext, Depends(get_context)],
    store: Annotated[SqlAlchemyUserStore, Depends(get_user_store)],
) -> AccountCredentialWorkflow:
    """Build the credential workflow for this request."""
    return AccountCredentialWorkflow(
        settings=context.settings,
        store=store,
        hasher=context.hasher,
        executor=context.hashing_executor,
        tokens=context.token_service,
        mailer=context.mail_sender,
    )


def get_current_user(
    request: Request,
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(_bearer_scheme)],
    workflow: Annotated[AccountCredentialWorkflow, Depends(get_workflow)],
) -> UserIdentity:
    """
    Dependency that resolves the signed-in user from the session token.

    The token is read from the `token` cookie, falling back to an
    `Authorization: Bearer` header.

    Raises:
        TokenNotProvidedError: No token in cookie or header (401)
        TokenExpiredError: Session expired (401)
        InvalidSignatureError: Forged or malformed token (401)
        UserNoLongerExistsError: User was deleted (401)
    """
    token = get_session_token_from_cookie(request.cookies)
    if token is None and credentials is not None:
        token = credentials.credentials
    return workflow.authenticate(token)


def require_admin(
    current_user: Annotated[UserIdentity, Depends(get_current_user)],
) -> UserIdentity:
    """
    Dependency that only lets admin users through.

    Raises:
        PermissionDeniedError: If the user is not an admin (403)
    """
    if not current_user.is_admin:
        logger.info(f"Admin access denied for user {current_user.id}")
        raise PermissionDeniedError()
    return current_user
