# account_service/main.py
"""
Application factory.

create_app(settings) wires one service instance: logging, the AppContext
(engine, hashing pool, token service, mailer), middleware, routers, /health
and the handlers that turn service exceptions into the
{"status": "fail", "message": ...} envelope.

Run:
    uvicorn account_service.main:create_app --factory
    # or
    account-service
"""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import APIRouter, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from starlette.exceptions import HTTPException as StarletteHTTPException

from account_service.config import Settings, get_settings
from account_service.database import check_database_health, init_db
from account_service.dependencies import AppContext, build_context
from account_service.middleware import (
    CorrelationIdMiddleware,
    limiter,
    rate_limit_exceeded_handler,
    SlowAPIMiddleware,
    RATE_LIMIT_HEALTH,
)
from account_service.routers import auth_router, users_router
from account_service.schemas.errors import ErrorResponse
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
    HashingCapacityError,
    StoreUnavailableError,
)
from account_service.utils import setup_logging

logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR = "Server error"


def _fail(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(message=message).model_dump(),
        headers=headers,
    )


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================
# Handlers convert service-layer exceptions to the {"status": "fail",
# "message": ...} envelope. Starlette resolves the most specific handler
# along the exception's MRO.
# =============================================================================


async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    """Handle service validation errors (400)."""
    logger.info(f"Validation error on field '{exc.field}': {exc.message}")
    return _fail(400, exc.message)


async def duplicate_email_handler(request: Request, exc: DuplicateEmailError) -> JSONResponse:
    """Handle email uniqueness violations (409)."""
    logger.warning("Registration attempt with existing email")
    return _fail(409, exc.message)


async def user_not_found_handler(request: Request, exc: UserNotFoundError) -> JSONResponse:
    """Handle lookups of unknown user ids (404)."""
    logger.info(f"User not found: {exc.user_id}")
    return _fail(404, exc.message)


async def invalid_credentials_handler(request: Request, exc: InvalidCredentialsError) -> JSONResponse:
    """Handle failed logins (400)."""
    logger.warning("Invalid credentials attempt")
    return _fail(400, exc.message)


async def invalid_token_handler(request: Request, exc: InvalidTokenError) -> JSONResponse:
    """Handle unknown / consumed verification tokens (400)."""
    logger.warning("Invalid verification token used")
    return _fail(400, exc.message)


async def token_expired_handler(request: Request, exc: TokenExpiredError) -> JSONResponse:
    """
    Handle expired tokens.

    An expired session is an authentication failure (401); an expired
    verification or reset link is a bad request (400).
    """
    logger.warning(f"Expired token used: {exc.token_type}")
    if exc.token_type == "session":
        return _fail(401, exc.message, headers={"WWW-Authenticate": "Bearer"})
    return _fail(400, exc.message)


async def authentication_error_handler(request: Request, exc: AuthenticationError) -> JSONResponse:
    """Handle missing, forged or orphaned session tokens (401)."""
    logger.warning(f"Authentication error: {exc}")
    return _fail(401, exc.message, headers={"WWW-Authenticate": "Bearer"})


async def permission_denied_handler(request: Request, exc: PermissionDeniedError) -> JSONResponse:
    """Handle role checks (403)."""
    return _fail(403, exc.message)


async def hashing_capacity_handler(request: Request, exc: HashingCapacityError) -> JSONResponse:
    """Handle a saturated hashing pool (503, retryable)."""
    logger.warning(f"Hashing pool saturated: {exc}")
    return _fail(503, "Service temporarily unavailable, please retry", headers={"Retry-After": "1"})


async def credential_error_handler(request: Request, exc: CredentialError) -> JSONResponse:
    """Handle hashing faults and corrupt stored hashes (500)."""
    logger.error(f"Credential error: {exc}")
    return _fail(500, exc.message)


async def store_unavailable_handler(request: Request, exc: StoreUnavailableError) -> JSONResponse:
    """Handle storage failures (500). Details stay in the log."""
    logger.error(f"Store unavailable during '{exc.operation}': {exc.reason}")
    return _fail(500, GENERIC_SERVER_ERROR)


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    """Handle any other service error (500)."""
    logger.error(f"Service error: {exc}")
    return _fail(500, GENERIC_SERVER_ERROR)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Convert FastAPI/Starlette HTTP errors (404, 405, ...) to the envelope."""
    message = str(exc.detail) if exc.detail else "An error occurred"
    return _fail(exc.status_code, message, headers=getattr(exc, "headers", None))


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """
    Handle Pydantic request validation errors (400).

    Reports the first failing field as "<field>: <reason>".
    """
    errors = exc.errors()
    if not errors:
        return _fail(400, "Request validation failed")

    first = errors[0]
    location = [str(loc) for loc in first.get("loc", ()) if loc not in ("body", "query")]
    field = ".".join(location)
    message = f"{field}: {first['msg']}" if field else first["msg"]
    return _fail(400, message)


def _register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(DuplicateEmailError, duplicate_email_handler)
    app.add_exception_handler(UserNotFoundError, user_not_found_handler)
    app.add_exception_handler(InvalidCredentialsError, invalid_credentials_handler)
    app.add_exception_handler(InvalidTokenError, invalid_token_handler)
    app.add_exception_handler(TokenExpiredError, token_expired_handler)
    app.add_exception_handler(AuthenticationError, authentication_error_handler)
    app.add_exception_handler(PermissionDeniedError, permission_denied_handler)
    app.add_exception_handler(HashingCapacityError, hashing_capacity_handler)
    app.add_exception_handler(CredentialError, credential_error_handler)
    app.add_exception_handler(StoreUnavailableError, store_unavailable_handler)
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)


# =============================================================================
# HEALTH
# =============================================================================

health_router = APIRouter(tags=["Health"])


@health_router.get("/health")
@limiter.limit(RATE_LIMIT_HEALTH)
def health_check(request: Request):
    """
    Health check for load balancers.

    Returns HTTP 503 when the database is unreachable; hashing pool
    counters are reported for monitoring.
    """
    ctx: AppContext = request.app.state.context
    database = check_database_health(ctx.engine)
    stats = ctx.hashing_executor.stats

    response_data = {
        "status": database["status"],
        "checks": {
            "database": database,
            "hashing": {
                "submitted": stats.submitted,
                "completed": stats.completed,
                "rejected": stats.rejected,
                "timed_out": stats.timed_out,
            },
        },
    }

    if database["status"] != "healthy":
        return JSONResponse(status_code=503, content=response_data)
    return response_data


# =============================================================================
# APPLICATION FACTORY
# =============================================================================


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        settings: Settings to use; loaded from the environment when omitted

    Returns:
        Configured FastAPI app with ``app.state.context`` populated
    """
    settings = settings or get_settings()
    setup_logging(settings.log_level, settings.log_format)

    context = build_context(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        init_db(context.engine)
        logger.info(f"{settings.app_name} started ({settings.environment})")
        yield
        context.close()
        logger.info(f"{settings.app_name} stopped")

    app = FastAPI(
        title=settings.app_name,
        description="User accounts: registration, login, email verification and password reset",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.context = context

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=settings.cors_allow_credentials,
        allow_methods=settings.cors_allow_methods,
        allow_headers=settings.cors_allow_headers,
    )

    # Middleware order matters: last added = first executed
    limiter.enabled = settings.rate_limit_enabled
    app.state.limiter = limiter
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(CorrelationIdMiddleware)

    _register_exception_handlers(app)

    app.include_router(auth_router)  # /register, /login, ...
    app.include_router(users_router)  # /users/*
    app.include_router(health_router)  # /health

    return app


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "account_service.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
    )
