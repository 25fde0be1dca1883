# tests/conftest.py
"""
Pytest configuration and fixtures.

This module provides shared fixtures for all tests:
- Test settings (cheap argon2 parameters, rate limiting off)
- Database fixtures (in-memory SQLite)
- Credential services (hasher, hashing pool, token service)
- A mocked mail sender
- The FastAPI app and TestClient
- Factories for seeding users and session tokens
"""

import os

# Set required environment variables BEFORE importing app modules
os.environ.setdefault("ENVIRONMENT", "test")

from typing import Callable, Iterator
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session, sessionmaker

from account_service.config import Settings
from account_service.database import build_engine, build_session_factory, init_db
from account_service.main import create_app
from account_service.models import Base, User, UserRole
from account_service.repositories import SqlAlchemyUserStore
from account_service.services.auth import (
    AccountCredentialWorkflow,
    EmailService,
    HashingExecutor,
    PasswordHasher,
    TokenService,
)


TEST_PASSWORD = "password123"


# =============================================================================
# SETTINGS
# =============================================================================

@pytest.fixture
def settings() -> Settings:
    """Test settings: in-memory SQLite, fast hashing, no rate limits."""
    return Settings(
        environment="test",
        log_level="WARNING",
        rate_limit_enabled=False,
        argon2_time_cost=1,
        argon2_memory_cost=1024,
        argon2_parallelism=1,
        hashing_max_workers=2,
        hashing_max_pending=8,
    )


# =============================================================================
# DATABASE FIXTURES
# =============================================================================

@pytest.fixture(scope="function")
def db_engine(settings: Settings):
    """Create an in-memory SQLite database engine for testing."""
    engine = build_engine(settings)
    init_db(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope="function")
def session_factory(db_engine) -> sessionmaker[Session]:
    return build_session_factory(db_engine)


@pytest.fixture(scope="function")
def db(session_factory) -> Iterator[Session]:
    """Create a database session for testing."""
    session = session_factory()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def store(db: Session) -> SqlAlchemyUserStore:
    return SqlAlchemyUserStore(db)


# =============================================================================
# CREDENTIAL SERVICES
# =============================================================================

@pytest.fixture(scope="session")
def hasher() -> PasswordHasher:
    """Hasher with the same cheap parameters as the test settings."""
    return PasswordHasher(time_cost=1, memory_cost=1024, parallelism=1)


@pytest.fixture
def executor() -> Iterator[HashingExecutor]:
    pool = HashingExecutor(max_workers=2, max_pending=8)
    yield pool
    pool.shutdown()


@pytest.fixture
def token_service() -> TokenService:
    return TokenService()


@pytest.fixture
def mail_sender() -> MagicMock:
    """Mail sender double; assert on its calls to read sent tokens."""
    return MagicMock(spec=EmailService)


@pytest.fixture
def workflow(
    settings: Settings,
    store: SqlAlchemyUserStore,
    hasher: PasswordHasher,
    executor: HashingExecutor,
    token_service: TokenService,
    mail_sender: MagicMock,
) -> AccountCredentialWorkflow:
    return AccountCredentialWorkflow(
        settings=settings,
        store=store,
        hasher=hasher,
        executor=executor,
        tokens=token_service,
        mailer=mail_sender,
    )


# =============================================================================
# APPLICATION FIXTURES
# =============================================================================

@pytest.fixture
def app(settings: Settings, mail_sender: MagicMock) -> FastAPI:
    application = create_app(settings)
    application.state.context.mail_sender = mail_sender
    return application


@pytest.fixture
def client(app: FastAPI) -> Iterator[TestClient]:
    """TestClient running the app lifespan (tables are created on startup)."""
    with TestClient(app) as c:
        yield c


# =============================================================================
# FACTORIES
# =============================================================================

@pytest.fixture
def create_user(app: FastAPI) -> Callable[..., User]:
    """
    Factory that inserts a user directly into the app's database.

    Usage:
        user = create_user(email="alice@example.com", verified=False)
    """
    context = app.state.context
    init_db(context.engine)

    def _create_user(
        name: str = "Test User",
        email: str = "test@example.com",
        password: str = TEST_PASSWORD,
        verified: bool = True,
        role: UserRole = UserRole.USER,
    ) -> User:
        with context.session_factory() as session:
            user = User(
                name=name,
                email=email.lower(),
                password=context.hasher.hash(password),
                verified=verified,
                role=role,
            )
            session.add(user)
            session.commit()
            session.refresh(user)
            return user

    return _create_user


@pytest.fixture
def auth_headers(app: FastAPI) -> Callable[[User], dict[str, str]]:
    """Factory for Authorization headers carrying a valid session token."""
    context = app.state.context

    def _auth_headers(user: User) -> dict[str, str]:
        token = context.token_service.issue(
            user.id,
            context.settings.jwt_secret,
            context.settings.jwt_expire_minutes,
        )
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers
