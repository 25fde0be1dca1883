# account_service/database.py
"""
Engine, sessions and table creation for the user database.

SQLite (tests, local runs) gets one shared connection through StaticPool so
an in-memory database survives across the threads that serve sync routes.
Anything else gets a pre-pinged QueuePool sized from settings.

Nothing is created at import time: build_context() makes the engine and
session factory from its Settings and keeps them on the AppContext.
"""

import logging
from collections.abc import Generator

from fastapi import Request
from sqlalchemy import Engine, create_engine, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import QueuePool, StaticPool

from account_service.config import Settings
from account_service.models import Base

logger = logging.getLogger(__name__)


def build_engine(settings: Settings) -> Engine:
    if settings.is_sqlite:
        logger.info("Database: SQLite on a single shared connection")
        return create_engine(
            settings.database_url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
            echo=settings.debug,
        )

    logger.info(f"Database pool: {settings.db_pool_size} connections + {settings.db_pool_max_overflow} overflow")
    return create_engine(
        settings.database_url,
        poolclass=QueuePool,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_pool_max_overflow,
        pool_pre_ping=True,
        pool_timeout=30,
        echo=settings.debug,
    )


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=engine)


def init_db(engine: Engine) -> None:
    """Create all tables defined in models (idempotent)."""
    Base.metadata.create_all(bind=engine)


def get_db(request: Request) -> Generator[Session, None, None]:
    """One session per request, closed when the response is done."""
    db = request.app.state.context.session_factory()
    try:
        yield db
    finally:
        db.close()


def check_database_health(engine: Engine) -> dict:
    """Round-trip a SELECT 1; {"status": "healthy" | "unhealthy"}."""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return {"status": "healthy"}
    except SQLAlchemyError as exc:
        logger.error(f"Health check query failed: {exc}")
        return {"status": "unhealthy"}
