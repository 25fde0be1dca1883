#!/usr/bin/env python3
# init_db.py
"""
Database initialization script.

Creates the users and verification_tokens tables for the configured
DATABASE_URL:
    python init_db.py
"""

from account_service.config import get_settings
from account_service.database import build_engine, init_db


def main() -> None:
    """Create all database tables defined in models."""
    settings = get_settings()
    engine = build_engine(settings)
    print("Creating database tables...")
    init_db(engine)
    engine.dispose()
    print("Tables created successfully!")


if __name__ == "__main__":
    main()
