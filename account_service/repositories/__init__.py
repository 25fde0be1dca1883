"""
Persistence adapters.

Usage:
    from account_service.repositories import SqlAlchemyUserStore

    store = SqlAlchemyUserStore(db)
    user = store.find_user(email="user@example.com")
"""

from account_service.repositories.users import SqlAlchemyUserStore

__all__ = ["SqlAlchemyUserStore"]
