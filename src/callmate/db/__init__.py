"""Database module for Call Mate.

Provides:
- SQLAlchemy ORM models for all data entities
- Async session management with dependency injection
- Repository pattern for data access
"""
from callmate.db.base import Base, CreatedAtMixin, TimestampMixin, UUIDMixin
from callmate.db.session import (
    build_session_factory,
    close_db,
    create_test_engine,
    get_db,
    get_db_context,
    get_engine,
    get_session_factory,
    init_db,
)

__all__ = [
    # Base and mixins
    "Base",
    "CreatedAtMixin",
    "TimestampMixin",
    "UUIDMixin",
    # Session management
    "build_session_factory",
    "close_db",
    "create_test_engine",
    "get_db",
    "get_db_context",
    "get_engine",
    "get_session_factory",
    "init_db",
]
