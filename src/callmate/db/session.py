"""Database Session Management for Call Mate.

Provides:
- Async SQLAlchemy engine creation
- AsyncSession factory with dependency injection
- Database initialization and table creation
- Transaction context manager
"""
from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from callmate.config import get_settings
from callmate.db.base import Base


# Global engine and session factory (initialized lazily)
_engine: AsyncEngine | None = None
_session_factory: async_sessionmaker[AsyncSession] | None = None


def _configure_sqlite(engine: AsyncEngine) -> None:
    """Enforce foreign keys and let SQLAlchemy own BEGIN so savepoints work."""

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):  # noqa: ARG001
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def get_engine() -> AsyncEngine:
    """Get or create the async database engine.

    Returns:
        AsyncEngine instance configured from settings.

    Connection pooling:
        - SQLite (dev): default pool, FK pragma and explicit BEGIN
        - PostgreSQL (prod): pool_size=5, max_overflow=10, pool_timeout=30
    """
    global _engine

    if _engine is None:
        settings = get_settings()

        db_url = settings.database.url
        if "sqlite" in db_url and "///" in db_url:
            db_path = db_url.split("///")[1]
            if db_path != ":memory:":
                Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        if "sqlite" in db_url:
            _engine = create_async_engine(
                db_url,
                echo=settings.database.echo,
                connect_args={"check_same_thread": False},
                pool_pre_ping=True,
            )
            _configure_sqlite(_engine)
        elif "postgresql" in db_url or "postgres" in db_url:
            _engine = create_async_engine(
                db_url,
                echo=settings.database.echo,
                pool_size=5,
                max_overflow=10,
                pool_timeout=30,
                pool_recycle=1800,
                pool_pre_ping=True,
            )
        else:
            _engine = create_async_engine(
                db_url,
                echo=settings.database.echo,
                pool_size=3,
                max_overflow=5,
                pool_timeout=30,
                pool_pre_ping=True,
            )

    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get or create the async session factory.

    Returns:
        Session factory configured for the application engine.
    """
    global _session_factory

    if _session_factory is None:
        _session_factory = build_session_factory(get_engine())

    return _session_factory


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory with the application's session options."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency for database sessions.

    Yields:
        AsyncSession that is committed on success and rolled back on error.

    Usage:
        @router.get("/items")
        async def get_items(db: AsyncSession = Depends(get_db)):
            ...
    """
    session_factory = get_session_factory()

    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


@asynccontextmanager
async def get_db_context() -> AsyncGenerator[AsyncSession, None]:
    """Context manager for database sessions outside of FastAPI.

    Use this for scripts, CLI commands, or tests.

    Usage:
        async with get_db_context() as db:
            result = await db.execute(select(Model))
    """
    session_factory = get_session_factory()

    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def init_db() -> None:
    """Initialize database and create all tables.

    Call this during application startup to ensure
    all tables exist. Safe to call multiple times.
    """
    # Import all models to register them with Base.metadata
    import callmate.db.models  # noqa: F401

    engine = get_engine()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db() -> None:
    """Close database connections.

    Call this during application shutdown.
    """
    global _engine, _session_factory

    if _engine is not None:
        await _engine.dispose()
        _engine = None
        _session_factory = None


# Testing utilities
async def create_test_engine(url: str = "sqlite+aiosqlite:///:memory:") -> AsyncEngine:
    """Create a test database engine with in-memory SQLite.

    A StaticPool keeps the single in-memory database alive across sessions.

    Args:
        url: Database URL (default: in-memory SQLite)

    Returns:
        Configured AsyncEngine with all tables created.
    """
    from sqlalchemy.pool import StaticPool

    import callmate.db.models  # noqa: F401

    kwargs: dict = {"echo": False}
    if "sqlite" in url:
        kwargs["connect_args"] = {"check_same_thread": False}
    if ":memory:" in url:
        kwargs["poolclass"] = StaticPool

    engine = create_async_engine(url, **kwargs)
    if "sqlite" in url:
        _configure_sqlite(engine)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    return engine
