"""
Drama Quotes Backend — Database Session Management
==================================================

What:  Async SQLAlchemy engine, session factory, declarative base and the
       per-request session dependency.
How:   The engine owns the connection pool shared by every request. Each
       request gets its own AsyncSession that commits on success and rolls
       back on error.

Pooling:
    pool_size / max_overflow come from settings and apply to PostgreSQL.
    SQLite (tests, local dev) keeps SQLAlchemy's default pool and gets
    `PRAGMA foreign_keys=ON` on every connection so FK violations surface the
    same way they do on PostgreSQL.
"""

from typing import Any, AsyncGenerator, Dict

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import DeclarativeBase

from dramaquotes.config import settings


def _engine_options(database_url: str) -> Dict[str, Any]:
    """Keyword arguments for create_async_engine, by backend."""
    options: Dict[str, Any] = {
        "echo": settings.log_level == "DEBUG",
    }
    if database_url.startswith("sqlite"):
        return options

    options.update(
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_pre_ping=settings.db_pool_pre_ping,
        pool_recycle=3600,
    )
    if settings.db_ssl_require:
        options["connect_args"] = {"ssl": "require"}
    return options


def build_engine(database_url: str) -> AsyncEngine:
    """Create an async engine configured the way the application expects."""
    return create_async_engine(database_url, **_engine_options(database_url))


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # expire_on_commit=False: ids and columns stay readable after commit
    return async_sessionmaker(bind, class_=AsyncSession, expire_on_commit=False)


@event.listens_for(Engine, "connect")
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # Listens on every sync Engine, async engines included; only SQLite needs it.
    module = type(dbapi_connection).__module__
    if "sqlite" not in module:
        return
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# ── Engine & Session Factory ──────────────────────────────────────────────
engine = build_engine(settings.database_url)
async_session_factory = build_session_factory(engine)


class Base(DeclarativeBase):
    """
    Base class for all ORM models.

    Shares one metadata object, which Alembic reads for --autogenerate and the
    optional startup `create_all` uses.
    """
    pass


# ── Session Dependency ────────────────────────────────────────────────────
async def get_db_session() -> AsyncGenerator[AsyncSession, None]:
    """
    FastAPI dependency that provides a database session per request.

    1. Creates a new session from the factory
    2. Yields it to the route handler
    3. On success: commits the transaction
    4. On error: rolls back and re-raises for the global error handler
    5. Always: closes the session (returns connection to pool)
    """
    async with async_session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


# ── Lifecycle Helpers ─────────────────────────────────────────────────────
async def create_tables() -> None:
    """Create any missing tables (DB_CREATE_TABLES=true only)."""
    # Registers the models on Base.metadata
    from dramaquotes import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose_engine() -> None:
    """Close every pooled connection. Called on application shutdown."""
    await engine.dispose()
