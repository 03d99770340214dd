"""
Drama Quotes Backend — Test Configuration (conftest.py)
=======================================================

What:  Shared pytest fixtures for the whole suite.
How:   Environment variables are set before any dramaquotes import so the
       settings singleton (and the engine built from it) point at a
       throwaway SQLite file with a fixed signing key and cheap bcrypt.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── mock_db_session:  AsyncMock session for pure unit tests
    ├── db_engine:        real async engine on a per-test SQLite file,
    │                     tables created with Base.metadata.create_all
    ├── session_factory:  async_sessionmaker bound to db_engine
    ├── db_session:       one session from session_factory
    └── test_client:      HTTPX AsyncClient on the app, with the request
                          session, the drama resolver and the health probe
                          rebound to db_engine
"""

import os
import tempfile
from unittest.mock import AsyncMock, MagicMock

# Must run before `dramaquotes.config` is imported anywhere
_TEST_DIR = tempfile.mkdtemp(prefix="dramaquotes_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/app.db"
os.environ["JWT_SECRET_KEY"] = "test-signing-key-not-for-production-use"
os.environ["BCRYPT_ROUNDS"] = "4"
os.environ["ALLOW_ANONYMOUS_QUOTES"] = "false"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from dramaquotes.database import Base, build_engine, build_session_factory, get_db_session
from dramaquotes.dependencies import get_drama_resolver
from dramaquotes.services.drama_resolver import DramaResolver
import dramaquotes.models  # noqa: F401


# ══════════════════════════════════════════════════════════════════════════
# Unit-test doubles
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    A mock AsyncSession: execute / get / flush / commit / rollback are
    AsyncMocks, add is a plain MagicMock.

    Usage:
        mock_db_session.execute.return_value.one_or_none.return_value = row
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.get = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


# ══════════════════════════════════════════════════════════════════════════
# Real database (SQLite file per test)
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def db_engine(tmp_path):
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return build_session_factory(db_engine)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


# ══════════════════════════════════════════════════════════════════════════
# HTTP client
# ══════════════════════════════════════════════════════════════════════════

@pytest_asyncio.fixture
async def test_client(db_engine, session_factory, monkeypatch):
    """
    HTTPX AsyncClient talking to the FastAPI app through ASGITransport.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from dramaquotes.main import app

    async def _test_db_session():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    resolver = DramaResolver(session_factory=session_factory, max_attempts=3)

    app.dependency_overrides[get_db_session] = _test_db_session
    app.dependency_overrides[get_drama_resolver] = lambda: resolver
    # Health probe shares the per-test engine instead of the module one
    monkeypatch.setattr("dramaquotes.routes.health.engine", db_engine)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
