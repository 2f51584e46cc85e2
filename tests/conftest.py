"""
Shared test fixtures.

Uses an in-memory SQLite database (via aiosqlite) so tests run without
Docker / PostgreSQL.  The production models are created directly: the
schema is plain relational and SQLite supports the ``UPDATE ... RETURNING``
statements the ledger relies on.
"""

from typing import AsyncGenerator

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from src.domain.enums import UserRole
from src.infrastructure.database import Base
from src.infrastructure.models import UserModel
from src.security import Caller, create_access_token


# ── Test DB (SQLite in-memory) ────────────────────────────────────────

TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

SEED_USERS = {
    "admin": {"email": "admin@test.com", "role": UserRole.ADMIN, "balance": 0.0},
    "pilot": {"email": "pilot@test.com", "role": UserRole.PILOT, "balance": 0.0},
    "client": {"email": "client@test.com", "role": UserRole.CLIENT, "balance": 1000.0},
    "other": {"email": "other@test.com", "role": UserRole.CLIENT, "balance": 50.0},
}


# ── Fixtures ──────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker, None]:
    """Fresh schema per test; one shared connection keeps the memory DB alive."""
    engine = create_async_engine(
        TEST_DB_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def users(session_factory) -> dict[str, Caller]:
    """Seed one user per role and return their callers keyed by nickname."""
    callers = {}
    async with session_factory() as session:
        for key, u in SEED_USERS.items():
            model = UserModel(
                email=u["email"],
                full_name=key.title(),
                role=u["role"],
                account_balance=u["balance"],
            )
            session.add(model)
            await session.flush()
            callers[key] = Caller(user_id=model.id, role=u["role"], email=u["email"])
        await session.commit()
    return callers


@pytest_asyncio.fixture
async def db_session(session_factory, users) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory, users) -> AsyncGenerator[AsyncClient, None]:
    """AsyncClient backed by the SQLite schema above."""

    async def _test_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    from src.api.app import create_app
    from src.api.dependencies import get_db
    from src.api.middleware import limiter

    limiter.reset()
    app = create_app()
    app.dependency_overrides[get_db] = _test_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def auth(users) -> dict[str, dict[str, str]]:
    """Bearer headers keyed like ``users``."""
    return {
        key: {"Authorization": f"Bearer {create_access_token(c.user_id, c.role)}"}
        for key, c in users.items()
    }
