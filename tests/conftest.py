"""Shared test fixtures."""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from worktable.db.base import Base
# Import all models to register with Base.metadata
import worktable.db.models  # noqa: F401


@pytest.fixture
async def db_engine():
    """Create an in-memory SQLite async engine for testing."""
    engine = create_async_engine("sqlite+aiosqlite:///", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def db_session(db_engine):
    """Create a test database session."""
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with session_factory() as session:
        yield session


@pytest.fixture
def app(db_engine):
    """Create a test application instance with in-memory DB."""
    from worktable.main import create_app

    _app = create_app()
    session_factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    _app.state.db_engine = db_engine
    _app.state.db_session_factory = session_factory
    _app.state.redis = None
    return _app


@pytest.fixture
async def client(app):
    """Async HTTP test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def register_user(client):
    """Return a coroutine that registers an account and returns the body plus auth headers."""

    async def _register(email: str, organisation_name: str | None = None, password: str = "correct-horse") -> dict:
        payload = {"email": email, "password": password}
        if organisation_name:
            payload["organisation_name"] = organisation_name
        r = await client.post("/api/v1/auth/register", json=payload)
        assert r.status_code == 201, r.text
        data = r.json()
        data["headers"] = {"Authorization": f"Bearer {data['access_token']}"}
        return data

    return _register


@pytest.fixture
async def alice(register_user):
    """A registered user owning the organization 'Alice Co'."""
    return await register_user("alice@example.com", "Alice Co")


@pytest.fixture
async def bob(register_user):
    """A registered user owning the organization 'Bob Co'."""
    return await register_user("bob@example.com", "Bob Co")
