"""
Test configuration for the biodata API.

Every test that touches the database gets a fresh in-memory SQLite schema.
DB_URL must be set before the app (and its engine) is imported.
"""
import os

os.environ["DB_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("MONETIZATION", "off")

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from app.main import app  # noqa: E402
from app.core.db.base import Base  # noqa: E402
from app.core.db.engine import AsyncSessionLocal, engine  # noqa: E402
from app.core.notifications import notifier  # noqa: E402
from tests.factories import make_user, register  # noqa: E402
from app.modules.users.models import Role  # noqa: E402


@pytest_asyncio.fixture
async def database():
    """Create the schema, hand over, then drop it and the shared connection."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db(database):
    async with AsyncSessionLocal() as session:
        yield session


@pytest_asyncio.fixture
async def client(database):
    """Async httpx client using ASGI transport, no live server needed."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest.fixture(autouse=True)
def reset_notifier():
    yield
    notifier.clear()


@pytest_asyncio.fixture
async def owner(client):
    """A registered user: (user_id, auth headers)."""
    return await register(client, "owner")


@pytest_asyncio.fixture
async def other_user(client):
    return await register(client, "visitor")


@pytest_asyncio.fixture
async def admin(client):
    """An ADMIN account created out of band: (user_id, auth headers)."""
    async with AsyncSessionLocal() as session:
        user_id, token = await make_user(session, "moderator", role=Role.ADMIN)
    return user_id, {"Authorization": f"Bearer {token}"}
