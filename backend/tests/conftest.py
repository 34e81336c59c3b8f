"""Pytest configuration and shared fixtures for API tests."""

import os
import tempfile

import httpx
import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import delete, func, select

# Set test DB and config before app imports so config/engine use them
os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///" + os.path.join(tempfile.gettempdir(), "micro_workouts_test.db"),
)
os.environ.setdefault("BASE_URL", "https://app.test")
os.environ.setdefault("GOOGLE_CLIENT_ID", "google-client-id")
os.environ.setdefault("GOOGLE_CLIENT_SECRET", "google-client-secret")
os.environ.setdefault("MICROSOFT_CLIENT_ID", "microsoft-client-id")
os.environ.setdefault("MICROSOFT_CLIENT_SECRET", "microsoft-client-secret")
os.environ.setdefault("RATE_LIMIT_DEFAULT", "100000/minute")

from app.core.auth import create_session
from app.db.base import Base
from app.db.session import async_session_maker, engine, init_db
from app.main import app
from app.models.user import User
from app.services.http_client import close_http_client, init_http_client


class FakeUpstream:
    """MockTransport handler: canned responses keyed by (method, url without query); records requests."""

    def __init__(self):
        self.routes: dict[tuple[str, str], tuple[int, dict]] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, url: str, status_code: int = 200, json=None, text: str | None = None) -> None:
        body = {"json": json} if json is not None else {"text": text or ""}
        self.routes[(method, url)] = (status_code, body)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, f"{request.url.scheme}://{request.url.host}{request.url.path}")
        if key not in self.routes:
            return httpx.Response(404, text=f"no fake route for {key}")
        status_code, body = self.routes[key]
        return httpx.Response(status_code, **body)


async def _clean_all():
    """Delete all rows in reverse dependency order so tests start clean."""
    async with engine.begin() as conn:
        for table in reversed(Base.metadata.sorted_tables):
            await conn.execute(delete(table))


async def count_rows(model, *where) -> int:
    async with async_session_maker() as session:
        r = await session.execute(select(func.count()).select_from(model).where(*where))
        return r.scalar() or 0


@pytest_asyncio.fixture
async def clean_db():
    """Create tables if needed and delete all rows so the test has a clean DB."""
    await init_db()
    await _clean_all()
    yield
    # pooled aiosqlite connections are bound to this test's event loop
    await engine.dispose()


@pytest_asyncio.fixture
async def upstream():
    """Shared HTTP client routed to an in-process fake of the OAuth providers."""
    fake = FakeUpstream()
    await close_http_client()
    init_http_client(timeout=5.0, transport=httpx.MockTransport(fake))
    yield fake
    await close_http_client()


@pytest_asyncio.fixture
async def client(clean_db, upstream):
    """Yield AsyncClient over https so Secure session cookies round-trip."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="https://test",
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def test_user(client):
    """Create a user and a live session via DB (committed) and return (user_id, email, session_token)."""
    async with async_session_maker() as session:
        user = User(email="test@test.com", name="Test User")
        session.add(user)
        await session.flush()
        token = await create_session(session, user.id)
        await session.commit()
        return user.id, user.email, token


@pytest.fixture
def auth_headers(test_user):
    """Return Cookie header carrying test_user's session."""
    _, __, token = test_user
    return {"Cookie": f"session={token}"}


@pytest.fixture
def row_count():
    """Async helper: await row_count(Model, *where) -> number of matching rows."""
    return count_rows
