"""Shared test fixtures."""

import os
import tempfile
import uuid
from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

# Settings are read at import time, so configure the environment first.
_DB_PATH = os.path.join(tempfile.gettempdir(), f"taskforge-test-{os.getpid()}.db")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_DB_PATH}")
os.environ.setdefault("AUTH_MOCK", "true")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-jwt")
os.environ.setdefault("NOTIFICATIONS_ENABLED", "false")
os.environ.setdefault("INVITATION_SWEEP_INTERVAL_SECONDS", "0")
os.environ.setdefault("ENVIRONMENT", "development")

from taskforge.core.dependencies import get_notifier  # noqa: E402
from taskforge.db.base import Base  # noqa: E402
from taskforge.db.session import async_session_factory  # noqa: E402
from taskforge.db.session import engine as app_engine  # noqa: E402
from taskforge.main import app  # noqa: E402
from taskforge.models.user import User  # noqa: E402
from taskforge.services.notifications import ProjectNotifier  # noqa: E402


class RecordedEvents(list):
    """Captures (project_id, event, payload) tuples instead of publishing."""

    def schedule(self, _publish, project_id, event, payload) -> None:
        self.append((str(project_id), event, payload))

    def names(self) -> list[str]:
        return [event for _, event, _ in self]


@pytest.fixture(autouse=True)
async def schema() -> AsyncGenerator[None, None]:
    """Fresh schema per test; the app engine is disposed afterwards."""
    async with app_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with app_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await app_engine.dispose()


@pytest.fixture
async def db() -> AsyncGenerator[AsyncSession, None]:
    """Async DB session for service-level tests, rolled back afterwards."""
    async with async_session_factory() as session:
        yield session
        await session.rollback()


@pytest.fixture
def events() -> RecordedEvents:
    return RecordedEvents()


@pytest.fixture
def notifier(events: RecordedEvents) -> ProjectNotifier:
    return ProjectNotifier(events.schedule)


@pytest.fixture
async def client(events: RecordedEvents) -> AsyncGenerator[AsyncClient, None]:
    """HTTP test client for the FastAPI app with event capture."""
    app.dependency_overrides[get_notifier] = lambda: ProjectNotifier(events.schedule)
    transport = ASGITransport(app=app)
    try:
        async with AsyncClient(transport=transport, base_url="http://test") as c:
            yield c
    finally:
        app.dependency_overrides.pop(get_notifier, None)


async def _make_user(db: AsyncSession, username: str) -> User:
    user = User(
        subject=f"sub-{username}",
        username=username,
        email=f"{username}@example.com",
        name=username.title(),
    )
    db.add(user)
    await db.flush()
    return user


@pytest.fixture
async def make_user(db: AsyncSession):
    """Factory for users created directly in the ``db`` session."""

    async def factory(prefix: str = "user") -> User:
        return await _make_user(db, f"{prefix}-{uuid.uuid4().hex[:8]}")

    return factory


@pytest.fixture
async def owner(make_user) -> User:
    return await make_user("owner")


@pytest.fixture
async def invitee(make_user) -> User:
    return await make_user("invitee")
