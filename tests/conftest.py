"""Shared test fixtures."""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

os.environ.setdefault("MERIT_JWT_SECRET_KEY", "test-secret-key")
os.environ.setdefault("MERIT_LOG_FORMAT", "console")
os.environ.setdefault("MERIT_DEV_LOGIN_ENABLED", "true")

from merit.auth.jwt import create_access_token  # noqa: E402
from merit.config import get_settings  # noqa: E402
from merit.database import close_db, create_tables, get_session, init_db  # noqa: E402
from merit.db.enums import EventCategory, EventStatus, UserRole  # noqa: E402
from merit.db.models import Event, User  # noqa: E402
from merit.main import create_app  # noqa: E402
from merit.redis_client import close_redis  # noqa: E402

UserFactory = Callable[..., Awaitable[User]]
EventFactory = Callable[..., Awaitable[Event]]


@pytest_asyncio.fixture
async def database(tmp_path: Path) -> AsyncGenerator[None, None]:
    """Fresh SQLite database per test, schema created from ORM metadata."""
    get_settings.cache_clear()
    # Redis stays uninitialised: the event cache and rate limiter fall through.
    await close_redis()
    await init_db(f"sqlite+aiosqlite:///{tmp_path / 'merit.db'}")
    await create_tables()
    yield
    await close_db()


@pytest_asyncio.fixture
async def db_session(database: None) -> AsyncGenerator[AsyncSession, None]:
    """Direct database session for setup and assertions."""
    async for session in get_session():
        yield session
        break


@pytest_asyncio.fixture
async def client(database: None) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client against the app (no lifespan; the database fixture wires the store)."""
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


def bearer_headers(user: User) -> dict[str, str]:
    """Bearer header for a user, as issued by the sign-in endpoint."""
    return {"Authorization": f"Bearer {create_access_token(user.id, user.email, user.role)}"}


@pytest.fixture
def auth_headers() -> Callable[[User], dict[str, str]]:
    return bearer_headers


@pytest.fixture
def make_user(db_session: AsyncSession) -> UserFactory:
    """Create and commit a user. Students get a full profile unless ``profile=False``."""
    counter = {"n": 0}

    async def _make(
        *,
        email: str | None = None,
        name: str | None = None,
        role: UserRole = UserRole.STUDENT,
        student_id: str | None = None,
        profile: bool = True,
    ) -> User:
        counter["n"] += 1
        n = counter["n"]
        user = User(
            email=email or f"student{n}@student.upm.edu.my",
            name=name or f"Student {n}",
            email_verified=True,
            role=role.value,
            total_merit_points=0,
        )
        if role == UserRole.STUDENT and profile:
            user.student_id = student_id or f"S{n:08d}"
            user.faculty = "Faculty of Computer Science"
            user.year = 2
            user.program = "Computer Science"
            user.enrollment_date = date(2023, 9, 1)
        db_session.add(user)
        await db_session.commit()
        return user

    return _make


@pytest.fixture
def make_event(db_session: AsyncSession) -> EventFactory:
    """Create and commit an event."""
    counter = {"n": 0}

    async def _make(
        *,
        title: str | None = None,
        capacity: int = 10,
        points: int = 10,
        category: EventCategory = EventCategory.UNIVERSITY,
        status: EventStatus = EventStatus.UPCOMING,
        days_ahead: int = 7,
        description: str = "",
        location: str = "Main Hall",
    ) -> Event:
        counter["n"] += 1
        event = Event(
            title=title or f"Event {counter['n']}",
            description=description,
            date=datetime.now(timezone.utc) + timedelta(days=days_ahead),
            time="10:00 AM",
            location=location,
            organizer="Student Affairs",
            category=category.value,
            points=points,
            capacity=capacity,
            status=status.value,
        )
        db_session.add(event)
        await db_session.commit()
        return event

    return _make


@pytest_asyncio.fixture
async def student(make_user: UserFactory) -> User:
    return await make_user(email="ahmad@student.upm.edu.my", name="Ahmad", student_id="S12345678")


@pytest_asyncio.fixture
async def admin(make_user: UserFactory) -> User:
    return await make_user(email="admin@upm.edu.my", name="Admin User", role=UserRole.ADMIN)


@pytest_asyncio.fixture
async def student_client(client: AsyncClient, student: User) -> AsyncClient:
    """Client signed in as a student."""
    client.headers.update(bearer_headers(student))
    return client


@pytest_asyncio.fixture
async def admin_client(client: AsyncClient, admin: User) -> AsyncClient:
    """Client signed in as an administrator."""
    client.headers.update(bearer_headers(admin))
    return client
