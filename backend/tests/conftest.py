"""
Pytest fixtures for test database, client, and authentication.

Each test gets its own SQLite database file, so several sessions can hit
it concurrently the way separate requests would. Requests get a fresh
session from the test sessionmaker and commit on success, exactly like
``eventhub.db.session.get_db``.
"""

import os

# Settings are cached on first use; configure before importing the app
os.environ["REDIS_ENABLED"] = "false"
os.environ["EMAIL_ENABLED"] = "false"
os.environ["FINISH_SWEEP_INTERVAL_SECONDS"] = "0"
os.environ["CONTACT_EMAIL"] = "team@eventhub.test"

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from eventhub.core.security import Actor, create_access_token, hash_password
from eventhub.db.base import Base
from eventhub.db.session import build_engine, get_db
from eventhub.main import app
from eventhub.models import Category, Event, EventStatus, Location, LocationStatus, User, UserRole
from eventhub.services.notification_service import Notifier, get_notifier

PASSWORD = "testpassword123"


class RecordingNotifier(Notifier):
    """Keeps every message instead of sending it."""

    def __init__(self):
        self.sent: list[dict] = []

    async def send(self, to, subject, html_body, attachments=()) -> bool:
        self.sent.append(
            {"to": to, "subject": subject, "html": html_body, "attachments": list(attachments)}
        )
        return True


@pytest_asyncio.fixture(scope="function")
async def engine(tmp_path):
    """Fresh schema in a per-test database file."""
    test_engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'eventhub_test.db'}")
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session for arranging data and inspecting results directly."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest_asyncio.fixture(scope="function")
async def client(session_factory, notifier) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client with per-request sessions and the recording notifier."""

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _create_user(db: AsyncSession, email: str, role: UserRole, first_name: str = "Test") -> User:
    user = User(
        first_name=first_name,
        last_name="User",
        email=email,
        hashed_password=hash_password(PASSWORD),
        role=role,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


def headers_for(user: User) -> dict:
    token = create_access_token(data={"sub": str(user.id), "role": user.role.value})
    return {"Authorization": f"Bearer {token}"}


def actor_for(user: User) -> Actor:
    return Actor(user_id=user.id, role=user.role)


@pytest_asyncio.fixture
async def admin(db_session) -> User:
    return await _create_user(db_session, "admin@example.com", UserRole.ADMIN, "Ada")


@pytest_asyncio.fixture
async def organizer(db_session) -> User:
    return await _create_user(db_session, "organizer@example.com", UserRole.ORGANIZER, "Olga")


@pytest_asyncio.fixture
async def other_organizer(db_session) -> User:
    return await _create_user(db_session, "other.organizer@example.com", UserRole.ORGANIZER, "Otto")


@pytest_asyncio.fixture
async def participant(db_session) -> User:
    return await _create_user(db_session, "participant@example.com", UserRole.PARTICIPANT, "Paula")


@pytest_asyncio.fixture
async def participant2(db_session) -> User:
    return await _create_user(db_session, "participant2@example.com", UserRole.PARTICIPANT, "Pedro")


@pytest.fixture
def admin_headers(admin) -> dict:
    return headers_for(admin)


@pytest.fixture
def organizer_headers(organizer) -> dict:
    return headers_for(organizer)


@pytest.fixture
def other_organizer_headers(other_organizer) -> dict:
    return headers_for(other_organizer)


@pytest.fixture
def participant_headers(participant) -> dict:
    return headers_for(participant)


@pytest.fixture
def participant2_headers(participant2) -> dict:
    return headers_for(participant2)


@pytest_asyncio.fixture
async def category(db_session) -> Category:
    category = Category(name="Music", description="Concerts and festivals")
    db_session.add(category)
    await db_session.commit()
    await db_session.refresh(category)
    return category


@pytest_asyncio.fixture
async def location(db_session, organizer, admin) -> Location:
    """An approved venue owned by ``organizer``."""
    location = Location(
        name="Town Hall",
        description="Main hall",
        address="1 Main Street",
        images=[],
        status=LocationStatus.APPROVED,
        created_by_id=organizer.id,
        validated_by_id=admin.id,
    )
    db_session.add(location)
    await db_session.commit()
    await db_session.refresh(location)
    return location


@pytest.fixture
def event_factory(db_session, organizer, category, location):
    """
    Insert an event directly, bypassing the workflow. Defaults to a free,
    published, in-person event next week with 10 seats.
    """

    async def make(**overrides) -> Event:
        start = datetime.now(timezone.utc) + timedelta(days=7)
        values = {
            "name": "Spring Concert",
            "description": "An evening of live music",
            "start_date": start,
            "end_date": start + timedelta(hours=3),
            "is_online": False,
            "location_id": location.id,
            "category_id": category.id,
            "organizer_id": organizer.id,
            "status": EventStatus.PUBLISHED,
            "price": Decimal("0"),
            "max_participants": 10,
            "participant_count": 0,
            "images": [],
        }
        values.update(overrides)
        event = Event(**values)
        db_session.add(event)
        await db_session.commit()
        await db_session.refresh(event)
        return event

    return make


@pytest.fixture
def event_payload(category, location) -> dict:
    """Valid create-event body for the API."""
    start = datetime.now(timezone.utc) + timedelta(days=14)
    return {
        "name": "Python Meetup",
        "description": "Talks and pizza",
        "start_date": start.isoformat(),
        "end_date": (start + timedelta(hours=2)).isoformat(),
        "is_online": False,
        "location_id": location.id,
        "category_id": category.id,
        "price": "0",
        "max_participants": 50,
    }
