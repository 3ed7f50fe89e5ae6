"""Pytest configuration and fixtures."""
from datetime import datetime, timezone

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from app.main import app
from app.database import Database, get_database
from app.seed import seed_demo_data
from app.services.notification_service import get_notification_sender


class RecordingSender:
    """Notification sender that keeps sent messages for assertions."""

    def __init__(self):
        self.sent = []

    async def send(self, to: str, subject: str, body: str) -> None:
        self.sent.append({"to": to, "subject": subject, "body": body})


@pytest.fixture
def db():
    """Empty in-memory database."""
    return Database.in_memory()


@pytest_asyncio.fixture
async def seeded_db():
    """In-memory database loaded with the demo organization."""
    database = Database.in_memory()
    await seed_demo_data(database)
    return database


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def fixed_now():
    return datetime(2025, 3, 14, 12, 0, tzinfo=timezone.utc)


@pytest_asyncio.fixture
async def app_client(seeded_db, sender):
    """
    Create a test client backed by a fresh seeded in-memory database.

    This fixture:
    - Overrides the database and notification sender dependencies
    - Yields an async HTTP client for testing
    - Clears the overrides after each test
    """
    app.dependency_overrides[get_database] = lambda: seeded_db
    app.dependency_overrides[get_notification_sender] = lambda: sender

    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as client:
        yield client

    app.dependency_overrides.clear()
