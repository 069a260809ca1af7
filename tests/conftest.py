"""
Shared pytest fixtures for the MB Events API tests.

Each test gets its own SQLite file under ``tmp_path`` and an application
built by ``create_app``.  The media host and the mail server are
replaced with in-memory fakes through ``app.dependency_overrides``, so
no test talks to the network.
"""

from datetime import date, datetime, timedelta, timezone
from typing import List, Optional

import pytest
from fastapi.testclient import TestClient

from mb_events_api.app.api.deps import get_media_service, get_notification_service
from mb_events_api.app.core.config import Settings
from mb_events_api.app.core.db import get_connection
from mb_events_api.app.core.errors import UpstreamError
from mb_events_api.app.main import create_app
from mb_events_api.app.services.event_service import utc_today
from mb_events_api.app.services.media_service import MediaService
from mb_events_api.app.services.notification_service import NotificationService

STRONG_PASSWORD = "Str0ng.Pass"


class FakeMediaService(MediaService):
    """Records uploads and returns a predictable URL."""

    def __init__(self, settings: Settings) -> None:
        super().__init__(settings)
        self.uploads: List[str] = []
        self.fail = False

    async def upload_image(self, filename: str, content: bytes, content_type: str) -> str:
        if self.fail:
            raise UpstreamError("Image upload failed")
        self.uploads.append(filename)
        return f"https://media.test/{filename}"


class FakeNotificationService(NotificationService):
    """Captures outgoing e-mail instead of sending it."""

    def __init__(self, settings: Settings) -> None:
        super().__init__(settings)
        self.sent: List[dict] = []
        self.fail = False

    async def send(self, to: str, subject: str, body: str) -> None:
        if self.fail:
            raise UpstreamError("Mail server is not configured")
        self.sent.append({"to": to, "subject": subject, "body": body})


@pytest.fixture
def test_settings(tmp_path):
    """Settings pointing at a throwaway database."""
    return Settings(
        database_url=str(tmp_path / "mb_events_test.db"),
        jwt_secret="test-secret",
        log_level="WARNING",
        frontend_url="http://client.test",
    )


@pytest.fixture
def fake_media(test_settings):
    return FakeMediaService(test_settings)


@pytest.fixture
def fake_notifier(test_settings):
    return FakeNotificationService(test_settings)


@pytest.fixture
def app(test_settings, fake_media, fake_notifier):
    application = create_app(test_settings)
    application.dependency_overrides[get_media_service] = lambda: fake_media
    application.dependency_overrides[get_notification_service] = lambda: fake_notifier
    return application


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


def register(client, email="ada@example.com", password=STRONG_PASSWORD, full_name="Ada Obi") -> dict:
    response = client.post(
        "/api/v1/register",
        json={"fullName": full_name, "email": email, "password": password},
    )
    assert response.status_code == 201, response.text
    return response.json()["user"]


def login(client, email="ada@example.com", password=STRONG_PASSWORD) -> str:
    response = client.post("/api/v1/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["token"]


def auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def user(client):
    """A registered user together with a valid access token."""
    account = register(client)
    account["token"] = login(client)
    account["headers"] = auth_headers(account["token"])
    return account


def days_from_today(days: int) -> date:
    return utc_today() + timedelta(days=days)


_seed_clock = {"tick": 0}


def seed_event(
    settings: Settings,
    host_id: int,
    *,
    title: str = "Seeded event",
    day: Optional[date] = None,
    location: str = "Lagos",
    category: str = "technology",
    tags: Optional[List[str]] = None,
    free: bool = False,
    regular: float = 10.0,
    vip: float = 25.0,
    created_at: Optional[datetime] = None,
) -> int:
    """Insert an event directly and return its id.

    Unless given, ``created_at`` increases with every call so that
    "newest first" ordering follows insertion order.
    """
    if created_at is None:
        _seed_clock["tick"] += 1
        created_at = datetime(2024, 1, 1, tzinfo=timezone.utc) + timedelta(seconds=_seed_clock["tick"])
    day = day or days_from_today(7)
    conn = get_connection(settings)
    try:
        cursor = conn.execute(
            """
            INSERT INTO events (title, date, start_time, end_time, location, category,
                                description, price_free, price_regular, price_vip,
                                image, hosted_by, created_at)
            VALUES (?, ?, '10:00', '12:00', ?, ?, 'Seeded for tests', ?, ?, ?, ?, ?, ?)
            """,
            (
                title,
                day.isoformat(),
                location,
                category,
                int(free),
                0 if free else regular,
                0 if free else vip,
                "https://media.test/seed.png",
                host_id,
                created_at.isoformat(),
            ),
        )
        event_id = cursor.lastrowid
        conn.executemany(
            "INSERT INTO event_tags (event_id, position, tag) VALUES (?, ?, ?)",
            [(event_id, i, tag) for i, tag in enumerate(tags or ["general"])],
        )
        conn.commit()
    finally:
        conn.close()
    return event_id


def seed_user(settings: Settings, email: str = "host@example.com", full_name: str = "Host Person") -> int:
    """Insert a user row directly; the password is not usable for login."""
    now = datetime.now(timezone.utc).isoformat()
    conn = get_connection(settings)
    try:
        cursor = conn.execute(
            "INSERT INTO users (full_name, email, password, created_at, updated_at) "
            "VALUES (?, ?, 'x', ?, ?)",
            (full_name, email, now, now),
        )
        conn.commit()
        return cursor.lastrowid
    finally:
        conn.close()
