"""
API fixtures.

Routes run on the real clock, so the event types here use UTC and the
tests book a Tuesday at least two weeks ahead.
"""

from datetime import date, timedelta

from fastapi.testclient import TestClient
import pytest

from lesson_scheduler.main import create_app
from lesson_scheduler.services.notification_service import NotificationService
from tests.factories.scheduling import OWNER

OWNER_HEADERS = {"X-Owner-Id": OWNER}


@pytest.fixture
def future_tuesday() -> date:
    day = date.today() + timedelta(days=14)
    return day + timedelta(days=(1 - day.weekday()) % 7)


@pytest.fixture
def client(memory_store, settings):
    app = create_app(
        config=settings,
        store=memory_store,
        notification_service=NotificationService(settings),
    )
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def owner_headers():
    return dict(OWNER_HEADERS)


@pytest.fixture
def event_type_payload():
    return {
        "slug": "piano-30",
        "name": "Piano lesson",
        "durationMinutes": 30,
        "timezone": "UTC",
        "ownerEmail": "instructor@example.com",
        "availability": [{"day": 2, "start": "09:00", "end": "10:00"}],
    }


@pytest.fixture
def published_event_type(client, owner_headers, event_type_payload):
    response = client.post("/api/event-types", json=event_type_payload, headers=owner_headers)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def booking_payload(future_tuesday):
    return {
        "eventTypeSlug": "piano-30",
        "startTime": f"{future_tuesday.isoformat()}T09:00:00Z",
        "firstName": "Grace",
        "lastName": "Hopper",
        "email": "grace@example.com",
        "phone": "555-0199",
        "notes": "",
    }
