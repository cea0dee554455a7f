"""Builders for event types and bookings used across the test suite."""

from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, Optional, Tuple

from lesson_scheduler.models.booking import Booking
from lesson_scheduler.models.event_type import EventType, window_list
from lesson_scheduler.repositories.factory import Store
from lesson_scheduler.services.timezone_service import TimezoneService

# Monday 2026-03-02 07:00 in New York. US DST starts Sunday 2026-03-08.
FIXED_NOW = datetime(2026, 3, 2, 12, 0, tzinfo=timezone.utc)

# Tuesdays around the spring-forward transition
TUE_MAR_3 = date(2026, 3, 3)  # EST, UTC-5
TUE_MAR_10 = date(2026, 3, 10)  # EDT, UTC-4
TUE_MAR_17 = date(2026, 3, 17)

NEW_YORK = "America/New_York"
OWNER = "owner-1"

Window = Tuple[int, str, str]


def utc(year: int, month: int, day: int, hour: int, minute: int = 0) -> datetime:
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


def at_local(day: date, hour: int, minute: int = 0, tz: str = NEW_YORK) -> datetime:
    return TimezoneService.local_to_utc(day, time(hour, minute), tz)


def build_event_type(
    slug: str = "piano-30",
    owner_id: str = OWNER,
    duration_minutes: int = 30,
    tz: str = NEW_YORK,
    windows: Iterable[Window] = ((2, "09:00", "10:00"),),
    allow_recurring: bool = False,
    recurring_count: int = 1,
    owner_email: Optional[str] = "instructor@example.com",
) -> EventType:
    return EventType(
        owner_id=owner_id,
        slug=slug,
        name="Piano lesson",
        description="Beginner piano",
        location="Studio B",
        duration_minutes=duration_minutes,
        timezone=tz,
        allow_recurring=allow_recurring,
        recurring_count=recurring_count,
        owner_name="Ada Instructor",
        owner_email=owner_email,
        windows=window_list(
            [{"weekday": d, "start_time": s, "end_time": e} for d, s, e in windows]
        ),
    )


def build_booking(
    event_type: EventType, start: datetime, minutes: Optional[int] = None, **fields
) -> Booking:
    minutes = minutes or event_type.duration_minutes
    return Booking(
        event_type_id=event_type.id,
        owner_id=event_type.owner_id,
        start_utc=start,
        end_utc=start + timedelta(minutes=minutes),
        duration_minutes=minutes,
        first_name=fields.pop("first_name", "Existing"),
        last_name=fields.pop("last_name", "Student"),
        email=fields.pop("email", "existing@example.com"),
        phone=fields.pop("phone", "555-0100"),
        **fields,
    )


def insert_booking(
    store: Store, event_type: EventType, start: datetime, minutes: Optional[int] = None, **fields
) -> Booking:
    """Commit a booking directly through the ledger, bypassing availability checks."""
    row = build_booking(event_type, start, minutes, **fields)
    with store.ledger.unit_of_work(event_type.owner_id) as writer:
        (created,) = writer.insert_many([row])
    return created
