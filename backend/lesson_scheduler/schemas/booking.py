# backend/lesson_scheduler/schemas/booking.py
"""
Booking schemas.

Start times travel as ISO-8601 instants with an offset (UTC "Z" in
practice). Contact fields are plain strings here; the services decide
which of them are required.
"""

from datetime import date, datetime
import re
from typing import List, Optional

from pydantic import AwareDatetime, Field, field_validator

from ..models.booking import Booking
from ._strict_base import StrictModel, StrictRequestModel

DATE_ONLY_REGEX = re.compile(r"^\d{4}-\d{2}-\d{2}$")


def parse_date_only(value: str) -> date:
    """
    Parse a YYYY-MM-DD query value.

    Raises:
        ValueError: If the value is not a date-only string
    """
    candidate = (value or "").strip()
    if not DATE_ONLY_REGEX.fullmatch(candidate):
        raise ValueError("date must be a YYYY-MM-DD date-only string")
    return date.fromisoformat(candidate)


class GuestDetails(StrictRequestModel):
    """Who the booking is for."""

    first_name: str = ""
    last_name: str = ""
    email: str = ""
    phone: str = ""
    notes: str = ""


class BookingCreate(GuestDetails):
    event_type_slug: str = Field(..., description="Event type to book")
    start_time: AwareDatetime = Field(..., description="First session start, ISO-8601 with offset")

    def guest(self) -> GuestDetails:
        return GuestDetails(
            first_name=self.first_name,
            last_name=self.last_name,
            email=self.email,
            phone=self.phone,
            notes=self.notes,
        )


class BookingUpdate(StrictRequestModel):
    start_time: Optional[AwareDatetime] = None
    duration_minutes: Optional[float] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    notes: Optional[str] = None

    @field_validator("notes", mode="before")
    @classmethod
    def empty_notes(cls, v: Optional[str]) -> Optional[str]:
        return "" if v is None else v


class RecurringSession(StrictModel):
    index: int = Field(..., description="1-based position within the group")
    total: int


class BookingResponse(StrictModel):
    id: str
    event_type_id: str
    event_type_name: Optional[str] = None
    start_time: datetime
    end_time: datetime
    duration_minutes: int
    first_name: str
    last_name: str
    full_name: str
    email: str
    phone: str
    notes: str
    recurring_group_id: Optional[str] = None
    recurring_session: Optional[RecurringSession] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_model(
        cls,
        booking: Booking,
        event_type_name: Optional[str] = None,
        recurring_session: Optional[RecurringSession] = None,
    ) -> "BookingResponse":
        return cls(
            id=booking.id,
            event_type_id=booking.event_type_id,
            event_type_name=event_type_name,
            start_time=booking.start_utc,
            end_time=booking.end_utc,
            duration_minutes=booking.duration_minutes,
            first_name=booking.first_name,
            last_name=booking.last_name,
            full_name=booking.full_name,
            email=booking.email,
            phone=booking.phone,
            notes=booking.notes or "",
            recurring_group_id=booking.recurring_group_id,
            recurring_session=recurring_session,
            created_at=booking.created_at,
        )


class ReservationResponse(StrictModel):
    success: bool = True
    count: int
    recurring_group_id: Optional[str] = None
    notification_sent: bool = False
    bookings: List[BookingResponse] = Field(default_factory=list)
