# backend/lesson_scheduler/schemas/event_type.py
"""Event type request and response schemas."""

from datetime import datetime, time
from typing import Any, List, Optional

from pydantic import Field, field_validator

from ..core.enums import Weekday
from ..models.event_type import EventType
from ._strict_base import StrictModel, StrictRequestModel


def _parse_local_time(value: Any) -> Any:
    if isinstance(value, str):
        candidate = value.strip()
        # "24:00" closes a window at midnight; stored as 00:00
        if candidate in ("24:00", "24:00:00"):
            return time(0, 0)
        return candidate
    return value


class AvailabilityWindowIn(StrictRequestModel):
    weekday: Weekday = Field(..., alias="day", description="0=Sunday .. 6=Saturday")
    start_time: time = Field(..., alias="start", description="Local start, HH:MM")
    end_time: time = Field(..., alias="end", description="Local end, HH:MM (24:00 for midnight)")

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def parse_local_time(cls, v: Any) -> Any:
        return _parse_local_time(v)


class AvailabilityWindowResponse(StrictModel):
    weekday: int = Field(..., alias="day")
    start_time: str = Field(..., alias="start")
    end_time: str = Field(..., alias="end")


class EventTypeCreate(StrictRequestModel):
    slug: str = Field(..., min_length=1, max_length=120)
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = ""
    location: Optional[str] = ""
    duration_minutes: Optional[float] = Field(None, description="Lesson length in minutes")
    timezone: Optional[str] = Field(None, description="IANA zone name")
    allow_recurring: bool = False
    recurring_count: Optional[float] = 1
    owner_name: Optional[str] = None
    owner_email: Optional[str] = None
    windows: List[AvailabilityWindowIn] = Field(default_factory=list, alias="availability")


class EventTypeUpdate(StrictRequestModel):
    slug: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    duration_minutes: Optional[float] = None
    timezone: Optional[str] = None
    allow_recurring: Optional[bool] = None
    recurring_count: Optional[float] = None
    owner_name: Optional[str] = None
    owner_email: Optional[str] = None
    windows: Optional[List[AvailabilityWindowIn]] = Field(None, alias="availability")


class EventTypeResponse(StrictModel):
    id: str
    owner_id: str
    slug: str
    name: str
    description: str
    location: str
    duration_minutes: int
    timezone: str
    allow_recurring: bool
    recurring_count: int
    owner_name: Optional[str] = None
    created_at: Optional[datetime] = None
    windows: List[AvailabilityWindowResponse] = Field(default_factory=list, alias="availability")

    @classmethod
    def from_model(cls, event_type: EventType) -> "EventTypeResponse":
        return cls(
            id=event_type.id,
            owner_id=event_type.owner_id,
            slug=event_type.slug,
            name=event_type.name,
            description=event_type.description or "",
            location=event_type.location or "",
            duration_minutes=event_type.duration_minutes,
            timezone=event_type.timezone,
            allow_recurring=bool(event_type.allow_recurring),
            recurring_count=event_type.recurring_count,
            owner_name=event_type.owner_name,
            created_at=event_type.created_at,
            windows=[
                AvailabilityWindowResponse(
                    weekday=w.weekday,
                    start_time=w.start_time.strftime("%H:%M"),
                    end_time=w.end_time.strftime("%H:%M"),
                )
                for w in event_type.windows
            ],
        )
