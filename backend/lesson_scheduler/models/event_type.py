# backend/lesson_scheduler/models/event_type.py
"""
Event type models for the lesson scheduler.

An event type is a bookable offering published by an owner: a fixed
lesson duration, a time zone and the weekly windows during which that
duration may be booked.

Classes:
    EventType: The bookable offering
    AvailabilityWindow: One weekly recurring window in the event type's zone
"""

from datetime import datetime, time, timezone
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
)
from sqlalchemy.orm import relationship

from ..core.ulid_helper import generate_ulid
from ..database import Base
from .types import UTCDateTime

logger = logging.getLogger(__name__)

DEFAULT_DURATION_MINUTES = 30


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class EventType(Base):
    """Bookable offering owned by a single professional."""

    __tablename__ = "event_types"

    id = Column(String(26), primary_key=True, index=True, default=generate_ulid)
    owner_id = Column(String(64), nullable=False, index=True)
    slug = Column(String(120), nullable=False, unique=True)

    name = Column(String(200), nullable=False)
    description = Column(Text, nullable=False, default="")
    location = Column(String(255), nullable=False, default="")
    duration_minutes = Column(Integer, nullable=False, default=DEFAULT_DURATION_MINUTES)
    timezone = Column(String(64), nullable=False)

    # Weekly recurrence
    allow_recurring = Column(Boolean, nullable=False, default=False)
    recurring_count = Column(Integer, nullable=False, default=1)

    # Contact snapshot used for notifications
    owner_name = Column(String(200), nullable=True)
    owner_email = Column(String(255), nullable=True)

    created_at = Column(UTCDateTime, nullable=False, default=_utcnow)
    updated_at = Column(UTCDateTime, nullable=True, onupdate=_utcnow)

    windows = relationship(
        "AvailabilityWindow",
        back_populates="event_type",
        cascade="all, delete-orphan",
        order_by="AvailabilityWindow.position",
        lazy="selectin",
    )

    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="check_event_duration_positive"),
        CheckConstraint("recurring_count >= 1", name="check_recurring_count_positive"),
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        # Column defaults only apply at flush; memory-backed rows never flush
        if self.id is None:
            self.id = generate_ulid()
        if self.description is None:
            self.description = ""
        if self.location is None:
            self.location = ""
        if self.duration_minutes is None:
            self.duration_minutes = DEFAULT_DURATION_MINUTES
        if self.allow_recurring is None:
            self.allow_recurring = False
        if self.recurring_count is None:
            self.recurring_count = 1
        if self.created_at is None:
            self.created_at = _utcnow()

    def __repr__(self) -> str:
        return (
            f"<EventType {self.slug}: owner={self.owner_id}, "
            f"duration={self.duration_minutes}m, tz={self.timezone}>"
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "owner_id": self.owner_id,
            "slug": self.slug,
            "name": self.name,
            "description": self.description,
            "location": self.location,
            "duration_minutes": self.duration_minutes,
            "timezone": self.timezone,
            "allow_recurring": self.allow_recurring,
            "recurring_count": self.recurring_count,
            "owner_name": self.owner_name,
            "owner_email": self.owner_email,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
            "windows": [w.to_dict() for w in self.windows],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EventType":
        fields = dict(data)
        windows = [AvailabilityWindow.from_dict(w) for w in fields.pop("windows", [])]
        for key in ("created_at", "updated_at"):
            if fields.get(key):
                fields[key] = datetime.fromisoformat(fields[key])
        return cls(windows=windows, **fields)

    def copy(self) -> "EventType":
        """Detached copy, including windows."""
        return EventType.from_dict(self.to_dict())


class AvailabilityWindow(Base):
    """Weekly window, in the owning event type's local time."""

    __tablename__ = "availability_windows"

    id = Column(String(26), primary_key=True, default=generate_ulid)
    event_type_id = Column(
        String(26), ForeignKey("event_types.id", ondelete="CASCADE"), nullable=False
    )
    # 0=Sunday .. 6=Saturday, see core.enums.Weekday
    weekday = Column(Integer, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)
    position = Column(Integer, nullable=False, default=0)

    event_type = relationship("EventType", back_populates="windows")

    __table_args__ = (
        CheckConstraint("weekday >= 0 AND weekday <= 6", name="check_window_weekday"),
        Index("idx_availability_windows_event_weekday", "event_type_id", "weekday"),
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if self.id is None:
            self.id = generate_ulid()
        if self.position is None:
            self.position = 0

    def __repr__(self) -> str:
        return f"<AvailabilityWindow day={self.weekday} {self.start_time}-{self.end_time}>"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "weekday": self.weekday,
            "start_time": self.start_time.strftime("%H:%M"),
            "end_time": self.end_time.strftime("%H:%M"),
            "position": self.position,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AvailabilityWindow":
        return cls(
            id=data.get("id"),
            weekday=int(data["weekday"]),
            start_time=_parse_hhmm(data["start_time"]),
            end_time=_parse_hhmm(data["end_time"]),
            position=data.get("position", 0),
        )


def _parse_hhmm(value: Any) -> time:
    if isinstance(value, time):
        return value
    return time.fromisoformat(str(value))


def window_list(windows: Optional[List[Dict[str, Any]]]) -> List[AvailabilityWindow]:
    """Build ordered window rows from plain dicts."""
    rows = []
    for position, data in enumerate(windows or []):
        row = AvailabilityWindow.from_dict({**data, "position": position})
        rows.append(row)
    return rows
