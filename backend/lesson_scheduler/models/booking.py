# backend/lesson_scheduler/models/booking.py
"""
Booking model for the lesson scheduler.

Bookings are self-contained: they store absolute UTC start and end
instants plus the owner id copied from their event type, so overlap
checks never need a join.
"""

from datetime import datetime, timedelta, timezone
import logging
from typing import Any, Dict

from sqlalchemy import CheckConstraint, Column, ForeignKey, Index, Integer, String, Text

from ..core.ulid_helper import generate_ulid
from ..database import Base
from .types import UTCDateTime

logger = logging.getLogger(__name__)

_DATETIME_FIELDS = ("start_utc", "end_utc", "created_at", "updated_at")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Booking(Base):
    """One reserved, half-open interval [start_utc, end_utc) of an owner's time."""

    __tablename__ = "bookings"

    id = Column(String(26), primary_key=True, index=True, default=generate_ulid)
    event_type_id = Column(
        String(26), ForeignKey("event_types.id", ondelete="CASCADE"), nullable=False
    )
    owner_id = Column(String(64), nullable=False)

    start_utc = Column(UTCDateTime, nullable=False)
    end_utc = Column(UTCDateTime, nullable=False)
    duration_minutes = Column(Integer, nullable=False)

    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), nullable=False)
    phone = Column(String(50), nullable=False)
    notes = Column(Text, nullable=False, default="")

    recurring_group_id = Column(String(40), nullable=True, index=True)

    created_at = Column(UTCDateTime, nullable=False, default=_utcnow)
    updated_at = Column(UTCDateTime, nullable=True, onupdate=_utcnow)

    __table_args__ = (
        CheckConstraint("duration_minutes > 0", name="check_booking_duration_positive"),
        CheckConstraint("start_utc < end_utc", name="check_booking_time_order"),
        Index("idx_bookings_owner_start_end", "owner_id", "start_utc", "end_utc"),
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if self.id is None:
            self.id = generate_ulid()
        if self.notes is None:
            self.notes = ""
        if self.created_at is None:
            self.created_at = _utcnow()
        if self.end_utc is None and self.start_utc is not None and self.duration_minutes:
            self.end_utc = self.start_utc + timedelta(minutes=int(self.duration_minutes))

    def __repr__(self) -> str:
        return (
            f"<Booking {self.id}: owner={self.owner_id}, "
            f"{self.start_utc.isoformat()}-{self.end_utc.isoformat()}>"
        )

    @property
    def full_name(self) -> str:
        return f"{self.first_name or ''} {self.last_name or ''}".strip()

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """Half-open interval intersection."""
        return self.start_utc < end and self.end_utc > start

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "event_type_id": self.event_type_id,
            "owner_id": self.owner_id,
            "start_utc": self.start_utc.isoformat(),
            "end_utc": self.end_utc.isoformat(),
            "duration_minutes": self.duration_minutes,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "email": self.email,
            "phone": self.phone,
            "notes": self.notes,
            "recurring_group_id": self.recurring_group_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Booking":
        fields = dict(data)
        for key in _DATETIME_FIELDS:
            if fields.get(key):
                fields[key] = datetime.fromisoformat(fields[key])
        return cls(**fields)

    def copy(self) -> "Booking":
        """Detached copy carrying the same column values."""
        return Booking.from_dict(self.to_dict())
