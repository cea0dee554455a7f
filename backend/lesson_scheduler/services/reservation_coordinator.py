# backend/lesson_scheduler/services/reservation_coordinator.py
"""
Reservation coordination.

A reservation creates one booking, or N weekly sibling bookings when the
event type allows recurring reservations. Validation against "now" and
against the availability windows happens first, without locks. The
overlap check and the insert of every sibling then run inside a single
per-owner critical section: either every sibling is committed or none.

Notifications are sent only after the critical section is released.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
import logging
from typing import List, Optional

from ..core.config import Settings, settings
from ..core.exceptions import (
    BookingConflictException,
    InvalidLocalTimeError,
    NotFoundException,
    ValidationException,
)
from ..core.ulid_helper import generate_recurring_group_id
from ..models.booking import Booking
from ..models.event_type import EventType
from ..repositories.booking_ledger import BookingLedger
from ..repositories.event_type_repository import EventTypeRepository
from ..schemas.booking import GuestDetails
from .availability_resolver import AvailabilityResolver
from .base import BaseService, NowProvider
from .event_type_service import clamp_recurring_count
from .notification_service import NotificationService
from .timezone_service import TimezoneService

logger = logging.getLogger(__name__)

SLOT_UNAVAILABLE_MESSAGE = "Slot no longer available"
REQUIRED_GUEST_FIELDS = ("first_name", "last_name", "email", "phone")


@dataclass
class ReservationResult:
    created: List[Booking]
    recurring_group_id: Optional[str] = None
    notification_sent: bool = False
    notification_error: Optional[str] = None
    event_type: Optional[EventType] = field(default=None, repr=False)

    @property
    def count(self) -> int:
        return len(self.created)


class ReservationCoordinator(BaseService):
    def __init__(
        self,
        event_types: EventTypeRepository,
        ledger: BookingLedger,
        resolver: Optional[AvailabilityResolver] = None,
        notification_service: Optional[NotificationService] = None,
        config: Optional[Settings] = None,
        now: Optional[NowProvider] = None,
    ):
        super().__init__(now=now)
        self.event_types = event_types
        self.ledger = ledger
        self.resolver = resolver or AvailabilityResolver(now=now)
        self.notification_service = notification_service
        self.config = config or settings

    def _validate_guest(self, guest: GuestDetails) -> None:
        missing = [
            name for name in REQUIRED_GUEST_FIELDS if not (getattr(guest, name) or "").strip()
        ]
        if missing:
            raise ValidationException(
                "Missing required fields",
                code="MISSING_FIELDS",
                details={"missing": missing},
            )

    def _session_starts(self, event_type: EventType, first_start: datetime) -> List[datetime]:
        """First start plus weekly siblings at the same local wall-clock time."""
        count = 1
        if event_type.allow_recurring:
            count = clamp_recurring_count(
                event_type.recurring_count, self.config.max_recurring_count
            )

        starts = [first_start]
        for week in range(1, count):
            try:
                starts.append(
                    TimezoneService.shift_local_weeks(first_start, week, event_type.timezone)
                )
            except InvalidLocalTimeError:
                # Sibling lands in a DST gap: that wall-clock time is not bookable
                raise ValidationException(
                    "Requested time is not an available slot",
                    code="NOT_AN_AVAILABLE_SLOT",
                    details={"requested_start": first_start.isoformat(), "week": week},
                )
        return starts

    def _check_slots(self, event_type: EventType, starts: List[datetime]) -> None:
        for start in starts:
            if not self.resolver.is_candidate(event_type, start):
                raise ValidationException(
                    "Requested time is not an available slot",
                    code="NOT_AN_AVAILABLE_SLOT",
                    details={"requested_start": start.isoformat()},
                )

    def _build_rows(
        self,
        event_type: EventType,
        starts: List[datetime],
        guest: GuestDetails,
        recurring_group_id: Optional[str],
    ) -> List[Booking]:
        duration = timedelta(minutes=event_type.duration_minutes)
        return [
            Booking(
                event_type_id=event_type.id,
                owner_id=event_type.owner_id,
                start_utc=start,
                end_utc=start + duration,
                duration_minutes=event_type.duration_minutes,
                first_name=guest.first_name.strip(),
                last_name=guest.last_name.strip(),
                email=guest.email.strip(),
                phone=guest.phone.strip(),
                notes=guest.notes or "",
                recurring_group_id=recurring_group_id,
            )
            for start in starts
        ]

    @BaseService.measure_operation("reserve")
    def reserve(
        self, event_type: EventType, requested_first_start: datetime, guest: GuestDetails
    ) -> ReservationResult:
        """
        Atomically reserve one slot, or the whole weekly series.

        Raises:
            ValidationException: Missing fields, past time, or not a generated slot
            BookingConflictException: Any session overlaps an existing booking
            LockTimeoutError: The owner's critical section could not be entered
        """
        self._validate_guest(guest)

        if requested_first_start.tzinfo is None:
            raise ValidationException("startTime must include a UTC offset", code="NAIVE_DATETIME")
        first_start = requested_first_start.astimezone(timezone.utc)

        if first_start <= self.now():
            raise ValidationException(
                "Cannot book a time in the past",
                code="PAST_TIME",
                details={"requested_start": first_start.isoformat()},
            )

        starts = self._session_starts(event_type, first_start)
        self._check_slots(event_type, starts)

        recurring_group_id = generate_recurring_group_id() if len(starts) > 1 else None
        rows = self._build_rows(event_type, starts, guest, recurring_group_id)

        with self.ledger.unit_of_work(event_type.owner_id) as writer:
            for row in rows:
                existing = writer.find_overlapping(row.start_utc, row.end_utc)
                if existing is not None:
                    self.logger.info(
                        "Reservation conflict for %s at %s (existing %s)",
                        event_type.slug,
                        row.start_utc.isoformat(),
                        existing.id,
                    )
                    raise BookingConflictException(
                        SLOT_UNAVAILABLE_MESSAGE,
                        conflicting_start=existing.start_utc,
                        details={"requested_start": row.start_utc.isoformat()},
                    )
            created = writer.insert_many(rows)

        self.log_operation(
            "reserve",
            event_type_id=event_type.id,
            owner_id=event_type.owner_id,
            count=len(created),
            recurring_group_id=recurring_group_id,
        )

        result = ReservationResult(
            created=created, recurring_group_id=recurring_group_id, event_type=event_type
        )
        self._handle_post_booking_tasks(result, event_type)
        return result

    def reserve_by_slug(
        self, slug: str, requested_first_start: datetime, guest: GuestDetails
    ) -> ReservationResult:
        event_type = self.event_types.get_by_slug(slug)
        if event_type is None:
            raise NotFoundException(f"Event type {slug!r} not found", code="EVENT_TYPE_NOT_FOUND")
        return self.reserve(event_type, requested_first_start, guest)

    def _handle_post_booking_tasks(self, result: ReservationResult, event_type: EventType) -> None:
        if self.notification_service is None:
            return
        try:
            outcome = self.notification_service.send_booking_confirmation(
                result.created, event_type
            )
        except Exception as e:
            logger.error(f"Failed to send booking notification: {str(e)}")
            result.notification_error = str(e)
            return
        result.notification_sent = outcome.sent
        result.notification_error = outcome.error
