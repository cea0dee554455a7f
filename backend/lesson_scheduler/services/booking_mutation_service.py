# backend/lesson_scheduler/services/booking_mutation_service.py
"""
Owner-side edits of existing bookings.

An edit may move a booking, change its length or fix contact details.
The new interval is re-checked against every other booking of the
owner inside the same per-owner critical section used by reservations.
Edits are not re-validated against availability windows or "now":
owners may move a lesson to any free time.
"""

from datetime import timedelta, timezone
import logging
from typing import Any, Dict, Optional

from ..core.exceptions import BookingConflictException, NotFoundException, ValidationException
from ..models.booking import Booking
from ..repositories.booking_ledger import BookingLedger
from ..schemas.booking import BookingUpdate
from .base import BaseService, NowProvider
from .event_type_service import normalize_duration

logger = logging.getLogger(__name__)

OVERLAP_MESSAGE = "This time would overlap with another lesson"
NON_EMPTY_WHEN_SUPPLIED = ("first_name", "last_name", "email")


class BookingMutationService(BaseService):
    def __init__(self, ledger: BookingLedger, now: Optional[NowProvider] = None):
        super().__init__(now=now)
        self.ledger = ledger

    def _get_owned(self, booking_id: str, owner_id: Optional[str]) -> Booking:
        booking = self.ledger.get_by_id(booking_id)
        if booking is None or (owner_id is not None and booking.owner_id != owner_id):
            raise NotFoundException("Booking not found", code="BOOKING_NOT_FOUND")
        return booking

    def _collect_changes(self, changes: BookingUpdate) -> Dict[str, Any]:
        supplied = changes.model_dump(exclude_unset=True)
        fields: Dict[str, Any] = {}

        for name in NON_EMPTY_WHEN_SUPPLIED:
            if name in supplied:
                value = (supplied[name] or "").strip()
                if not value:
                    raise ValidationException(
                        f"{name} cannot be empty",
                        code="MISSING_FIELDS",
                        details={"field": name},
                    )
                fields[name] = value

        if "phone" in supplied:
            fields["phone"] = (supplied["phone"] or "").strip()
        if "notes" in supplied:
            fields["notes"] = supplied["notes"] or ""

        if "duration_minutes" in supplied:
            raw = supplied["duration_minutes"]
            minutes = normalize_duration(raw)
            if minutes is None:
                raise ValidationException(
                    "durationMinutes must be a positive number",
                    code="INVALID_DURATION",
                    details={"duration_minutes": raw},
                )
            fields["duration_minutes"] = minutes

        if supplied.get("start_time") is not None:
            fields["start_utc"] = supplied["start_time"].astimezone(timezone.utc)

        return fields

    @BaseService.measure_operation("update_booking")
    def update(
        self, booking_id: str, changes: BookingUpdate, owner_id: Optional[str] = None
    ) -> Booking:
        """
        Apply changes to a booking, re-checking overlap atomically.

        Raises:
            NotFoundException: Unknown booking (or another owner's)
            ValidationException: Empty contact field or non-positive duration
            BookingConflictException: New interval overlaps another booking
        """
        fields = self._collect_changes(changes)
        current = self._get_owned(booking_id, owner_id)

        with self.ledger.unit_of_work(current.owner_id) as writer:
            # Re-read inside the critical section; it may have been deleted meanwhile
            current = writer.get_by_id(booking_id)
            if current is None:
                raise NotFoundException("Booking not found", code="BOOKING_NOT_FOUND")

            if "start_utc" in fields or "duration_minutes" in fields:
                start = fields.get("start_utc", current.start_utc)
                minutes = fields.get("duration_minutes", current.duration_minutes)
                end = start + timedelta(minutes=minutes)
                fields["end_utc"] = end

                existing = writer.find_overlapping(start, end, exclude_id=booking_id)
                if existing is not None:
                    raise BookingConflictException(
                        OVERLAP_MESSAGE,
                        conflicting_start=existing.start_utc,
                        details={"booking_id": booking_id},
                    )

            updated = writer.update(booking_id, **fields) if fields else current

        self.log_operation("update_booking", booking_id=booking_id, fields=sorted(fields))
        return updated

    @BaseService.measure_operation("delete_booking")
    def delete(self, booking_id: str, owner_id: Optional[str] = None) -> None:
        """
        Remove a booking unconditionally.

        Raises:
            NotFoundException: Unknown booking (or another owner's)
        """
        current = self._get_owned(booking_id, owner_id)
        with self.ledger.unit_of_work(current.owner_id) as writer:
            if not writer.delete(booking_id):
                raise NotFoundException("Booking not found", code="BOOKING_NOT_FOUND")
        self.log_operation("delete_booking", booking_id=booking_id)
