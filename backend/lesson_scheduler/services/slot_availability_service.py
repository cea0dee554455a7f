# backend/lesson_scheduler/services/slot_availability_service.py
"""
Slot availability.

Bookable slots are the resolver's candidates minus anything at or
before "now" and minus anything intersecting an existing booking of
the owner. Reads take no locks; the answer may be stale by the time a
client reserves, which the reservation path re-checks atomically.
"""

from datetime import date, datetime, timedelta
import logging
from typing import List, Optional

from ..core.exceptions import NotFoundException
from ..models.event_type import EventType
from ..repositories.booking_ledger import BookingLedger
from ..repositories.event_type_repository import EventTypeRepository
from .availability_resolver import AvailabilityResolver
from .base import BaseService, NowProvider

logger = logging.getLogger(__name__)


class SlotAvailabilityService(BaseService):
    def __init__(
        self,
        event_types: EventTypeRepository,
        ledger: BookingLedger,
        resolver: Optional[AvailabilityResolver] = None,
        now: Optional[NowProvider] = None,
    ):
        super().__init__(now=now)
        self.event_types = event_types
        self.ledger = ledger
        self.resolver = resolver or AvailabilityResolver(now=now)

    @BaseService.measure_operation("available_slots")
    def available_slots(self, event_type: EventType, target_date: date) -> List[datetime]:
        candidates = self.resolver.resolve_candidates(event_type, target_date)
        now = self.now()
        candidates = [c for c in candidates if c > now]
        if not candidates:
            return []

        duration = timedelta(minutes=event_type.duration_minutes)
        # One query for the local day, widened if the last slot ends after it
        day_start, day_end = self.resolver.clock.local_day_bounds(event_type.timezone, target_date)
        taken = self.ledger.bookings_intersecting(
            event_type.owner_id, day_start, max(day_end, candidates[-1] + duration)
        )
        if not taken:
            return candidates

        return [
            start
            for start in candidates
            if not any(b.overlaps(start, start + duration) for b in taken)
        ]

    def available_slots_for_slug(self, slug: str, target_date: date) -> List[datetime]:
        event_type = self.event_types.get_by_slug(slug)
        if event_type is None:
            raise NotFoundException(f"Event type {slug!r} not found", code="EVENT_TYPE_NOT_FOUND")
        return self.available_slots(event_type, target_date)
