# backend/lesson_scheduler/services/booking_query_service.py
"""Owner-facing booking reads, enriched for display."""

from collections import defaultdict
import logging
from typing import Dict, List, Optional

from ..core.exceptions import NotFoundException
from ..models.booking import Booking
from ..repositories.booking_ledger import BookingLedger
from ..repositories.event_type_repository import EventTypeRepository
from ..schemas.booking import BookingResponse, RecurringSession
from .base import BaseService, NowProvider

logger = logging.getLogger(__name__)


class BookingQueryService(BaseService):
    def __init__(
        self,
        event_types: EventTypeRepository,
        ledger: BookingLedger,
        now: Optional[NowProvider] = None,
    ):
        super().__init__(now=now)
        self.event_types = event_types
        self.ledger = ledger

    def _event_type_names(self, owner_id: str) -> Dict[str, str]:
        return {et.id: et.name for et in self.event_types.list_for_owner(owner_id)}

    @staticmethod
    def _sessions(bookings: List[Booking]) -> Dict[str, RecurringSession]:
        groups: Dict[str, List[Booking]] = defaultdict(list)
        for booking in bookings:
            if booking.recurring_group_id:
                groups[booking.recurring_group_id].append(booking)

        sessions: Dict[str, RecurringSession] = {}
        for siblings in groups.values():
            ordered = sorted(siblings, key=lambda b: b.start_utc)
            for index, booking in enumerate(ordered, start=1):
                sessions[booking.id] = RecurringSession(index=index, total=len(ordered))
        return sessions

    @BaseService.measure_operation("list_bookings")
    def list_for_owner(self, owner_id: str) -> List[BookingResponse]:
        bookings = self.ledger.list_for_owner(owner_id)
        names = self._event_type_names(owner_id)
        sessions = self._sessions(bookings)
        return [
            BookingResponse.from_model(
                b, event_type_name=names.get(b.event_type_id), recurring_session=sessions.get(b.id)
            )
            for b in bookings
        ]

    def get_for_owner(self, owner_id: str, booking_id: str) -> BookingResponse:
        booking = self.ledger.get_by_id(booking_id)
        if booking is None or booking.owner_id != owner_id:
            raise NotFoundException("Booking not found", code="BOOKING_NOT_FOUND")
        return self.enrich(booking)

    def enrich(self, booking: Booking) -> BookingResponse:
        event_type = self.event_types.get_by_id(booking.event_type_id)
        session = None
        if booking.recurring_group_id:
            siblings = self.ledger.list_group(booking.recurring_group_id)
            session = self._sessions(siblings).get(booking.id)
        return BookingResponse.from_model(
            booking,
            event_type_name=event_type.name if event_type else None,
            recurring_session=session,
        )
