# backend/lesson_scheduler/repositories/booking_repository.py
"""
Booking queries for the SQL store.

All time-based filters use the self-contained UTC instants on the
booking row and the owner id copied from the event type, so every
overlap query is a single indexed range scan without joins.
"""

from datetime import datetime
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..models.booking import Booking
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class BookingRepository(BaseRepository[Booking]):
    def __init__(self, db: Session):
        super().__init__(db, Booking)
        self.logger = logging.getLogger(__name__)

    def _overlap_query(self, owner_id: str, start: datetime, end: datetime):
        # Half-open intervals: touching bookings do not overlap
        return self._build_query().filter(
            Booking.owner_id == owner_id,
            Booking.start_utc < end,
            Booking.end_utc > start,
        )

    def find_overlapping(
        self,
        owner_id: str,
        start: datetime,
        end: datetime,
        exclude_id: Optional[str] = None,
    ) -> Optional[Booking]:
        query = self._overlap_query(owner_id, start, end)
        if exclude_id:
            query = query.filter(Booking.id != exclude_id)
        return self._execute_first(query.order_by(Booking.start_utc))

    def bookings_intersecting(
        self, owner_id: str, range_start: datetime, range_end: datetime
    ) -> List[Booking]:
        query = self._overlap_query(owner_id, range_start, range_end)
        return self._execute_query(query.order_by(Booking.start_utc))

    def list_for_owner(self, owner_id: str) -> List[Booking]:
        query = self._build_query().filter(Booking.owner_id == owner_id)
        return self._execute_query(query.order_by(Booking.start_utc))

    def list_group(self, recurring_group_id: str) -> List[Booking]:
        query = self._build_query().filter(Booking.recurring_group_id == recurring_group_id)
        return self._execute_query(query.order_by(Booking.start_utc))
