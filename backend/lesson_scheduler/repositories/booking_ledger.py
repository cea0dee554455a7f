# backend/lesson_scheduler/repositories/booking_ledger.py
"""
BookingLedger interfaces.

The ledger is the authoritative set of bookings. Reads are lock-free
snapshots. Every check-then-write runs inside ``unit_of_work(owner_id)``,
a per-owner critical section whose staged writes commit together on
normal exit and are discarded when the block raises.

Intervals are half-open: [start, end) and [s2, e2) overlap when
``start < e2 and end > s2``, so back-to-back bookings never conflict.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import datetime
from typing import List, Optional

from ..models.booking import Booking


class LedgerWriter(ABC):
    """Write handle bound to one owner inside one critical section."""

    owner_id: str

    @abstractmethod
    def get_by_id(self, booking_id: str) -> Optional[Booking]:
        """Booking as seen by this unit of work, staged changes included."""

    @abstractmethod
    def find_overlapping(
        self, start: datetime, end: datetime, exclude_id: Optional[str] = None
    ) -> Optional[Booking]:
        """Earliest-starting booking of this owner intersecting [start, end)."""

    @abstractmethod
    def insert_many(self, bookings: List[Booking]) -> List[Booking]:
        """Stage new bookings. All of them belong to this writer's owner."""

    @abstractmethod
    def update(self, booking_id: str, **changes) -> Optional[Booking]:
        """Stage field changes. Returns None when the booking does not exist."""

    @abstractmethod
    def delete(self, booking_id: str) -> bool:
        """Stage a removal. Returns False when the booking does not exist."""


class BookingLedger(ABC):
    @abstractmethod
    def get_by_id(self, booking_id: str) -> Optional[Booking]:
        pass

    @abstractmethod
    def list_for_owner(self, owner_id: str) -> List[Booking]:
        """All bookings of an owner, ordered by start."""

    @abstractmethod
    def list_group(self, recurring_group_id: str) -> List[Booking]:
        """Sibling bookings of one recurring reservation, ordered by start."""

    @abstractmethod
    def find_overlapping(
        self,
        owner_id: str,
        start: datetime,
        end: datetime,
        exclude_id: Optional[str] = None,
    ) -> Optional[Booking]:
        pass

    @abstractmethod
    def bookings_intersecting(
        self, owner_id: str, range_start: datetime, range_end: datetime
    ) -> List[Booking]:
        """Every booking of the owner intersecting [range_start, range_end)."""

    @abstractmethod
    def unit_of_work(self, owner_id: str) -> AbstractContextManager[LedgerWriter]:
        """
        Enter the owner's critical section.

        Raises:
            LockTimeoutError: If the section cannot be entered in time
        """
