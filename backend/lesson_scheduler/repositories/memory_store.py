# backend/lesson_scheduler/repositories/memory_store.py
"""
In-process store.

Rows live in dictionaries guarded by one re-entrant lock; callers only
ever receive detached copies. Booking writes go through a per-owner
critical section from ``OwnerLockRegistry``. When a data file is
configured, the whole state is written as JSON after every commit and
loaded back on start-up.
"""

from contextlib import contextmanager
from datetime import datetime, timezone
import json
import logging
import os
from pathlib import Path
import threading
from typing import Any, Dict, Iterator, List, Optional, Union

from ..core.exceptions import DuplicateKeyError, RepositoryException
from ..core.owner_lock import OwnerLockRegistry
from ..models.booking import Booking
from ..models.event_type import AvailabilityWindow, EventType
from .booking_ledger import BookingLedger, LedgerWriter
from .event_type_repository import EventTypeRepository

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MemoryState:
    """Shared row storage for the memory repositories."""

    def __init__(self, data_file: Optional[Union[str, Path]] = None):
        self.event_types: Dict[str, EventType] = {}
        self.bookings: Dict[str, Booking] = {}
        self.lock = threading.RLock()
        self.data_file = Path(data_file) if data_file else None
        if self.data_file is not None:
            self.load()

    def load(self) -> None:
        if self.data_file is None or not self.data_file.exists():
            return
        try:
            payload = json.loads(self.data_file.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            raise RepositoryException(f"Failed to load {self.data_file}: {exc}") from exc
        with self.lock:
            self.event_types = {
                row["id"]: EventType.from_dict(row) for row in payload.get("event_types", [])
            }
            self.bookings = {
                row["id"]: Booking.from_dict(row) for row in payload.get("bookings", [])
            }
        logger.info(
            "Loaded %d event types and %d bookings from %s",
            len(self.event_types),
            len(self.bookings),
            self.data_file,
        )

    def persist(
        self,
        event_types: Optional[Dict[str, EventType]] = None,
        bookings: Optional[Dict[str, Booking]] = None,
    ) -> None:
        """Write the given (or current) state to the data file, if configured."""
        if self.data_file is None:
            return
        if event_types is None:
            event_types = self.event_types
        if bookings is None:
            bookings = self.bookings
        payload = {
            "event_types": [row.to_dict() for row in event_types.values()],
            "bookings": [row.to_dict() for row in bookings.values()],
        }
        tmp_path = self.data_file.with_suffix(self.data_file.suffix + ".tmp")
        try:
            self.data_file.parent.mkdir(parents=True, exist_ok=True)
            tmp_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
            os.replace(tmp_path, self.data_file)
        except OSError as exc:
            logger.error("Failed to persist memory store to %s: %s", self.data_file, exc)
            raise RepositoryException(f"Failed to persist store: {exc}") from exc


class MemoryEventTypeRepository(EventTypeRepository):
    def __init__(self, state: MemoryState):
        self._state = state

    def get_by_id(self, event_type_id: str) -> Optional[EventType]:
        with self._state.lock:
            row = self._state.event_types.get(event_type_id)
            return row.copy() if row else None

    def get_by_slug(self, slug: str) -> Optional[EventType]:
        with self._state.lock:
            for row in self._state.event_types.values():
                if row.slug == slug:
                    return row.copy()
        return None

    def list_for_owner(self, owner_id: str) -> List[EventType]:
        with self._state.lock:
            rows = [r.copy() for r in self._state.event_types.values() if r.owner_id == owner_id]
        return sorted(rows, key=lambda r: r.created_at)

    def _slug_taken(self, slug: str, exclude_id: Optional[str] = None) -> bool:
        return any(
            row.slug == slug and row.id != exclude_id
            for row in self._state.event_types.values()
        )

    def _commit(self, row: EventType) -> None:
        updated = dict(self._state.event_types)
        updated[row.id] = row
        self._state.persist(event_types=updated)
        self._state.event_types = updated

    def create(self, event_type: EventType) -> EventType:
        with self._state.lock:
            if self._slug_taken(event_type.slug):
                raise DuplicateKeyError(f"Slug {event_type.slug!r} already exists")
            if event_type.id in self._state.event_types:
                raise DuplicateKeyError(f"Event type {event_type.id} already exists")
            row = event_type.copy()
            self._commit(row)
            return row.copy()

    def update(
        self,
        event_type_id: str,
        changes: Dict[str, Any],
        windows: Optional[List[AvailabilityWindow]] = None,
    ) -> Optional[EventType]:
        with self._state.lock:
            current = self._state.event_types.get(event_type_id)
            if current is None:
                return None
            slug = changes.get("slug")
            if slug and self._slug_taken(slug, exclude_id=event_type_id):
                raise DuplicateKeyError(f"Slug {slug!r} already exists")
            data = current.to_dict()
            data.update({k: v for k, v in changes.items() if k in data and k != "windows"})
            if windows is not None:
                data["windows"] = [w.to_dict() for w in windows]
            row = EventType.from_dict(data)
            row.updated_at = _utcnow()
            self._commit(row)
            return row.copy()


class MemoryLedgerWriter(LedgerWriter):
    """Stages writes for one owner; nothing is visible to others until commit."""

    def __init__(self, state: MemoryState, owner_id: str):
        self._state = state
        self.owner_id = owner_id
        # booking id -> staged row, None marks a staged delete
        self._staged: Dict[str, Optional[Booking]] = {}

    def _owner_rows(self) -> List[Booking]:
        with self._state.lock:
            rows = {
                booking_id: row
                for booking_id, row in self._state.bookings.items()
                if row.owner_id == self.owner_id
            }
        for booking_id, staged in self._staged.items():
            if staged is None:
                rows.pop(booking_id, None)
            else:
                rows[booking_id] = staged
        return list(rows.values())

    def get_by_id(self, booking_id: str) -> Optional[Booking]:
        if booking_id in self._staged:
            staged = self._staged[booking_id]
            return staged.copy() if staged else None
        with self._state.lock:
            row = self._state.bookings.get(booking_id)
            return row.copy() if row else None

    def find_overlapping(
        self, start: datetime, end: datetime, exclude_id: Optional[str] = None
    ) -> Optional[Booking]:
        hits = [
            row
            for row in self._owner_rows()
            if row.id != exclude_id and row.overlaps(start, end)
        ]
        if not hits:
            return None
        return min(hits, key=lambda r: r.start_utc).copy()

    def insert_many(self, bookings: List[Booking]) -> List[Booking]:
        created = []
        for booking in bookings:
            if booking.owner_id != self.owner_id:
                raise RepositoryException(
                    f"Booking for owner {booking.owner_id} staged under owner {self.owner_id}"
                )
            if self.get_by_id(booking.id) is not None:
                raise DuplicateKeyError(f"Booking {booking.id} already exists")
            self._staged[booking.id] = booking.copy()
            created.append(booking.copy())
        return created

    def update(self, booking_id: str, **changes: Any) -> Optional[Booking]:
        row = self.get_by_id(booking_id)
        if row is None:
            return None
        for key, value in changes.items():
            setattr(row, key, value)
        row.updated_at = _utcnow()
        self._staged[booking_id] = row
        return row.copy()

    def delete(self, booking_id: str) -> bool:
        if self.get_by_id(booking_id) is None:
            return False
        self._staged[booking_id] = None
        return True

    def commit(self) -> None:
        if not self._staged:
            return
        with self._state.lock:
            updated = dict(self._state.bookings)
            for booking_id, staged in self._staged.items():
                if staged is None:
                    updated.pop(booking_id, None)
                else:
                    updated[booking_id] = staged
            self._state.persist(bookings=updated)
            self._state.bookings = updated
        logger.debug("Committed %d staged booking changes", len(self._staged))
        self._staged = {}


class MemoryBookingLedger(BookingLedger):
    def __init__(
        self,
        state: MemoryState,
        locks: OwnerLockRegistry,
        lock_timeout_s: float = 10.0,
    ):
        self._state = state
        self._locks = locks
        self._lock_timeout_s = lock_timeout_s

    def _snapshot(self) -> List[Booking]:
        with self._state.lock:
            return list(self._state.bookings.values())

    def get_by_id(self, booking_id: str) -> Optional[Booking]:
        with self._state.lock:
            row = self._state.bookings.get(booking_id)
            return row.copy() if row else None

    def list_for_owner(self, owner_id: str) -> List[Booking]:
        rows = [r.copy() for r in self._snapshot() if r.owner_id == owner_id]
        return sorted(rows, key=lambda r: r.start_utc)

    def list_group(self, recurring_group_id: str) -> List[Booking]:
        rows = [r.copy() for r in self._snapshot() if r.recurring_group_id == recurring_group_id]
        return sorted(rows, key=lambda r: r.start_utc)

    def find_overlapping(
        self,
        owner_id: str,
        start: datetime,
        end: datetime,
        exclude_id: Optional[str] = None,
    ) -> Optional[Booking]:
        hits = [
            r
            for r in self._snapshot()
            if r.owner_id == owner_id and r.id != exclude_id and r.overlaps(start, end)
        ]
        if not hits:
            return None
        return min(hits, key=lambda r: r.start_utc).copy()

    def bookings_intersecting(
        self, owner_id: str, range_start: datetime, range_end: datetime
    ) -> List[Booking]:
        rows = [
            r.copy()
            for r in self._snapshot()
            if r.owner_id == owner_id and r.overlaps(range_start, range_end)
        ]
        return sorted(rows, key=lambda r: r.start_utc)

    @contextmanager
    def unit_of_work(self, owner_id: str) -> Iterator[LedgerWriter]:
        with self._locks.hold(owner_id, self._lock_timeout_s):
            writer = MemoryLedgerWriter(self._state, owner_id)
            yield writer
            writer.commit()

