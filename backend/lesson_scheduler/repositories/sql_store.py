# backend/lesson_scheduler/repositories/sql_store.py
"""
SQLAlchemy-backed store.

Each read opens a short-lived session. Each unit of work owns one
session and one transaction; on PostgreSQL the owner's critical section
is a transaction-scoped advisory lock, on other dialects it is the
process-level ``OwnerLockRegistry``.
"""

from contextlib import contextmanager
from datetime import datetime, timezone
import logging
from typing import Any, Dict, Iterator, List, Optional

from sqlalchemy import text
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ..core.exceptions import LockTimeoutError, RepositoryException
from ..core.owner_lock import OwnerLockRegistry
from ..models.booking import Booking
from ..models.event_type import AvailabilityWindow, EventType
from .base_repository import BaseRepository, get_dialect_name
from .booking_ledger import BookingLedger, LedgerWriter
from .booking_repository import BookingRepository
from .event_type_repository import EventTypeRepository

logger = logging.getLogger(__name__)

# lock_not_available
_PG_LOCK_TIMEOUT_SQLSTATE = "55P03"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@contextmanager
def session_scope(session_factory: sessionmaker) -> Iterator[Session]:
    """Session that commits on success and rolls back on any error."""
    db = session_factory()
    try:
        yield db
        db.commit()
    except SQLAlchemyError as exc:
        logger.error("Store transaction failed: %s", exc)
        db.rollback()
        raise RepositoryException(f"Database operation failed: {exc}") from exc
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


class SqlEventTypeRepository(EventTypeRepository):
    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    def get_by_id(self, event_type_id: str) -> Optional[EventType]:
        with session_scope(self._session_factory) as db:
            return BaseRepository(db, EventType).get_by_id(event_type_id)

    def get_by_slug(self, slug: str) -> Optional[EventType]:
        with session_scope(self._session_factory) as db:
            return BaseRepository(db, EventType).find_one_by(slug=slug)

    def list_for_owner(self, owner_id: str) -> List[EventType]:
        with session_scope(self._session_factory) as db:
            rows = BaseRepository(db, EventType).find_by(owner_id=owner_id)
            return sorted(rows, key=lambda r: r.created_at)

    def create(self, event_type: EventType) -> EventType:
        with session_scope(self._session_factory) as db:
            return BaseRepository(db, EventType).add(event_type)

    def update(
        self,
        event_type_id: str,
        changes: Dict[str, Any],
        windows: Optional[List[AvailabilityWindow]] = None,
    ) -> Optional[EventType]:
        with session_scope(self._session_factory) as db:
            repo = BaseRepository(db, EventType)
            row = repo.get_by_id(event_type_id)
            if row is None:
                return None
            if windows is not None:
                row.windows = windows
            return repo.update(event_type_id, updated_at=_utcnow(), **changes)


class SqlLedgerWriter(LedgerWriter):
    def __init__(self, repository: BookingRepository, owner_id: str):
        self._repository = repository
        self.owner_id = owner_id

    def get_by_id(self, booking_id: str) -> Optional[Booking]:
        return self._repository.get_by_id(booking_id)

    def find_overlapping(
        self, start: datetime, end: datetime, exclude_id: Optional[str] = None
    ) -> Optional[Booking]:
        return self._repository.find_overlapping(self.owner_id, start, end, exclude_id=exclude_id)

    def insert_many(self, bookings: List[Booking]) -> List[Booking]:
        for booking in bookings:
            if booking.owner_id != self.owner_id:
                raise RepositoryException(
                    f"Booking for owner {booking.owner_id} staged under owner {self.owner_id}"
                )
            self._repository.add(booking)
        return bookings

    def update(self, booking_id: str, **changes: Any) -> Optional[Booking]:
        return self._repository.update(booking_id, updated_at=_utcnow(), **changes)

    def delete(self, booking_id: str) -> bool:
        return self._repository.delete(booking_id)


class SqlBookingLedger(BookingLedger):
    def __init__(
        self,
        session_factory: sessionmaker,
        locks: OwnerLockRegistry,
        lock_timeout_s: float = 10.0,
    ):
        self._session_factory = session_factory
        self._locks = locks
        self._lock_timeout_s = lock_timeout_s

    def get_by_id(self, booking_id: str) -> Optional[Booking]:
        with session_scope(self._session_factory) as db:
            return BookingRepository(db).get_by_id(booking_id)

    def list_for_owner(self, owner_id: str) -> List[Booking]:
        with session_scope(self._session_factory) as db:
            return BookingRepository(db).list_for_owner(owner_id)

    def list_group(self, recurring_group_id: str) -> List[Booking]:
        with session_scope(self._session_factory) as db:
            return BookingRepository(db).list_group(recurring_group_id)

    def find_overlapping(
        self,
        owner_id: str,
        start: datetime,
        end: datetime,
        exclude_id: Optional[str] = None,
    ) -> Optional[Booking]:
        with session_scope(self._session_factory) as db:
            return BookingRepository(db).find_overlapping(
                owner_id, start, end, exclude_id=exclude_id
            )

    def bookings_intersecting(
        self, owner_id: str, range_start: datetime, range_end: datetime
    ) -> List[Booking]:
        with session_scope(self._session_factory) as db:
            return BookingRepository(db).bookings_intersecting(owner_id, range_start, range_end)

    @contextmanager
    def _serialize(self, db: Session, owner_id: str) -> Iterator[None]:
        if get_dialect_name(db) != "postgresql":
            with self._locks.hold(owner_id, self._lock_timeout_s):
                yield
            return

        timeout_ms = int(self._lock_timeout_s * 1000)
        try:
            db.execute(text(f"SET LOCAL lock_timeout = '{timeout_ms}ms'"))
            # Released automatically when the transaction commits or rolls back
            db.execute(
                text("SELECT pg_advisory_xact_lock(hashtext(:key))"),
                {"key": f"owner:{owner_id}:bookings"},
            )
        except OperationalError as exc:
            if getattr(exc.orig, "pgcode", None) == _PG_LOCK_TIMEOUT_SQLSTATE:
                raise LockTimeoutError(owner_id, self._lock_timeout_s) from exc
            raise
        yield

    @contextmanager
    def unit_of_work(self, owner_id: str) -> Iterator[LedgerWriter]:
        db = self._session_factory()
        try:
            with self._serialize(db, owner_id):
                yield SqlLedgerWriter(BookingRepository(db), owner_id)
                db.commit()
        except SQLAlchemyError as exc:
            logger.error("Booking unit of work failed for owner %s: %s", owner_id, exc)
            db.rollback()
            raise RepositoryException(f"Database operation failed: {exc}") from exc
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()
