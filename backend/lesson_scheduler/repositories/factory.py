# backend/lesson_scheduler/repositories/factory.py
"""
Store factory for the lesson scheduler.

Builds the event type repository and booking ledger for the configured
backend. Both backends honor the same interfaces, so services never
know which one they are talking to.
"""

from dataclasses import dataclass
import logging
from typing import Optional

from sqlalchemy.orm import sessionmaker

from ..core.config import Settings
from ..core.enums import StoreBackendName
from ..core.owner_lock import OwnerLockRegistry
from ..database import build_engine, build_session_factory, init_db
from .booking_ledger import BookingLedger
from .event_type_repository import EventTypeRepository
from .memory_store import MemoryBookingLedger, MemoryEventTypeRepository, MemoryState
from .sql_store import SqlBookingLedger, SqlEventTypeRepository

logger = logging.getLogger(__name__)


@dataclass
class Store:
    event_types: EventTypeRepository
    ledger: BookingLedger
    backend: StoreBackendName


class RepositoryFactory:
    """Centralizes store creation so the backend can be swapped by configuration."""

    @staticmethod
    def create_memory_store(
        data_file: Optional[str] = None,
        lock_timeout_s: float = 10.0,
        locks: Optional[OwnerLockRegistry] = None,
    ) -> Store:
        state = MemoryState(data_file=data_file)
        return Store(
            event_types=MemoryEventTypeRepository(state),
            ledger=MemoryBookingLedger(state, locks or OwnerLockRegistry(), lock_timeout_s),
            backend=StoreBackendName.MEMORY,
        )

    @staticmethod
    def create_sql_store(
        session_factory: sessionmaker,
        lock_timeout_s: float = 10.0,
        locks: Optional[OwnerLockRegistry] = None,
    ) -> Store:
        return Store(
            event_types=SqlEventTypeRepository(session_factory),
            ledger=SqlBookingLedger(session_factory, locks or OwnerLockRegistry(), lock_timeout_s),
            backend=StoreBackendName.DATABASE,
        )

    @staticmethod
    def create_store(config: Settings) -> Store:
        backend = StoreBackendName(config.store_backend)
        logger.info("Creating %s store", backend.value)
        if backend is StoreBackendName.DATABASE:
            engine = build_engine(config.database_url)
            init_db(engine)
            return RepositoryFactory.create_sql_store(
                build_session_factory(engine), lock_timeout_s=config.booking_lock_timeout_s
            )
        return RepositoryFactory.create_memory_store(
            data_file=config.data_file, lock_timeout_s=config.booking_lock_timeout_s
        )
