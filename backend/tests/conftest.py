"""Shared fixtures: a frozen clock, both store backends and stored event types."""

import pytest

from lesson_scheduler.core.config import Settings
from lesson_scheduler.database import build_engine, build_session_factory, init_db
from lesson_scheduler.repositories.factory import RepositoryFactory
from lesson_scheduler.schemas.booking import GuestDetails
from tests.factories.scheduling import FIXED_NOW, build_event_type


@pytest.fixture
def now():
    return lambda: FIXED_NOW


@pytest.fixture
def settings():
    return Settings(
        store_backend="memory",
        resend_api_key=None,
        max_recurring_count=52,
        booking_lock_timeout_s=2.0,
    )


@pytest.fixture
def guest():
    return GuestDetails(
        first_name="Grace",
        last_name="Hopper",
        email="grace@example.com",
        phone="555-0199",
        notes="First lesson",
    )


@pytest.fixture
def memory_store():
    return RepositoryFactory.create_memory_store(lock_timeout_s=2.0)


@pytest.fixture
def sqlite_store(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'ledger.db'}")
    init_db(engine)
    yield RepositoryFactory.create_sql_store(build_session_factory(engine), lock_timeout_s=2.0)
    engine.dispose()


@pytest.fixture(params=["memory", "sqlite"])
def store(request):
    """Every ledger behavior must hold on both backends."""
    return request.getfixturevalue(f"{request.param}_store")


@pytest.fixture
def event_type(store):
    return store.event_types.create(build_event_type())


@pytest.fixture
def recurring_event_type(store):
    return store.event_types.create(
        build_event_type(slug="piano-weekly", allow_recurring=True, recurring_count=3)
    )
