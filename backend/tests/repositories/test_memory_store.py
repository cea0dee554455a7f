"""Tests specific to the in-process store: copies, lock timeouts and JSON persistence."""

import json

import pytest

from lesson_scheduler.core.exceptions import DuplicateKeyError, LockTimeoutError
from lesson_scheduler.core.owner_lock import OwnerLockRegistry
from lesson_scheduler.repositories.factory import RepositoryFactory
from tests.factories.scheduling import (
    OWNER,
    build_booking,
    build_event_type,
    insert_booking,
    utc,
)


class TestMemoryEventTypes:
    def test_returns_detached_copies(self, memory_store):
        created = memory_store.event_types.create(build_event_type())
        created.name = "Changed locally"

        assert memory_store.event_types.get_by_id(created.id).name == "Piano lesson"

    def test_duplicate_slug(self, memory_store):
        memory_store.event_types.create(build_event_type())
        with pytest.raises(DuplicateKeyError):
            memory_store.event_types.create(build_event_type())


class TestMemoryLocking:
    def test_held_owner_lock_times_out(self):
        locks = OwnerLockRegistry()
        store = RepositoryFactory.create_memory_store(lock_timeout_s=0.05, locks=locks)

        assert locks.acquire(OWNER, timeout_s=0.1)
        try:
            with pytest.raises(LockTimeoutError):
                with store.ledger.unit_of_work(OWNER):
                    pass  # pragma: no cover
            # Other owners are unaffected
            with store.ledger.unit_of_work("owner-2"):
                pass
        finally:
            locks.release(OWNER)


class TestMemoryPersistence:
    def test_state_survives_restart(self, tmp_path):
        data_file = tmp_path / "scheduler.json"
        first = RepositoryFactory.create_memory_store(data_file=str(data_file))
        event_type = first.event_types.create(build_event_type())
        booking = insert_booking(first, event_type, utc(2026, 3, 3, 14))

        second = RepositoryFactory.create_memory_store(data_file=str(data_file))

        reloaded = second.event_types.get_by_slug("piano-30")
        assert reloaded.id == event_type.id
        assert [w.to_dict()["start_time"] for w in reloaded.windows] == ["09:00"]
        stored = second.ledger.get_by_id(booking.id)
        assert stored.start_utc == utc(2026, 3, 3, 14)
        assert stored.end_utc == utc(2026, 3, 3, 14, 30)

    def test_file_is_plain_json(self, tmp_path):
        data_file = tmp_path / "scheduler.json"
        store = RepositoryFactory.create_memory_store(data_file=str(data_file))
        store.event_types.create(build_event_type())

        payload = json.loads(data_file.read_text())
        assert [row["slug"] for row in payload["event_types"]] == ["piano-30"]
        assert payload["bookings"] == []

    def test_rolled_back_work_is_not_persisted(self, tmp_path):
        data_file = tmp_path / "scheduler.json"
        store = RepositoryFactory.create_memory_store(data_file=str(data_file))
        event_type = store.event_types.create(build_event_type())

        with pytest.raises(RuntimeError):
            with store.ledger.unit_of_work(OWNER) as writer:
                writer.insert_many([build_booking(event_type, utc(2026, 3, 3, 14))])
                raise RuntimeError("boom")

        assert json.loads(data_file.read_text())["bookings"] == []
