"""
Tests for ReservationCoordinator.

Covers single and weekly reservations, all-or-nothing recurring writes,
owner-wide conflict detection and concurrent reservations racing for
the same slot. Every test runs against both store backends.
"""

from datetime import datetime
import threading

import pytest

from lesson_scheduler.core.config import Settings
from lesson_scheduler.core.exceptions import (
    BookingConflictException,
    NotFoundException,
    ServiceException,
    ValidationException,
)
from lesson_scheduler.core.ulid_helper import is_valid_ulid
from lesson_scheduler.schemas.booking import GuestDetails
from lesson_scheduler.services.notification_service import NotificationService
from lesson_scheduler.services.reservation_coordinator import (
    SLOT_UNAVAILABLE_MESSAGE,
    ReservationCoordinator,
)
from tests.factories.scheduling import build_event_type, insert_booking, utc


@pytest.fixture
def coordinator(store, settings, now):
    return ReservationCoordinator(store.event_types, store.ledger, config=settings, now=now)


class RecordingEmailService:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent = []

    def send_email(self, **kwargs):
        if self.fail:
            raise ServiceException("Email sending failed: provider down")
        self.sent.append(kwargs)
        return {"id": f"email-{len(self.sent)}"}


class TestSingleReservation:
    def test_creates_one_booking(self, coordinator, store, event_type, guest):
        result = coordinator.reserve(event_type, utc(2026, 3, 3, 14), guest)

        assert result.count == 1
        assert result.recurring_group_id is None
        booking = result.created[0]
        assert booking.start_utc == utc(2026, 3, 3, 14)
        assert booking.end_utc == utc(2026, 3, 3, 14, 30)
        assert booking.duration_minutes == 30
        assert booking.owner_id == event_type.owner_id
        assert booking.full_name == "Grace Hopper"
        assert [b.id for b in store.ledger.list_for_owner(event_type.owner_id)] == [booking.id]

    def test_reserve_by_slug(self, coordinator, event_type, guest):
        result = coordinator.reserve_by_slug(event_type.slug, utc(2026, 3, 3, 14, 30), guest)
        assert result.created[0].event_type_id == event_type.id

    def test_unknown_slug(self, coordinator, guest):
        with pytest.raises(NotFoundException):
            coordinator.reserve_by_slug("missing", utc(2026, 3, 3, 14), guest)

    def test_non_utc_offset_is_normalized(self, coordinator, event_type, guest):
        """09:00-05:00 and 14:00Z are the same instant."""
        requested = datetime.fromisoformat("2026-03-03T09:00:00-05:00")
        result = coordinator.reserve(event_type, requested, guest)
        assert result.created[0].start_utc == utc(2026, 3, 3, 14)


class TestRecurringReservation:
    def test_weekly_siblings_keep_local_wall_clock(
        self, coordinator, store, recurring_event_type, guest
    ):
        """09:00 EST on Mar 3, then 09:00 EDT on Mar 10 and Mar 17."""
        result = coordinator.reserve(recurring_event_type, utc(2026, 3, 3, 14), guest)

        assert [b.start_utc for b in result.created] == [
            utc(2026, 3, 3, 14),
            utc(2026, 3, 10, 13),
            utc(2026, 3, 17, 13),
        ]
        group_id = result.recurring_group_id
        assert group_id.startswith("rg_") and is_valid_ulid(group_id[3:])
        assert {b.recurring_group_id for b in result.created} == {group_id}
        assert len(store.ledger.list_group(group_id)) == 3

    def test_conflict_on_any_week_writes_nothing(
        self, coordinator, store, recurring_event_type, guest
    ):
        existing = insert_booking(store, recurring_event_type, utc(2026, 3, 17, 13))

        with pytest.raises(BookingConflictException) as exc_info:
            coordinator.reserve(recurring_event_type, utc(2026, 3, 3, 14), guest)

        assert exc_info.value.conflicting_start == utc(2026, 3, 17, 13)
        assert exc_info.value.message == SLOT_UNAVAILABLE_MESSAGE
        remaining = store.ledger.list_for_owner(recurring_event_type.owner_id)
        assert [b.id for b in remaining] == [existing.id]

    def test_count_is_clamped_to_configured_maximum(self, store, recurring_event_type, guest, now):
        config = Settings(store_backend="memory", max_recurring_count=2)
        coordinator = ReservationCoordinator(
            store.event_types, store.ledger, config=config, now=now
        )
        result = coordinator.reserve(recurring_event_type, utc(2026, 3, 3, 14), guest)
        assert result.count == 2

    def test_recurring_disabled_books_once(self, coordinator, store, guest):
        event_type = store.event_types.create(
            build_event_type(slug="one-off", allow_recurring=False, recurring_count=5)
        )
        assert coordinator.reserve(event_type, utc(2026, 3, 3, 14), guest).count == 1

    def test_sibling_in_dst_gap_is_rejected(self, store, settings, guest):
        """02:30 on Sunday Mar 1 exists; a week later it falls in the gap."""
        event_type = store.event_types.create(
            build_event_type(
                slug="early-sunday",
                windows=((0, "02:00", "03:00"),),
                allow_recurring=True,
                recurring_count=2,
            )
        )
        coordinator = ReservationCoordinator(
            store.event_types, store.ledger, config=settings, now=lambda: utc(2026, 2, 20, 0)
        )
        with pytest.raises(ValidationException) as exc_info:
            coordinator.reserve(event_type, utc(2026, 3, 1, 7, 30), guest)

        assert exc_info.value.code == "NOT_AN_AVAILABLE_SLOT"
        assert store.ledger.list_for_owner(event_type.owner_id) == []


class TestConflicts:
    def test_conflict_across_event_types_of_one_owner(self, coordinator, store, event_type, guest):
        """A 09:15 slot of another event type overlaps the 09:00-09:30 booking."""
        late = store.event_types.create(
            build_event_type(slug="piano-late", windows=((2, "09:15", "10:15"),))
        )
        insert_booking(store, event_type, utc(2026, 3, 3, 14))

        with pytest.raises(BookingConflictException) as exc_info:
            coordinator.reserve(late, utc(2026, 3, 3, 14, 15), guest)

        assert exc_info.value.conflicting_start == utc(2026, 3, 3, 14)

    def test_second_reservation_of_same_slot(self, coordinator, event_type, guest):
        coordinator.reserve(event_type, utc(2026, 3, 3, 14), guest)
        with pytest.raises(BookingConflictException):
            coordinator.reserve(event_type, utc(2026, 3, 3, 14), guest)

    def test_adjacent_slot_is_not_a_conflict(self, coordinator, event_type, guest):
        coordinator.reserve(event_type, utc(2026, 3, 3, 14), guest)
        assert coordinator.reserve(event_type, utc(2026, 3, 3, 14, 30), guest).count == 1


class TestValidation:
    def test_past_time(self, store, settings, event_type, guest):
        coordinator = ReservationCoordinator(
            store.event_types, store.ledger, config=settings, now=lambda: utc(2026, 3, 3, 14)
        )
        with pytest.raises(ValidationException) as exc_info:
            coordinator.reserve(event_type, utc(2026, 3, 3, 14), guest)
        assert exc_info.value.code == "PAST_TIME"

    def test_off_grid_start(self, coordinator, event_type, guest):
        with pytest.raises(ValidationException) as exc_info:
            coordinator.reserve(event_type, utc(2026, 3, 3, 14, 15), guest)
        assert exc_info.value.code == "NOT_AN_AVAILABLE_SLOT"

    def test_outside_windows(self, coordinator, event_type, guest):
        with pytest.raises(ValidationException) as exc_info:
            coordinator.reserve(event_type, utc(2026, 3, 4, 14), guest)
        assert exc_info.value.code == "NOT_AN_AVAILABLE_SLOT"

    def test_naive_start(self, coordinator, event_type, guest):
        with pytest.raises(ValidationException) as exc_info:
            coordinator.reserve(event_type, datetime(2026, 3, 3, 14, 0), guest)
        assert exc_info.value.code == "NAIVE_DATETIME"

    def test_missing_contact_fields(self, coordinator, store, event_type):
        guest = GuestDetails(first_name="Grace", last_name="", email="grace@example.com")

        with pytest.raises(ValidationException) as exc_info:
            coordinator.reserve(event_type, utc(2026, 3, 3, 14), guest)

        assert exc_info.value.code == "MISSING_FIELDS"
        assert exc_info.value.details["missing"] == ["last_name", "phone"]
        assert store.ledger.list_for_owner(event_type.owner_id) == []


class TestConcurrentReservations:
    @pytest.mark.parametrize("workers", [2, 8])
    def test_exactly_one_winner(self, coordinator, store, event_type, guest, workers):
        barrier = threading.Barrier(workers)
        successes, conflicts, errors = [], [], []

        def attempt():
            barrier.wait()
            try:
                successes.append(coordinator.reserve(event_type, utc(2026, 3, 3, 14), guest))
            except BookingConflictException as exc:
                conflicts.append(exc)
            except Exception as exc:  # pragma: no cover - surfaced by the assertion below
                errors.append(exc)

        threads = [threading.Thread(target=attempt) for _ in range(workers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        assert errors == []
        assert len(successes) == 1
        assert len(conflicts) == workers - 1
        assert all(c.conflicting_start == utc(2026, 3, 3, 14) for c in conflicts)
        assert len(store.ledger.list_for_owner(event_type.owner_id)) == 1

    def test_overlapping_recurring_series_race(
        self, coordinator, store, recurring_event_type, guest
    ):
        """Two series sharing one week: one commits fully, the other not at all."""
        barrier = threading.Barrier(2)
        outcomes = []

        def attempt(start):
            barrier.wait()
            try:
                outcomes.append(coordinator.reserve(recurring_event_type, start, guest).count)
            except BookingConflictException:
                outcomes.append(0)

        threads = [
            threading.Thread(target=attempt, args=(utc(2026, 3, 3, 14),)),
            threading.Thread(target=attempt, args=(utc(2026, 3, 17, 13),)),
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=30)

        assert sorted(outcomes) == [0, 3]
        assert len(store.ledger.list_for_owner(recurring_event_type.owner_id)) == 3


class TestPostBookingNotification:
    def _coordinator(self, store, settings, now, email_service):
        notifications = NotificationService(settings, email_service=email_service)
        return ReservationCoordinator(
            store.event_types,
            store.ledger,
            notification_service=notifications,
            config=settings,
            now=now,
        )

    def test_sent(self, store, settings, now, event_type, guest):
        email = RecordingEmailService()
        result = self._coordinator(store, settings, now, email).reserve(
            event_type, utc(2026, 3, 3, 14), guest
        )
        assert result.notification_sent is True
        recipients = [m["to_email"] for m in email.sent]
        assert recipients == ["grace@example.com", "instructor@example.com"]

    def test_failure_keeps_the_booking(self, store, settings, now, event_type, guest):
        result = self._coordinator(
            store, settings, now, RecordingEmailService(fail=True)
        ).reserve(event_type, utc(2026, 3, 3, 14), guest)

        assert result.notification_sent is False
        assert "provider down" in result.notification_error
        assert len(store.ledger.list_for_owner(event_type.owner_id)) == 1

    def test_email_not_configured(self, store, settings, now, event_type, guest):
        coordinator = ReservationCoordinator(
            store.event_types,
            store.ledger,
            notification_service=NotificationService(settings),
            config=settings,
            now=now,
        )
        result = coordinator.reserve(event_type, utc(2026, 3, 3, 14), guest)
        assert result.notification_sent is False
        assert result.notification_error == "Email not configured"
