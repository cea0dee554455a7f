"""Tests for owner-side booking edits and deletion."""

import pytest

from lesson_scheduler.core.exceptions import (
    BookingConflictException,
    NotFoundException,
    ValidationException,
)
from lesson_scheduler.schemas.booking import BookingUpdate
from lesson_scheduler.services.booking_mutation_service import (
    OVERLAP_MESSAGE,
    BookingMutationService,
)
from tests.factories.scheduling import OWNER, build_event_type, insert_booking, utc


@pytest.fixture
def service(store, now):
    return BookingMutationService(store.ledger, now=now)


@pytest.fixture
def booking(store, event_type):
    return insert_booking(store, event_type, utc(2026, 3, 3, 14))


class TestUpdate:
    def test_move_recomputes_end(self, service, store, booking):
        updated = service.update(booking.id, BookingUpdate(start_time=utc(2026, 3, 5, 18)))

        assert updated.start_utc == utc(2026, 3, 5, 18)
        assert updated.end_utc == utc(2026, 3, 5, 18, 30)
        stored = store.ledger.get_by_id(booking.id)
        assert stored.start_utc == utc(2026, 3, 5, 18)
        assert stored.end_utc == utc(2026, 3, 5, 18, 30)

    def test_moves_are_not_limited_to_windows(self, service, booking):
        """Owners may move a lesson anywhere free, including the past."""
        updated = service.update(booking.id, BookingUpdate(start_time=utc(2026, 1, 1, 3, 7)))
        assert updated.start_utc == utc(2026, 1, 1, 3, 7)

    def test_duration_change_is_rounded(self, service, booking):
        updated = service.update(booking.id, BookingUpdate(duration_minutes=44.6))
        assert updated.duration_minutes == 45
        assert updated.end_utc == utc(2026, 3, 3, 14, 45)

    @pytest.mark.parametrize("minutes,expected", [(0.5, 1), (0.2, 1), (30.5, 31)])
    def test_fractional_duration_is_at_least_one_minute(
        self, service, store, booking, minutes, expected
    ):
        updated = service.update(booking.id, BookingUpdate(duration_minutes=minutes))

        assert updated.duration_minutes == expected
        assert store.ledger.get_by_id(booking.id).duration_minutes == expected

    def test_overlapping_its_own_old_interval_is_allowed(self, service, booking):
        updated = service.update(booking.id, BookingUpdate(start_time=utc(2026, 3, 3, 14, 15)))
        assert updated.start_utc == utc(2026, 3, 3, 14, 15)

    def test_extending_into_a_neighbor_conflicts(self, service, store, event_type, booking):
        neighbor = insert_booking(store, event_type, utc(2026, 3, 3, 14, 30))

        with pytest.raises(BookingConflictException) as exc_info:
            service.update(booking.id, BookingUpdate(duration_minutes=45))

        assert exc_info.value.message == OVERLAP_MESSAGE
        assert exc_info.value.conflicting_start == neighbor.start_utc
        assert store.ledger.get_by_id(booking.id).duration_minutes == 30

    def test_conflict_with_other_event_type_of_owner(self, service, store, booking):
        other = store.event_types.create(build_event_type(slug="theory-60", duration_minutes=60))
        insert_booking(store, other, utc(2026, 3, 3, 16))

        with pytest.raises(BookingConflictException) as exc_info:
            service.update(booking.id, BookingUpdate(start_time=utc(2026, 3, 3, 16, 30)))
        assert exc_info.value.conflicting_start == utc(2026, 3, 3, 16)

    def test_contact_fields_only(self, service, booking):
        updated = service.update(
            booking.id, BookingUpdate(first_name="Ada", phone="555-0000", notes=None)
        )
        assert updated.first_name == "Ada"
        assert updated.phone == "555-0000"
        assert updated.notes == ""
        assert updated.start_utc == booking.start_utc

    @pytest.mark.parametrize("field", ["first_name", "last_name", "email"])
    def test_blank_required_field(self, service, booking, field):
        with pytest.raises(ValidationException) as exc_info:
            service.update(booking.id, BookingUpdate(**{field: "   "}))
        assert exc_info.value.code == "MISSING_FIELDS"

    @pytest.mark.parametrize("minutes", [0, -0.4, -15])
    def test_non_positive_duration(self, service, booking, minutes):
        with pytest.raises(ValidationException) as exc_info:
            service.update(booking.id, BookingUpdate(duration_minutes=minutes))
        assert exc_info.value.code == "INVALID_DURATION"

    def test_unknown_booking(self, service):
        with pytest.raises(NotFoundException) as exc_info:
            service.update("01ARZ3NDEKTSV4RRFFQ69G5FAV", BookingUpdate(first_name="Ada"))
        assert exc_info.value.code == "BOOKING_NOT_FOUND"

    def test_other_owners_booking_is_not_found(self, service, booking):
        with pytest.raises(NotFoundException):
            service.update(booking.id, BookingUpdate(first_name="Ada"), owner_id="owner-2")

    def test_owner_scoped_update(self, service, booking):
        updated = service.update(booking.id, BookingUpdate(last_name="Lovelace"), owner_id=OWNER)
        assert updated.last_name == "Lovelace"


class TestDelete:
    def test_delete_frees_the_slot(self, service, store, booking):
        service.delete(booking.id)

        assert store.ledger.get_by_id(booking.id) is None
        assert store.ledger.find_overlapping(OWNER, booking.start_utc, booking.end_utc) is None

    def test_delete_unknown(self, service):
        with pytest.raises(NotFoundException):
            service.delete("01ARZ3NDEKTSV4RRFFQ69G5FAV")

    def test_delete_other_owners_booking(self, service, store, booking):
        with pytest.raises(NotFoundException):
            service.delete(booking.id, owner_id="owner-2")
        assert store.ledger.get_by_id(booking.id) is not None
