"""Tests for TimezoneService: wall-clock to instant conversion across DST."""

from datetime import date, datetime, time, timedelta, timezone

import pytest

from lesson_scheduler.core.exceptions import (
    InvalidLocalTimeError,
    InvalidZoneError,
    NonexistentLocalTimeError,
)
from lesson_scheduler.services.timezone_service import TimezoneService
from tests.factories.scheduling import NEW_YORK, TUE_MAR_3, TUE_MAR_10, utc


class TestToAbsoluteInstant:
    def test_est_offset_before_transition(self):
        """09:00 EST on 2026-03-03 = 14:00 UTC."""
        result = TimezoneService.to_absolute_instant(NEW_YORK, TUE_MAR_3, 9, 0)
        assert result == utc(2026, 3, 3, 14)
        assert result.tzinfo == timezone.utc

    def test_edt_offset_after_transition(self):
        """Offset comes from the target date, not today: 09:00 EDT = 13:00 UTC."""
        assert TimezoneService.to_absolute_instant(NEW_YORK, TUE_MAR_10, 9, 0) == utc(
            2026, 3, 10, 13
        )

    def test_spring_forward_gap_raises(self):
        with pytest.raises(NonexistentLocalTimeError, match="does not exist"):
            TimezoneService.to_absolute_instant(NEW_YORK, date(2026, 3, 8), 2, 30)

    def test_fall_back_uses_first_occurrence(self):
        """01:30 happens twice on 2026-11-01; the EDT one (05:30 UTC) wins."""
        result = TimezoneService.to_absolute_instant(NEW_YORK, date(2026, 11, 1), 1, 30)
        assert result == utc(2026, 11, 1, 5, 30)

    def test_unknown_zone(self):
        with pytest.raises(InvalidZoneError) as exc_info:
            TimezoneService.to_absolute_instant("Mars/Olympus", TUE_MAR_3, 9, 0)
        assert exc_info.value.code == "INVALID_TIMEZONE"

    @pytest.mark.parametrize("hour,minute", [(24, 0), (-1, 0), (9, 60)])
    def test_out_of_range_local_time(self, hour, minute):
        with pytest.raises(InvalidLocalTimeError) as exc_info:
            TimezoneService.to_absolute_instant(NEW_YORK, TUE_MAR_3, hour, minute)
        assert exc_info.value.code == "INVALID_LOCAL_TIME"

    def test_utc_zone(self):
        assert TimezoneService.to_absolute_instant("UTC", TUE_MAR_3, 9, 0) == utc(2026, 3, 3, 9)


class TestZoneLookup:
    def test_valid_names(self):
        assert TimezoneService.is_valid_timezone(NEW_YORK)
        assert TimezoneService.is_valid_timezone("Europe/London")

    @pytest.mark.parametrize("name", ["", None, "Not/AZone"])
    def test_invalid_names(self, name):
        assert not TimezoneService.is_valid_timezone(name)


class TestLocalDayBounds:
    def test_regular_day_is_24_hours(self):
        start, end = TimezoneService.local_day_bounds(NEW_YORK, TUE_MAR_3)
        assert start == utc(2026, 3, 3, 5)
        assert end - start == timedelta(hours=24)

    def test_spring_forward_day_is_23_hours(self):
        start, end = TimezoneService.local_day_bounds(NEW_YORK, date(2026, 3, 8))
        assert start == utc(2026, 3, 8, 5)
        assert end == utc(2026, 3, 9, 4)

    def test_fall_back_day_is_25_hours(self):
        start, end = TimezoneService.local_day_bounds(NEW_YORK, date(2026, 11, 1))
        assert end - start == timedelta(hours=25)


class TestShiftLocalWeeks:
    def test_keeps_wall_clock_across_dst(self):
        """09:00 EST stays 09:00 local a week later, which is 09:00 EDT."""
        shifted = TimezoneService.shift_local_weeks(utc(2026, 3, 3, 14), 1, NEW_YORK)
        assert shifted == utc(2026, 3, 10, 13)

    def test_zero_weeks_is_identity(self):
        assert TimezoneService.shift_local_weeks(utc(2026, 3, 3, 14), 0, NEW_YORK) == utc(
            2026, 3, 3, 14
        )

    def test_target_in_gap_raises(self):
        start = TimezoneService.local_to_utc(date(2026, 3, 1), time(2, 30), NEW_YORK)
        with pytest.raises(NonexistentLocalTimeError):
            TimezoneService.shift_local_weeks(start, 1, NEW_YORK)


class TestLocalViews:
    def test_local_date_of_late_evening(self):
        """23:30 local on Mar 3 is already Mar 4 in UTC."""
        assert TimezoneService.local_date_of(utc(2026, 3, 4, 4, 30), NEW_YORK) == TUE_MAR_3

    def test_naive_input_is_treated_as_utc(self):
        local = TimezoneService.utc_to_local(datetime(2026, 3, 3, 14, 0), NEW_YORK)
        assert (local.hour, local.minute) == (9, 0)

    def test_format_for_display(self):
        text = TimezoneService.format_for_display(utc(2026, 3, 10, 13), NEW_YORK)
        assert text == "Tue, Mar 10, 2026 at 09:00 AM EDT"
