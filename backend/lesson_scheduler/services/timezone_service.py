"""
Centralized timezone handling for the lesson scheduler.

Rules:
- Availability windows: wall-clock times in the event type's timezone
- All storage: UTC
- All comparisons: UTC
- Offsets are taken from the zone rules valid on the calendar date in
  question (not today), so DST transitions are handled per date
"""

from datetime import date, datetime, time, timedelta, timezone
from typing import Optional, Tuple

import pytz

from ..core.exceptions import InvalidLocalTimeError, InvalidZoneError, NonexistentLocalTimeError


class TimezoneService:
    """Handles all timezone conversions consistently."""

    DEFAULT_TIMEZONE = "America/New_York"

    @staticmethod
    def get_timezone(tz_str: Optional[str]) -> pytz.BaseTzInfo:
        """
        Get timezone object.

        Raises:
            InvalidZoneError: If the name is empty or unknown
        """
        if not tz_str:
            raise InvalidZoneError(tz_str)
        try:
            return pytz.timezone(tz_str)
        except pytz.UnknownTimeZoneError:
            raise InvalidZoneError(tz_str)

    @staticmethod
    def is_valid_timezone(tz_str: Optional[str]) -> bool:
        try:
            TimezoneService.get_timezone(tz_str)
            return True
        except InvalidZoneError:
            return False

    @staticmethod
    def local_to_utc(local_date: date, local_time: time, timezone_str: str) -> datetime:
        """
        Convert local date/time to UTC.

        Uses the timezone rules valid on local_date. An ambiguous time
        (fall back, exists twice) resolves to its first occurrence.

        Raises:
            InvalidZoneError: If the zone is unknown
            NonexistentLocalTimeError: If the time falls in a spring-forward gap
        """
        tz = TimezoneService.get_timezone(timezone_str)
        naive_dt = datetime.combine(local_date, local_time)  # Intentionally naive for localize()

        try:
            # is_dst=None raises exception for ambiguous/nonexistent times
            local_dt = tz.localize(naive_dt, is_dst=None)
        except pytz.exceptions.AmbiguousTimeError:
            # Fall back (time exists twice) - use first occurrence
            local_dt = tz.localize(naive_dt, is_dst=True)
        except pytz.exceptions.NonExistentTimeError:
            raise NonexistentLocalTimeError(
                f"{local_date.isoformat()} {local_time.strftime('%H:%M')}", timezone_str
            )

        return local_dt.astimezone(timezone.utc)

    @staticmethod
    def to_absolute_instant(zone_name: str, local_date: date, hour: int, minute: int) -> datetime:
        """
        Absolute UTC instant of a wall-clock hour:minute on a calendar date in a zone.

        Raises:
            InvalidZoneError: If the zone is unknown
            InvalidLocalTimeError: If hour/minute are out of range
            NonexistentLocalTimeError: If the time falls in a spring-forward gap
        """
        if not (0 <= hour <= 23) or not (0 <= minute <= 59):
            raise InvalidLocalTimeError(
                f"Invalid local time {hour}:{minute:02d}",
                details={"hour": hour, "minute": minute},
            )
        return TimezoneService.local_to_utc(local_date, time(hour, minute), zone_name)

    @staticmethod
    def utc_to_local(utc_dt: datetime, timezone_str: str) -> datetime:
        """Convert UTC datetime to local timezone."""
        if utc_dt.tzinfo is None:
            utc_dt = utc_dt.replace(tzinfo=timezone.utc)

        tz = TimezoneService.get_timezone(timezone_str)
        return utc_dt.astimezone(tz)

    @staticmethod
    def local_date_of(utc_dt: datetime, timezone_str: str) -> date:
        """Calendar date an instant falls on in the given zone."""
        return TimezoneService.utc_to_local(utc_dt, timezone_str).date()

    @staticmethod
    def local_day_bounds(timezone_str: str, local_date: date) -> Tuple[datetime, datetime]:
        """
        [start, end) of a local calendar day as UTC instants.

        A day is 23 or 25 hours long across DST transitions.
        """
        tz = TimezoneService.get_timezone(timezone_str)

        def _midnight(day: date) -> datetime:
            # A midnight skipped by DST maps forward; never raises
            localized = tz.localize(datetime.combine(day, time(0, 0)), is_dst=False)
            return tz.normalize(localized).astimezone(timezone.utc)

        return _midnight(local_date), _midnight(local_date + timedelta(days=1))

    @staticmethod
    def shift_local_weeks(utc_dt: datetime, weeks: int, timezone_str: str) -> datetime:
        """
        Same local wall-clock time, 7 * weeks calendar days later.

        Raises:
            NonexistentLocalTimeError: If the target wall-clock time does not exist
        """
        local = TimezoneService.utc_to_local(utc_dt, timezone_str)
        target_date = local.date() + timedelta(weeks=weeks)
        return TimezoneService.to_absolute_instant(
            timezone_str, target_date, local.hour, local.minute
        )

    @staticmethod
    def format_for_display(
        utc_dt: datetime, timezone_str: str, include_tz_abbrev: bool = True
    ) -> str:
        """
        Format a UTC datetime for display in a specific timezone.

        Returns: e.g., "Tue, Mar 10, 2026 at 09:00 AM EDT"
        """
        local_dt = TimezoneService.utc_to_local(utc_dt, timezone_str)

        if include_tz_abbrev:
            return local_dt.strftime("%a, %b %d, %Y at %I:%M %p %Z")
        return local_dt.strftime("%a, %b %d, %Y at %I:%M %p")
