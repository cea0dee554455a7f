# backend/lesson_scheduler/services/availability_resolver.py
"""
Availability resolution.

Turns an event type's weekly windows into the ordered list of absolute
start instants that can be booked on one calendar date. Each window is
tiled with the event duration from its local start; a slot that would
run past the window end is not offered. Windows ending at 00:00 run
until midnight.

The resolver is pure: it never raises for bad configuration and never
looks at bookings or the current time.
"""

from datetime import date, datetime, time
import logging
from typing import List, Optional, Set

from ..core.enums import Weekday
from ..core.exceptions import InvalidZoneError, NonexistentLocalTimeError
from ..models.event_type import AvailabilityWindow, EventType
from .base import BaseService, NowProvider
from .timezone_service import TimezoneService

logger = logging.getLogger(__name__)

MINUTES_PER_DAY = 24 * 60


def _minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def window_bounds(window: AvailabilityWindow) -> Optional[tuple]:
    """(start, end) minutes since local midnight, or None when unusable."""
    if window.start_time is None or window.end_time is None:
        return None
    start = _minutes(window.start_time)
    end = _minutes(window.end_time)
    # 00:00 as an end is midnight at the close of the day
    if end == 0:
        end = MINUTES_PER_DAY
    if end <= start:
        return None
    return start, end


class AvailabilityResolver(BaseService):
    def __init__(self, clock: Optional[TimezoneService] = None, now: Optional[NowProvider] = None):
        super().__init__(now=now)
        self.clock = clock or TimezoneService()

    @BaseService.measure_operation("resolve_candidates")
    def resolve_candidates(self, event_type: EventType, target_date: date) -> List[datetime]:
        """
        Candidate start instants for target_date, ascending and unique.

        Returns an empty list when no window falls on the date's weekday,
        the duration is not positive or the zone is unknown.
        """
        duration = event_type.duration_minutes or 0
        if duration <= 0:
            return []

        zone = event_type.timezone
        weekday = Weekday.from_date(target_date)
        candidates: Set[datetime] = set()

        for window in event_type.windows:
            if window.weekday != weekday:
                continue
            bounds = window_bounds(window)
            if bounds is None:
                self.logger.debug("Skipping unusable window %r on %s", window, event_type.slug)
                continue
            window_start, window_end = bounds

            minute = window_start
            while minute + duration <= window_end:
                try:
                    candidates.add(
                        self.clock.to_absolute_instant(zone, target_date, minute // 60, minute % 60)
                    )
                except NonexistentLocalTimeError:
                    # Wall-clock time skipped by a DST transition
                    self.logger.debug(
                        "Skipping nonexistent local time %02d:%02d on %s in %s",
                        minute // 60,
                        minute % 60,
                        target_date,
                        zone,
                    )
                except InvalidZoneError:
                    self.logger.warning(
                        "Event type %s has unknown timezone %r", event_type.slug, zone
                    )
                    return []
                minute += duration

        return sorted(candidates)

    def is_candidate(self, event_type: EventType, instant: datetime) -> bool:
        """Whether instant is one of the candidates of its local date."""
        try:
            local_date = self.clock.local_date_of(instant, event_type.timezone)
        except InvalidZoneError:
            return False
        return instant in self.resolve_candidates(event_type, local_date)
