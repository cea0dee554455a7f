# backend/lesson_scheduler/core/enums.py
"""
Core enums for the lesson scheduler.

Weekday numbering is shared by availability windows, the resolver and
the API: 0 is Sunday and 6 is Saturday.
"""

from datetime import date
from enum import Enum, IntEnum


class Weekday(IntEnum):
    """Day of week with Sunday as day 0."""

    SUNDAY = 0
    MONDAY = 1
    TUESDAY = 2
    WEDNESDAY = 3
    THURSDAY = 4
    FRIDAY = 5
    SATURDAY = 6

    @classmethod
    def from_date(cls, value: date) -> "Weekday":
        # date.weekday() is Monday=0..Sunday=6
        return cls((value.weekday() + 1) % 7)


class StoreBackendName(str, Enum):
    MEMORY = "memory"
    DATABASE = "database"
