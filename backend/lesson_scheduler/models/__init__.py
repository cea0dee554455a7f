from .booking import Booking
from .event_type import AvailabilityWindow, EventType

__all__ = ["AvailabilityWindow", "Booking", "EventType"]
