from .auth import get_owner_id
from .services import (
    get_config,
    get_booking_mutation_service,
    get_booking_query_service,
    get_event_type_service,
    get_reservation_coordinator,
    get_slot_availability_service,
    get_store,
)

__all__ = [
    "get_config",
    "get_booking_mutation_service",
    "get_booking_query_service",
    "get_event_type_service",
    "get_owner_id",
    "get_reservation_coordinator",
    "get_slot_availability_service",
    "get_store",
]
