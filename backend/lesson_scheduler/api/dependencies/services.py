# backend/lesson_scheduler/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

The store and the notification service live on app.state for the
lifetime of the process; services are cheap and built per request.
"""

from fastapi import Depends, Request

from ...core.config import Settings
from ...repositories.factory import Store
from ...services.booking_mutation_service import BookingMutationService
from ...services.booking_query_service import BookingQueryService
from ...services.event_type_service import EventTypeService
from ...services.notification_service import NotificationService
from ...services.reservation_coordinator import ReservationCoordinator
from ...services.slot_availability_service import SlotAvailabilityService


def get_store(request: Request) -> Store:
    return request.app.state.store


def get_config(request: Request) -> Settings:
    return request.app.state.config


def get_notification_service(request: Request) -> NotificationService:
    return request.app.state.notification_service


def get_event_type_service(
    store: Store = Depends(get_store), config: Settings = Depends(get_config)
) -> EventTypeService:
    return EventTypeService(store.event_types, config=config)


def get_slot_availability_service(store: Store = Depends(get_store)) -> SlotAvailabilityService:
    return SlotAvailabilityService(store.event_types, store.ledger)


def get_reservation_coordinator(
    store: Store = Depends(get_store),
    notification_service: NotificationService = Depends(get_notification_service),
    config: Settings = Depends(get_config),
) -> ReservationCoordinator:
    return ReservationCoordinator(
        store.event_types,
        store.ledger,
        notification_service=notification_service,
        config=config,
    )


def get_booking_mutation_service(store: Store = Depends(get_store)) -> BookingMutationService:
    return BookingMutationService(store.ledger)


def get_booking_query_service(store: Store = Depends(get_store)) -> BookingQueryService:
    return BookingQueryService(store.event_types, store.ledger)
