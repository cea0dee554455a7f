# backend/lesson_scheduler/routes/v1/bookings.py
"""
Booking routes.

POST is public (clients reserve from the booking page); listing, edits
and deletion are owner-only and scoped to the caller's bookings.
"""

import asyncio
import logging
from typing import List

from fastapi import APIRouter, Depends, Response, status

from ...api.dependencies import (
    get_booking_mutation_service,
    get_booking_query_service,
    get_owner_id,
    get_reservation_coordinator,
)
from ...schemas.booking import (
    BookingCreate,
    BookingResponse,
    BookingUpdate,
    ReservationResponse,
)
from ...services.booking_mutation_service import BookingMutationService
from ...services.booking_query_service import BookingQueryService
from ...services.reservation_coordinator import ReservationCoordinator

logger = logging.getLogger(__name__)

router = APIRouter(tags=["bookings"])


@router.post("", response_model=ReservationResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: BookingCreate,
    coordinator: ReservationCoordinator = Depends(get_reservation_coordinator),
) -> ReservationResponse:
    result = await asyncio.to_thread(
        coordinator.reserve_by_slug, payload.event_type_slug, payload.start_time, payload.guest()
    )
    return ReservationResponse(
        success=True,
        count=result.count,
        recurring_group_id=result.recurring_group_id,
        notification_sent=result.notification_sent,
        bookings=[
            BookingResponse.from_model(
                b, event_type_name=result.event_type.name if result.event_type else None
            )
            for b in result.created
        ],
    )


@router.get("", response_model=List[BookingResponse])
async def list_bookings(
    owner_id: str = Depends(get_owner_id),
    query_service: BookingQueryService = Depends(get_booking_query_service),
) -> List[BookingResponse]:
    return await asyncio.to_thread(query_service.list_for_owner, owner_id)


@router.get("/{booking_id}", response_model=BookingResponse)
async def get_booking(
    booking_id: str,
    owner_id: str = Depends(get_owner_id),
    query_service: BookingQueryService = Depends(get_booking_query_service),
) -> BookingResponse:
    return await asyncio.to_thread(query_service.get_for_owner, owner_id, booking_id)


@router.patch("/{booking_id}", response_model=BookingResponse)
async def update_booking(
    booking_id: str,
    payload: BookingUpdate,
    owner_id: str = Depends(get_owner_id),
    mutation_service: BookingMutationService = Depends(get_booking_mutation_service),
    query_service: BookingQueryService = Depends(get_booking_query_service),
) -> BookingResponse:
    updated = await asyncio.to_thread(
        mutation_service.update, booking_id, payload, owner_id=owner_id
    )
    return await asyncio.to_thread(query_service.enrich, updated)


@router.delete("/{booking_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_booking(
    booking_id: str,
    owner_id: str = Depends(get_owner_id),
    mutation_service: BookingMutationService = Depends(get_booking_mutation_service),
) -> Response:
    await asyncio.to_thread(mutation_service.delete, booking_id, owner_id=owner_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
