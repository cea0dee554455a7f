# backend/lesson_scheduler/routes/v1/event_types.py
"""
Event type routes.

Owner routes manage event types; the slug lookup and the slot listing
are public and power the client booking page.
"""

import asyncio
from datetime import datetime
import logging
from typing import List

from fastapi import APIRouter, Depends, Query, status

from ...api.dependencies import (
    get_event_type_service,
    get_owner_id,
    get_slot_availability_service,
)
from ...core.exceptions import ValidationException
from ...schemas.booking import parse_date_only
from ...schemas.event_type import EventTypeCreate, EventTypeResponse, EventTypeUpdate
from ...services.event_type_service import EventTypeService
from ...services.slot_availability_service import SlotAvailabilityService

logger = logging.getLogger(__name__)

router = APIRouter(tags=["event-types"])


@router.get("", response_model=List[EventTypeResponse])
async def list_event_types(
    owner_id: str = Depends(get_owner_id),
    service: EventTypeService = Depends(get_event_type_service),
) -> List[EventTypeResponse]:
    event_types = await asyncio.to_thread(service.list_for_owner, owner_id)
    return [EventTypeResponse.from_model(et) for et in event_types]


@router.post("", response_model=EventTypeResponse, status_code=status.HTTP_201_CREATED)
async def create_event_type(
    payload: EventTypeCreate,
    owner_id: str = Depends(get_owner_id),
    service: EventTypeService = Depends(get_event_type_service),
) -> EventTypeResponse:
    event_type = await asyncio.to_thread(service.create, owner_id, payload)
    return EventTypeResponse.from_model(event_type)


@router.get("/id/{event_type_id}", response_model=EventTypeResponse)
async def get_event_type_by_id(
    event_type_id: str,
    owner_id: str = Depends(get_owner_id),
    service: EventTypeService = Depends(get_event_type_service),
) -> EventTypeResponse:
    event_type = await asyncio.to_thread(service.get_owned, owner_id, event_type_id)
    return EventTypeResponse.from_model(event_type)


@router.patch("/{event_type_id}", response_model=EventTypeResponse)
async def update_event_type(
    event_type_id: str,
    payload: EventTypeUpdate,
    owner_id: str = Depends(get_owner_id),
    service: EventTypeService = Depends(get_event_type_service),
) -> EventTypeResponse:
    event_type = await asyncio.to_thread(service.update, owner_id, event_type_id, payload)
    return EventTypeResponse.from_model(event_type)


@router.get("/{slug}", response_model=EventTypeResponse)
async def get_event_type(
    slug: str,
    service: EventTypeService = Depends(get_event_type_service),
) -> EventTypeResponse:
    event_type = await asyncio.to_thread(service.get_by_slug, slug)
    return EventTypeResponse.from_model(event_type)


@router.get("/{slug}/slots", response_model=List[datetime])
async def get_available_slots(
    slug: str,
    date: str = Query(..., description="Calendar date, YYYY-MM-DD"),
    service: SlotAvailabilityService = Depends(get_slot_availability_service),
) -> List[datetime]:
    try:
        target_date = parse_date_only(date)
    except ValueError as exc:
        raise ValidationException(str(exc), code="INVALID_DATE", details={"date": date})
    return await asyncio.to_thread(service.available_slots_for_slug, slug, target_date)
