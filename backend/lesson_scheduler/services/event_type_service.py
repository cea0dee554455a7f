# backend/lesson_scheduler/services/event_type_service.py
"""
Event type management.

Owners create and edit their bookable offerings. Slugs are globally
unique routing keys, durations must be positive and the recurring
session count is clamped into [1, max_recurring_count]. Concurrent
edits are last-writer-wins.
"""

import logging
import math
import re
from typing import Any, Dict, List, Optional

from ..core.config import Settings, settings
from ..core.exceptions import (
    ConflictException,
    DuplicateKeyError,
    NotFoundException,
    ValidationException,
)
from ..models.event_type import AvailabilityWindow, EventType, window_list
from ..repositories.event_type_repository import EventTypeRepository
from ..schemas.event_type import EventTypeCreate, EventTypeUpdate
from .base import BaseService, NowProvider
from .timezone_service import TimezoneService

logger = logging.getLogger(__name__)

_SLUG_PATTERN = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
# First path segments used by event type routes
RESERVED_SLUGS = frozenset({"id"})


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (2.5 -> 3)."""
    return math.floor(value + 0.5)


def normalize_duration(value: Any) -> Optional[int]:
    """
    Whole minutes for a positive duration, at least 1.

    Returns None when the value is missing, not a number or not positive.
    """
    try:
        minutes = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(minutes) or minutes <= 0:
        return None
    return max(1, round_half_up(minutes))


def clamp_recurring_count(value: Any, maximum: int) -> int:
    """Round to an integer and clamp into [1, maximum]; junk becomes 1."""
    try:
        count = float(value)
    except (TypeError, ValueError):
        return 1
    if not math.isfinite(count):
        return 1
    return max(1, min(maximum, round_half_up(count)))


class EventTypeService(BaseService):
    def __init__(
        self,
        repository: EventTypeRepository,
        config: Optional[Settings] = None,
        now: Optional[NowProvider] = None,
    ):
        super().__init__(now=now)
        self.repository = repository
        self.config = config or settings

    def _validate_slug(self, slug: str) -> str:
        slug = slug.strip().lower()
        if not _SLUG_PATTERN.match(slug):
            raise ValidationException(
                "Slug may only contain lowercase letters, digits and single dashes",
                code="INVALID_SLUG",
                details={"slug": slug},
            )
        if slug in RESERVED_SLUGS:
            raise ValidationException(
                f"Slug {slug!r} is reserved",
                code="INVALID_SLUG",
                details={"slug": slug},
            )
        return slug

    def _validate_duration(self, duration: Any) -> int:
        minutes = normalize_duration(duration)
        if minutes is None:
            raise ValidationException(
                "durationMinutes must be a positive number",
                code="INVALID_DURATION",
                details={"duration_minutes": duration},
            )
        return minutes

    def _validate_timezone(self, zone: str) -> str:
        # Raises InvalidZoneError (a ValidationException)
        TimezoneService.get_timezone(zone)
        return zone

    def _build_windows(self, windows: List[Any]) -> List[AvailabilityWindow]:
        return window_list([w.model_dump() for w in windows])

    def get(self, event_type_id: str) -> EventType:
        event_type = self.repository.get_by_id(event_type_id)
        if event_type is None:
            raise NotFoundException("Event type not found", code="EVENT_TYPE_NOT_FOUND")
        return event_type

    def get_by_slug(self, slug: str) -> EventType:
        event_type = self.repository.get_by_slug(slug)
        if event_type is None:
            raise NotFoundException(
                f"Event type {slug!r} not found", code="EVENT_TYPE_NOT_FOUND"
            )
        return event_type

    def get_owned(self, owner_id: str, event_type_id: str) -> EventType:
        event_type = self.get(event_type_id)
        if event_type.owner_id != owner_id:
            # Other owners' event types are indistinguishable from missing ones
            raise NotFoundException("Event type not found", code="EVENT_TYPE_NOT_FOUND")
        return event_type

    def list_for_owner(self, owner_id: str) -> List[EventType]:
        return self.repository.list_for_owner(owner_id)

    @BaseService.measure_operation("create_event_type")
    def create(self, owner_id: str, data: EventTypeCreate) -> EventType:
        event_type = EventType(
            owner_id=owner_id,
            slug=self._validate_slug(data.slug),
            name=data.name.strip(),
            description=data.description or "",
            location=data.location or "",
            duration_minutes=self._validate_duration(
                data.duration_minutes
                if data.duration_minutes is not None
                else self.config.default_duration_minutes
            ),
            timezone=self._validate_timezone(data.timezone or self.config.default_timezone),
            allow_recurring=bool(data.allow_recurring),
            recurring_count=clamp_recurring_count(
                data.recurring_count, self.config.max_recurring_count
            ),
            owner_name=data.owner_name,
            owner_email=data.owner_email,
            windows=self._build_windows(data.windows),
        )
        if not event_type.name:
            raise ValidationException("name is required", code="MISSING_FIELDS")

        try:
            created = self.repository.create(event_type)
        except DuplicateKeyError:
            raise ConflictException(
                "Slug already exists", code="SLUG_EXISTS", details={"slug": event_type.slug}
            )

        self.log_operation("create_event_type", event_type_id=created.id, owner_id=owner_id)
        return created

    @BaseService.measure_operation("update_event_type")
    def update(self, owner_id: str, event_type_id: str, data: EventTypeUpdate) -> EventType:
        self.get_owned(owner_id, event_type_id)

        supplied = data.model_dump(exclude_unset=True)
        changes: Dict[str, Any] = {}
        if "slug" in supplied:
            changes["slug"] = self._validate_slug(supplied["slug"] or "")
        if "name" in supplied:
            name = (supplied["name"] or "").strip()
            if not name:
                raise ValidationException("name cannot be empty", code="MISSING_FIELDS")
            changes["name"] = name
        for key in ("description", "location"):
            if key in supplied:
                changes[key] = supplied[key] or ""
        if "duration_minutes" in supplied:
            changes["duration_minutes"] = self._validate_duration(supplied["duration_minutes"])
        if "timezone" in supplied:
            changes["timezone"] = self._validate_timezone(supplied["timezone"] or "")
        if "allow_recurring" in supplied:
            changes["allow_recurring"] = bool(supplied["allow_recurring"])
        if "recurring_count" in supplied:
            changes["recurring_count"] = clamp_recurring_count(
                supplied["recurring_count"], self.config.max_recurring_count
            )
        for key in ("owner_name", "owner_email"):
            if key in supplied:
                changes[key] = supplied[key]

        windows = self._build_windows(data.windows) if data.windows is not None else None

        try:
            updated = self.repository.update(event_type_id, changes, windows=windows)
        except DuplicateKeyError:
            raise ConflictException(
                "Slug already exists", code="SLUG_EXISTS", details={"slug": changes.get("slug")}
            )
        if updated is None:
            raise NotFoundException("Event type not found", code="EVENT_TYPE_NOT_FOUND")

        self.log_operation("update_event_type", event_type_id=event_type_id, owner_id=owner_id)
        return updated
