# backend/lesson_scheduler/repositories/event_type_repository.py
"""EventType repository interface shared by the memory and SQL stores."""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..models.event_type import AvailabilityWindow, EventType


class EventTypeRepository(ABC):
    @abstractmethod
    def get_by_id(self, event_type_id: str) -> Optional[EventType]:
        pass

    @abstractmethod
    def get_by_slug(self, slug: str) -> Optional[EventType]:
        pass

    @abstractmethod
    def list_for_owner(self, owner_id: str) -> List[EventType]:
        pass

    @abstractmethod
    def create(self, event_type: EventType) -> EventType:
        """
        Persist a new event type with its windows.

        Raises:
            DuplicateKeyError: If the slug is already taken
        """

    @abstractmethod
    def update(
        self,
        event_type_id: str,
        changes: Dict[str, Any],
        windows: Optional[List[AvailabilityWindow]] = None,
    ) -> Optional[EventType]:
        """
        Apply field changes and, when given, replace the window list.

        Last writer wins. Returns None when the event type does not exist.

        Raises:
            DuplicateKeyError: If a changed slug is already taken
        """
