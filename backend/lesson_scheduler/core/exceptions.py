# backend/lesson_scheduler/core/exceptions.py
"""
Domain-specific exceptions for the lesson scheduler.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import HTTPException, status


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when business validation fails."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class UnauthorizedException(DomainException):
    """Raised when no owner identity accompanies an owner-only request."""

    status_code = status.HTTP_401_UNAUTHORIZED


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


class LockTimeoutError(ServiceException):
    """Raised when the per-owner critical section cannot be entered in time."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE

    def __init__(self, owner_id: str, timeout_s: float):
        super().__init__(
            message="Booking system is busy. Please retry.",
            code="LOCK_TIMEOUT",
            details={"owner_id": owner_id, "timeout_s": timeout_s},
        )

    def to_http_exception(self) -> HTTPException:
        exc = super().to_http_exception()
        exc.headers = {"Retry-After": "2"}
        return exc


# Specific business exceptions


class InvalidZoneError(ValidationException):
    """Raised for a time zone name the tz database does not know."""

    def __init__(self, zone_name: Optional[str]):
        super().__init__(
            message=f"Unknown time zone: {zone_name!r}",
            code="INVALID_TIMEZONE",
            details={"timezone": zone_name},
        )


class InvalidLocalTimeError(ValidationException):
    """Raised when a wall-clock time cannot be turned into an instant."""

    def __init__(
        self,
        message: str,
        code: str = "INVALID_LOCAL_TIME",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, code=code, details=details)


class NonexistentLocalTimeError(InvalidLocalTimeError):
    """Raised for a wall-clock time skipped by a spring-forward transition."""

    def __init__(self, local_label: str, zone_name: str):
        super().__init__(
            message=(
                f"The time {local_label} does not exist in {zone_name} "
                f"due to Daylight Saving Time"
            ),
            code="NONEXISTENT_LOCAL_TIME",
            details={"local_time": local_label, "timezone": zone_name},
        )


class BookingConflictException(ConflictException):
    """Raised when a booking overlaps an existing booking of the same owner."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        conflicting_start: Optional[datetime] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.conflicting_start = conflicting_start
        merged = dict(details or {})
        if conflicting_start is not None:
            merged.setdefault("conflicting_start", conflicting_start.isoformat())
        super().__init__(
            message=message or "This time slot conflicts with an existing booking",
            code="BOOKING_CONFLICT",
            details=merged,
        )


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """


class DuplicateKeyError(RepositoryException):
    """Raised when a write would violate a uniqueness constraint."""
