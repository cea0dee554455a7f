# backend/lesson_scheduler/services/notification_service.py
"""
Booking notifications.

After a reservation commits, the client gets a confirmation with an
add-to-calendar link and the owner gets a heads-up with Reply-To set to
the client. Sending happens outside the booking critical section and
never raises: the outcome is reported as a NotificationResult.
"""

from dataclasses import dataclass
from datetime import datetime
import logging
from typing import List, Optional
from urllib.parse import urlencode

from ..core.config import Settings, settings
from ..models.booking import Booking
from ..models.event_type import EventType
from .base import BaseService
from .email import EmailService
from .template_service import TemplateRegistry, TemplateService
from .timezone_service import TimezoneService

logger = logging.getLogger(__name__)

GOOGLE_CALENDAR_URL = "https://calendar.google.com/calendar/render"


@dataclass
class NotificationResult:
    sent: bool
    error: Optional[str] = None


def _calendar_stamp(value: datetime) -> str:
    return value.strftime("%Y%m%dT%H%M%SZ")


def google_calendar_url(booking: Booking, event_type: EventType) -> str:
    """Add-to-calendar link for one booking."""
    params = {
        "action": "TEMPLATE",
        "text": event_type.name,
        "dates": f"{_calendar_stamp(booking.start_utc)}/{_calendar_stamp(booking.end_utc)}",
        "details": event_type.description or "",
        "location": event_type.location or "",
    }
    return f"{GOOGLE_CALENDAR_URL}?{urlencode(params)}"


class NotificationService(BaseService):
    def __init__(
        self,
        config: Optional[Settings] = None,
        email_service: Optional[EmailService] = None,
        template_service: Optional[TemplateService] = None,
    ):
        super().__init__()
        self.config = config or settings
        self._email_service = email_service
        self.templates = template_service or TemplateService(self.config)

    def _email(self) -> Optional[EmailService]:
        if self._email_service is None and self.config.email_enabled:
            self._email_service = EmailService(self.config)
        return self._email_service

    def _sessions(self, bookings: List[Booking], event_type: EventType) -> List[dict]:
        return [
            {
                "when": TimezoneService.format_for_display(b.start_utc, event_type.timezone),
                "calendar_url": google_calendar_url(b, event_type),
            }
            for b in bookings
        ]

    @BaseService.measure_operation("send_booking_confirmation")
    def send_booking_confirmation(
        self, bookings: List[Booking], event_type: EventType
    ) -> NotificationResult:
        """Email the client and the owner about freshly created bookings."""
        if not bookings:
            return NotificationResult(sent=False, error="No bookings to notify about")

        email = self._email()
        if email is None:
            self.logger.info("Email not configured, skipping booking notification")
            return NotificationResult(sent=False, error="Email not configured")

        first = bookings[0]
        context = {
            "event_type": event_type,
            "client_name": first.full_name,
            "client_email": first.email,
            "client_phone": first.phone,
            "notes": first.notes,
            "sessions": self._sessions(bookings, event_type),
            "owner_name": event_type.owner_name or "your instructor",
        }

        try:
            client_html = self.templates.render_template(
                TemplateRegistry.BOOKING_CONFIRMATION_CLIENT, context
            )
            email.send_email(
                to_email=first.email,
                subject=f"Booking confirmed: {event_type.name}",
                html_content=client_html,
                reply_to=event_type.owner_email,
            )

            if event_type.owner_email:
                owner_html = self.templates.render_template(
                    TemplateRegistry.BOOKING_NOTIFICATION_OWNER, context
                )
                email.send_email(
                    to_email=event_type.owner_email,
                    subject=f"New booking: {first.full_name} for {event_type.name}",
                    html_content=owner_html,
                    reply_to=first.email,
                )
        except Exception as exc:
            # Notification failures never fail the reservation
            self.logger.error(
                "Booking notification failed for %s: %s",
                first.id,
                exc,
                extra={"booking_id": first.id, "error_type": type(exc).__name__},
            )
            return NotificationResult(sent=False, error=str(exc))

        self.log_operation("booking_notification_sent", booking_id=first.id, count=len(bookings))
        return NotificationResult(sent=True)
