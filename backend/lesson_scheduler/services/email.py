# backend/lesson_scheduler/services/email.py
"""
Email Service.

Sends email through the Resend API. Failures raise ServiceException;
callers that must never fail (booking notifications) catch it.
"""

import logging
import re
from typing import Any, Dict, Optional

import resend

from ..core.config import Settings, settings
from ..core.exceptions import ServiceException
from .base import BaseService

logger = logging.getLogger(__name__)


class EmailService(BaseService):
    """Service for sending emails using Resend API."""

    def __init__(self, config: Optional[Settings] = None):
        super().__init__()
        self.config = config or settings
        if not self.config.email_enabled:
            raise ServiceException("Resend API key not configured")

        resend.api_key = self.config.resend_api_key.get_secret_value()
        self.from_email = self.config.email_from

    def _html_to_text(self, html_content: str) -> str:
        """Convert HTML content to plain text for better deliverability"""
        text = re.sub(r"<[^>]+>", "", html_content)
        text = re.sub(r"\s+", " ", text)
        return text.strip()

    @BaseService.measure_operation("send_email")
    def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
        reply_to: Optional[str] = None,
    ) -> Dict[str, Any]:
        """
        Send one email.

        Returns:
            Dict containing the Resend API response

        Raises:
            ServiceException: If email sending fails
        """
        email_data: Dict[str, Any] = {
            "from": self.from_email,
            "to": to_email,
            "subject": subject,
            "html": html_content,
            "text": text_content or self._html_to_text(html_content),
        }
        if reply_to:
            email_data["reply_to"] = reply_to

        try:
            response = resend.Emails.send(email_data)
        except Exception as e:
            error_msg = str(e) or type(e).__name__
            self.logger.error(f"Failed to send email to {to_email}: {error_msg}")
            self.log_operation("email_failed", to_email=to_email, subject=subject, error=error_msg)
            raise ServiceException(f"Email sending failed: {error_msg}")

        self.log_operation("email_sent", to_email=to_email, subject=subject)
        return response
