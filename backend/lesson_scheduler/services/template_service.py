# backend/lesson_scheduler/services/template_service.py
"""
Template Service for rendering Jinja2 email templates.

Templates live in lesson_scheduler/templates/. Every render receives
a small common context (brand name, public URL, current year).
"""

from datetime import datetime
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from jinja2 import Environment, FileSystemLoader, TemplateNotFound

from ..core.config import Settings, settings
from .base import BaseService

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent.parent / "templates"


class TemplateRegistry:
    BOOKING_CONFIRMATION_CLIENT = "email/booking_confirmation_client.html"
    BOOKING_NOTIFICATION_OWNER = "email/booking_notification_owner.html"


class TemplateService(BaseService):
    def __init__(self, config: Optional[Settings] = None, template_dir: Optional[Path] = None):
        super().__init__()
        self.config = config or settings
        self.env = Environment(
            loader=FileSystemLoader(template_dir or TEMPLATE_DIR),
            autoescape=True,
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def get_common_context(self) -> Dict[str, Any]:
        return {
            "brand_name": "Lessons",
            "current_year": datetime.now().year,
            "public_base_url": self.config.public_base_url,
        }

    @BaseService.measure_operation("render_template")
    def render_template(
        self, template_name: str, context: Optional[Dict[str, Any]] = None, **kwargs: Any
    ) -> str:
        """
        Render a template with the given context.

        Raises:
            TemplateNotFound: If template doesn't exist
        """
        try:
            template = self.env.get_template(template_name)
        except TemplateNotFound:
            self.logger.error(f"Template not found: {template_name}")
            raise

        full_context = self.get_common_context()
        if context:
            full_context.update(context)
        full_context.update(kwargs)
        return template.render(full_context)
