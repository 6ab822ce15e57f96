"""Scrape summary notifications over ntfy."""

from .models import (
    NotificationDeliveryError,
    NotificationError,
    NotificationResult,
    NotificationTemplateError,
)
from .ntfy_client import NtfyClient
from .service import NotificationService, format_clock_time
from .templates import TemplateRenderer

__all__ = [
    "NotificationService",
    "NotificationResult",
    "NotificationError",
    "NotificationTemplateError",
    "NotificationDeliveryError",
    "NtfyClient",
    "TemplateRenderer",
    "format_clock_time",
]
