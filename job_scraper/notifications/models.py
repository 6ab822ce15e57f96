"""Result type and exceptions for summary notifications."""

from dataclasses import dataclass
from typing import Optional


class NotificationError(Exception):
    """Base exception for notification-related errors."""

    pass


class NotificationTemplateError(NotificationError):
    """Raised when the message template is missing or fails to render."""

    pass


class NotificationDeliveryError(NotificationError):
    """Raised when the push endpoint rejects a message or cannot be reached."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass
class NotificationResult:
    """Outcome of one summary notification.

    Attributes:
        service_name: Service the summary was about
        attempts: Number of delivery attempts made
        status: "sent", "skipped" or "failed"
        message: Rendered message text, when rendering succeeded
        error: Error message if delivery failed
    """

    service_name: str
    attempts: int
    status: str
    message: Optional[str] = None
    error: Optional[str] = None

    def is_success(self) -> bool:
        return self.status == "sent"
