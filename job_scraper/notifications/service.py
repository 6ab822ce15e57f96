"""Per-service scrape summary notifications.

Renders a one-line summary ("6:05 pm | Plumber Scraped | 4/37 jobs") and
publishes it to ntfy, retrying with exponential backoff. Failures are
reported in the result and never raised to the caller.
"""

import logging
import time
from datetime import datetime, tzinfo
from typing import Optional

from job_scraper.config.models import NotificationConfig, ServiceDescriptor
from job_scraper.logging import get_logger
from job_scraper.utils.timestamps import utc_now

from .models import NotificationDeliveryError, NotificationResult, NotificationTemplateError
from .ntfy_client import NtfyClient
from .templates import TemplateRenderer

logger = get_logger(__name__, component="notification")

MAX_RETRY_DELAY = 60.0


def format_clock_time(moment: datetime, tz: Optional[tzinfo] = None) -> str:
    """Short lower-case clock time, e.g. ``6:05 pm`` (midnight is ``12:00 am``)."""
    local = moment.astimezone(tz) if tz else moment.astimezone()
    hour12 = local.hour % 12 or 12
    return f"{hour12}:{local.minute:02d} {'pm' if local.hour >= 12 else 'am'}"


class NotificationService:
    """Sends the summary notification for each scraped service."""

    def __init__(
        self,
        config: Optional[NotificationConfig] = None,
        topic_url: Optional[str] = None,
        template_renderer: Optional[TemplateRenderer] = None,
        client: Optional[NtfyClient] = None,
        tz: Optional[tzinfo] = None,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """Initialize notification service.

        Args:
            config: Notification settings (defaults apply when omitted)
            topic_url: ntfy topic URL; overrides ``config.ntfy_url`` (NTFY_URL)
            template_renderer: Template renderer instance (creates default if None)
            client: ntfy client instance (creates default if None)
            tz: Zone for the clock time in messages (system zone when None)
            logger_instance: Logger instance (uses module logger if None)
        """
        self.config = config or NotificationConfig()
        self.topic_url = topic_url or self.config.ntfy_url
        self.template_renderer = template_renderer or TemplateRenderer()
        self.client = client or NtfyClient()
        self.tz = tz
        self.logger = logger_instance or logger

    @property
    def enabled(self) -> bool:
        return bool(self.config.enabled and self.topic_url)

    def send_scrape_summary(
        self,
        descriptor: ServiceDescriptor,
        total_found: int,
        qualified_count: int,
        now: Optional[datetime] = None,
    ) -> NotificationResult:
        """Publish the summary for one service.

        Args:
            descriptor: Service that was scraped
            total_found: Containers found in the document
            qualified_count: Records that qualified
            now: Time shown in the message (defaults to utc_now())

        Returns:
            NotificationResult with status sent, skipped or failed
        """
        if not self.enabled:
            self.logger.debug(
                f"Notifications disabled, skipping summary for {descriptor.display_name}",
                extra={"event": "notification.skip", "reason": "disabled"},
            )
            return NotificationResult(service_name=descriptor.name, attempts=0, status="skipped")

        context = {
            "clock_time": format_clock_time(now or utc_now(), self.tz),
            "display_name": descriptor.display_name,
            "service_name": descriptor.name,
            "total_found": total_found,
            "qualified_count": qualified_count,
        }
        try:
            message = self.template_renderer.render_summary(context)
        except NotificationTemplateError as e:
            self.logger.error(
                f"Could not render summary for {descriptor.display_name}: {e}",
                extra={"event": "notification.render.failure"},
            )
            return NotificationResult(
                service_name=descriptor.name, attempts=0, status="failed", error=str(e)
            )

        max_attempts = self.config.max_retries + 1
        last_error = None

        for attempt in range(1, max_attempts + 1):
            if attempt > 1:
                delay = min(
                    self.config.retry_initial_delay
                    * self.config.retry_backoff_multiplier ** (attempt - 2),
                    MAX_RETRY_DELAY,
                )
                self.logger.warning(
                    f"Retrying summary for {descriptor.display_name} "
                    f"(attempt {attempt}/{max_attempts}) after {delay:.1f}s",
                    extra={"event": "notification.send.attempt", "attempt": attempt},
                )
                time.sleep(delay)

            try:
                self.client.publish(self.topic_url, message, priority=self.config.priority)
            except NotificationDeliveryError as e:
                last_error = str(e)
                self.logger.log(
                    logging.WARNING if attempt < max_attempts else logging.ERROR,
                    f"Summary delivery failed for {descriptor.display_name} "
                    f"(attempt {attempt}/{max_attempts}): {e}",
                    extra={
                        "event": "notification.send.failure",
                        "attempt": attempt,
                        "status_code": e.status_code,
                        "retry_remaining": attempt < max_attempts,
                    },
                )
                continue

            self.logger.info(
                f"Notification sent: {message}",
                extra={"event": "notification.send.success", "attempt": attempt},
            )
            return NotificationResult(
                service_name=descriptor.name, attempts=attempt, status="sent", message=message
            )

        return NotificationResult(
            service_name=descriptor.name,
            attempts=max_attempts,
            status="failed",
            message=message,
            error=last_error,
        )
