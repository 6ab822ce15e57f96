"""Minimal ntfy publisher over requests."""

from typing import Dict, Optional

import requests

from .models import NotificationDeliveryError


class NtfyClient:
    """Publishes plain-text messages to an ntfy topic URL.

    Designed to be easily mockable for testing: pass a session double.
    """

    def __init__(self, session: Optional[requests.Session] = None, timeout: int = 30):
        self.session = session or requests.Session()
        self.timeout = timeout

    def publish(
        self,
        topic_url: str,
        message: str,
        priority: str = "low",
        title: Optional[str] = None,
    ) -> None:
        """POST a message to the topic.

        Raises:
            NotificationDeliveryError: On a non-2xx answer or a connection failure
        """
        headers: Dict[str, str] = {"Content-Type": "text/plain", "Priority": priority}
        if title:
            headers["Title"] = title

        try:
            response = self.session.post(
                topic_url,
                data=message.encode("utf-8"),
                headers=headers,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise NotificationDeliveryError(f"ntfy request failed: {e}") from e

        if not response.ok:
            raise NotificationDeliveryError(
                f"ntfy answered {response.status_code}: {response.text[:200]}",
                status_code=response.status_code,
            )
