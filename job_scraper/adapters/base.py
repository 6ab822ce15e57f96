"""Shared HTTP plumbing for page-fetching adapters."""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import requests

from job_scraper.config.models import ServiceDescriptor
from job_scraper.logging import get_logger

from .exceptions import (
    AdapterConfigurationError,
    AdapterHTTPError,
    AdapterResponseError,
    AdapterTimeoutError,
)

logger = get_logger(__name__, component="adapter")


class BaseAdapter(ABC):
    """Base class for adapters that fetch a service's search-result page.

    Attributes:
        timeout: HTTP request timeout in seconds
        user_agent: User-Agent header for HTTP requests
    """

    def __init__(self, timeout: int = 60, user_agent: str = "JobScraper/1.0") -> None:
        """Initialize adapter with configuration.

        Args:
            timeout: HTTP request timeout in seconds (5-300)
            user_agent: User-Agent header for requests

        Raises:
            AdapterConfigurationError: If timeout is outside valid range or user_agent is empty
        """
        if not 5 <= timeout <= 300:
            raise AdapterConfigurationError(
                f"Timeout must be between 5 and 300 seconds, got: {timeout}"
            )
        if not user_agent or not user_agent.strip():
            raise AdapterConfigurationError("user_agent cannot be empty")

        self.timeout = timeout
        self.user_agent = user_agent.strip()

        self._session = requests.Session()
        self._session.headers.update({"User-Agent": self.user_agent})

    @abstractmethod
    def fetch_page_html(self, descriptor: ServiceDescriptor) -> str:
        """Fetch the search-result markup for one service.

        Raises:
            AdapterError: On any fetch failure; subclasses indicate the kind
        """

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self._session.close()

    def _make_request(
        self,
        url: str,
        method: str = "GET",
        headers: Optional[Dict[str, str]] = None,
        params: Optional[Dict[str, str]] = None,
        json_data: Optional[Dict[str, Any]] = None,
    ) -> Any:
        """Make an HTTP request and return the decoded JSON body.

        Args:
            url: URL to request
            method: HTTP method (default "GET")
            headers: Extra headers, merged over the session defaults
            params: Query parameters
            json_data: JSON body for POST requests

        Returns:
            Parsed JSON response

        Raises:
            AdapterHTTPError: On 4xx/5xx status or connection failure
            AdapterTimeoutError: On request timeout
            AdapterResponseError: On a body that is not JSON
        """
        logger.debug(
            f"HTTP {method} request to {url}",
            extra={
                "event": "adapter.fetch.request",
                "method": method,
                "url": url,
                "timeout": self.timeout,
            },
        )

        try:
            response = self._session.request(
                method=method,
                url=url,
                headers=headers,
                params=params,
                json=json_data,
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            logger.warning(
                f"Request to {url} timed out after {self.timeout} seconds",
                extra={
                    "event": "adapter.fetch.retryable_error",
                    "error_type": "Timeout",
                    "url": url,
                    "timeout": self.timeout,
                },
            )
            raise AdapterTimeoutError(
                f"Request to {url} timed out after {self.timeout} seconds",
                url=url,
            ) from e
        except requests.exceptions.RequestException as e:
            logger.error(
                f"Request to {url} failed: {e}",
                extra={
                    "event": "adapter.fetch.error",
                    "error_type": type(e).__name__,
                    "url": url,
                },
            )
            raise AdapterHTTPError(f"Request to {url} failed: {e}", status_code=0, url=url) from e

        if response.status_code >= 400:
            retryable = response.status_code >= 500 or response.status_code == 429
            logger.log(
                logging.WARNING if retryable else logging.ERROR,
                f"HTTP {response.status_code} error from {url}",
                extra={
                    "event": "adapter.fetch.retryable_error" if retryable else "adapter.fetch.error",
                    "status_code": response.status_code,
                    "url": url,
                },
            )
            raise AdapterHTTPError(
                f"HTTP {response.status_code}: {response.reason}",
                status_code=response.status_code,
                url=url,
            )

        try:
            data = response.json()
        except ValueError as e:
            logger.error(
                f"Failed to parse JSON response from {url}",
                extra={"event": "adapter.fetch.error", "error_type": "JSONDecodeError", "url": url},
            )
            raise AdapterResponseError(f"Failed to parse JSON response from {url}: {e}") from e

        logger.debug(
            "HTTP request succeeded",
            extra={"event": "adapter.fetch.succeeded", "status_code": response.status_code, "url": url},
        )
        return data
