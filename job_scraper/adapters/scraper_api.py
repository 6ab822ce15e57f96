"""Adapter for the remote scraping API that renders search pages for us."""

from typing import Dict, Optional
from urllib.parse import urlencode

from job_scraper.config.models import ScraperConfig, ServiceDescriptor
from job_scraper.logging import get_logger

from .base import BaseAdapter
from .exceptions import AdapterConfigurationError, AdapterResponseError

logger = get_logger(__name__, component="adapter")


class ScraperAPIAdapter(BaseAdapter):
    """Fetches search-result pages through a scraping API (Decodo-style).

    API Details:
        Endpoint: ``scraper.api_endpoint``
        Method: POST
        Authentication: ``Authorization`` header carrying API_AUTH
        Body: {"url": <search url>, "headless": "html", "geo": <geo>}
        Response: {"results": [{"content": "<html>..."}]}
    """

    ADAPTER_NAME = "scraper_api"

    def __init__(self, api_auth: str, config: Optional[ScraperConfig] = None) -> None:
        """Initialize the adapter.

        Args:
            api_auth: Authorization header value for the scraping API
            config: Scraper settings (defaults apply when omitted)

        Raises:
            AdapterConfigurationError: If api_auth is empty
        """
        self.config = config or ScraperConfig()
        super().__init__(timeout=self.config.request_timeout, user_agent=self.config.user_agent)

        if not api_auth or not api_auth.strip():
            raise AdapterConfigurationError("API_AUTH is required to call the scraping API")

        self._session.headers.update(
            {
                "Accept": "application/json",
                "Content-Type": "application/json",
                "Authorization": api_auth.strip(),
            }
        )

    def build_search_url(self, descriptor: ServiceDescriptor) -> str:
        """Search page URL for a service, e.g. ``...search?q=plumber+jobs+...&udm=8``."""
        params: Dict[str, str] = {"q": self.config.search_query.format(name=descriptor.name)}
        params.update(self.config.search_params)
        return f"{self.config.search_url}?{urlencode(params)}"

    def fetch_page_html(self, descriptor: ServiceDescriptor) -> str:
        """Fetch a service's search-result markup through the scraping API.

        Raises:
            AdapterHTTPError: On HTTP errors or connection failures
            AdapterTimeoutError: On timeout
            AdapterResponseError: If the response carries no content
        """
        search_url = self.build_search_url(descriptor)
        logger.info(
            f"Fetching search page for {descriptor.display_name}",
            extra={
                "event": "adapter.fetch.started",
                "adapter": self.ADAPTER_NAME,
                "service_name": descriptor.name,
                "search_url": search_url,
            },
        )

        data = self._make_request(
            self.config.api_endpoint,
            method="POST",
            json_data={"url": search_url, "headless": "html", "geo": self.config.geo},
        )

        content = self._extract_content(data)
        logger.info(
            f"Received {len(content)} characters for {descriptor.display_name}",
            extra={
                "event": "adapter.fetch.completed",
                "adapter": self.ADAPTER_NAME,
                "service_name": descriptor.name,
                "content_length": len(content),
            },
        )
        return content

    @staticmethod
    def _extract_content(data) -> str:
        if not isinstance(data, dict):
            raise AdapterResponseError(
                f"Expected JSON object response, got {type(data).__name__}"
            )

        results = data.get("results")
        if not isinstance(results, list) or not results:
            raise AdapterResponseError("Response has no 'results' entries")

        first = results[0]
        content = first.get("content") if isinstance(first, dict) else None
        if not isinstance(content, str) or not content.strip():
            raise AdapterResponseError("First result carries no HTML content")
        return content
