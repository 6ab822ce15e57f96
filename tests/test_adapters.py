"""Tests for the page-fetching adapters."""

from unittest.mock import Mock, patch
from urllib.parse import parse_qs, urlparse

import pytest
import requests

from job_scraper.adapters import (
    AdapterConfigurationError,
    AdapterHTTPError,
    AdapterResponseError,
    AdapterTimeoutError,
    ScraperAPIAdapter,
)
from job_scraper.config.models import ScraperConfig


def json_response(payload, status_code=200):
    response = Mock()
    response.status_code = status_code
    response.reason = "OK" if status_code < 400 else "Error"
    response.json.return_value = payload
    return response


@pytest.fixture
def adapter():
    adapter = ScraperAPIAdapter("Basic abc123", ScraperConfig(request_timeout=30))
    yield adapter
    adapter.close()


class TestScraperAPIAdapterInit:
    def test_sets_auth_and_user_agent(self, adapter):
        assert adapter._session.headers["Authorization"] == "Basic abc123"
        assert adapter._session.headers["User-Agent"] == "JobScraper/1.0"
        assert adapter.timeout == 30

    @pytest.mark.parametrize("auth", ["", "   ", None])
    def test_requires_auth(self, auth):
        with pytest.raises(AdapterConfigurationError):
            ScraperAPIAdapter(auth)


class TestBuildSearchUrl:
    def test_query_and_vertical(self, adapter, plumber):
        url = adapter.build_search_url(plumber)

        parsed = urlparse(url)
        query = parse_qs(parsed.query)
        assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == "https://www.google.com/search"
        assert query["q"] == ["plumber jobs UNITED STATES since yesterday"]
        assert query["udm"] == ["8"]

    def test_custom_template(self, plumber):
        adapter = ScraperAPIAdapter(
            "key", ScraperConfig(search_query="{name} near me", search_params={})
        )

        assert adapter.build_search_url(plumber).endswith("?q=plumber+near+me")


class TestFetchPageHtml:
    def test_posts_to_scraping_api(self, adapter, plumber):
        with patch.object(
            adapter._session, "request", return_value=json_response({"results": [{"content": "<html>ok</html>"}]})
        ) as mock_request:
            html = adapter.fetch_page_html(plumber)

        assert html == "<html>ok</html>"
        kwargs = mock_request.call_args.kwargs
        assert kwargs["method"] == "POST"
        assert kwargs["url"] == "https://scraper-api.decodo.com/v2/scrape"
        assert kwargs["json"]["headless"] == "html"
        assert kwargs["json"]["geo"] == "United States"
        assert kwargs["json"]["url"] == adapter.build_search_url(plumber)
        assert kwargs["timeout"] == 30

    @pytest.mark.parametrize(
        "payload",
        [{}, {"results": []}, {"results": [{"content": "  "}]}, {"results": ["x"]}, ["not", "a", "dict"]],
    )
    def test_missing_content(self, adapter, plumber, payload):
        with patch.object(adapter._session, "request", return_value=json_response(payload)):
            with pytest.raises(AdapterResponseError):
                adapter.fetch_page_html(plumber)

    def test_http_error(self, adapter, plumber):
        with patch.object(adapter._session, "request", return_value=json_response({}, status_code=401)):
            with pytest.raises(AdapterHTTPError) as exc_info:
                adapter.fetch_page_html(plumber)

        assert exc_info.value.status_code == 401

    def test_timeout(self, adapter, plumber):
        with patch.object(adapter._session, "request", side_effect=requests.exceptions.Timeout()):
            with pytest.raises(AdapterTimeoutError):
                adapter.fetch_page_html(plumber)

    def test_connection_error(self, adapter, plumber):
        with patch.object(
            adapter._session, "request", side_effect=requests.exceptions.ConnectionError("refused")
        ):
            with pytest.raises(AdapterHTTPError) as exc_info:
                adapter.fetch_page_html(plumber)

        assert exc_info.value.status_code == 0

    def test_non_json_body(self, adapter, plumber):
        response = json_response(None)
        response.json.side_effect = ValueError("Expecting value")

        with patch.object(adapter._session, "request", return_value=response):
            with pytest.raises(AdapterResponseError):
                adapter.fetch_page_html(plumber)
