"""Exceptions raised while fetching search-result pages."""


class AdapterError(Exception):
    """Base exception for all adapter errors.

    The runner catches this per service: the service is recorded as failed
    and the run moves on to the next one.
    """

    pass


class AdapterHTTPError(AdapterError):
    """The scraping API answered with an error status, or could not be reached.

    ``status_code`` is 0 for connection-level failures.
    """

    def __init__(self, message: str, status_code: int, url: str) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.url = url


class AdapterTimeoutError(AdapterError):
    """The scraping API did not answer within the configured timeout."""

    def __init__(self, message: str, url: str) -> None:
        super().__init__(message)
        self.url = url


class AdapterResponseError(AdapterError):
    """The response was not JSON, or carried no page content."""

    pass


class AdapterConfigurationError(AdapterError):
    """Invalid adapter settings (missing credentials, bad timeout)."""

    pass
