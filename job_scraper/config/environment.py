"""Environment variable loading and validation."""

import os
from typing import Optional

from .exceptions import ConfigurationError

DEFAULT_DATABASE_URL = "sqlite:///./data/job_scraper.db"
VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class EnvironmentConfig:
    """Environment variable configuration holder."""

    def __init__(
        self,
        api_auth: Optional[str] = None,
        database_url: Optional[str] = None,
        supabase_url: Optional[str] = None,
        supabase_service_key: Optional[str] = None,
        ntfy_url: Optional[str] = None,
        log_level: Optional[str] = None,
        environment: Optional[str] = None,
    ):
        """Initialize environment configuration."""
        self.api_auth = api_auth
        self.database_url = database_url or DEFAULT_DATABASE_URL
        self.supabase_url = supabase_url.rstrip("/") if supabase_url else None
        self.supabase_service_key = supabase_service_key
        self.ntfy_url = ntfy_url
        self.log_level = log_level
        self.environment = environment or "production"


def load_environment_config(
    require_api_auth: bool = True,
    require_supabase: bool = False,
) -> EnvironmentConfig:
    """
    Load and validate environment variables.

    Environment variables:
    - API_AUTH: Authorization header value for the scraping API (required
      unless the caller only processes saved documents)
    - DATABASE_URL: SQLAlchemy URL (default: sqlite:///./data/job_scraper.db)
    - SUPABASE_URL / SUPABASE_SERVICE_KEY: required for the supabase backend
    - NTFY_URL: ntfy topic URL, overrides notifications.ntfy_url
    - LOG_LEVEL: Override log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - ENVIRONMENT: Deployment label stamped on every log line

    Args:
        require_api_auth: Fail when API_AUTH is missing
        require_supabase: Fail when the Supabase credentials are missing

    Returns:
        EnvironmentConfig object with validated values

    Raises:
        ConfigurationError: If required variables are missing or invalid
    """
    errors = []

    api_auth = os.getenv("API_AUTH")
    database_url = os.getenv("DATABASE_URL")
    supabase_url = os.getenv("SUPABASE_URL")
    supabase_service_key = os.getenv("SUPABASE_SERVICE_KEY")
    ntfy_url = os.getenv("NTFY_URL")
    log_level = os.getenv("LOG_LEVEL")
    environment = os.getenv("ENVIRONMENT")

    if require_api_auth and not api_auth:
        errors.append("Missing required environment variable: API_AUTH")

    if require_supabase:
        if not supabase_url:
            errors.append("Missing required environment variable: SUPABASE_URL")
        elif not supabase_url.startswith(("http://", "https://")):
            errors.append(f"Invalid SUPABASE_URL: '{supabase_url}'. Must start with http(s)://")
        if not supabase_service_key:
            errors.append("Missing required environment variable: SUPABASE_SERVICE_KEY")

    if ntfy_url and not ntfy_url.startswith(("http://", "https://")):
        errors.append(f"Invalid NTFY_URL: '{ntfy_url}'. Must start with http(s)://")

    if log_level and log_level.upper() not in VALID_LOG_LEVELS:
        errors.append(
            f"Invalid LOG_LEVEL: '{log_level}'. Must be one of: {', '.join(VALID_LOG_LEVELS)}"
        )

    if errors:
        raise ConfigurationError(
            "Environment variable validation failed",
            errors=errors,
            suggestions=[
                "Copy .env.example to .env and fill in your credentials",
                "Ensure all required environment variables are set",
                "Use --html to process a saved document without API_AUTH",
            ],
        )

    return EnvironmentConfig(
        api_auth=api_auth,
        database_url=database_url,
        supabase_url=supabase_url,
        supabase_service_key=supabase_service_key,
        ntfy_url=ntfy_url,
        log_level=log_level,
        environment=environment,
    )
