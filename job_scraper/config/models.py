"""Configuration schema models using Pydantic."""

from enum import Enum
from typing import Dict, List, Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .duration import DurationParseError, parse_duration, validate_duration_range

DEFAULT_MAX_HOURS_WINDOW = 3

DEFAULT_CONTAINER_SELECTORS = [".MQUd2b", ".g", 'div[jscontroller="b11o3b"]']
DEFAULT_TITLE_SELECTORS = [".tNxQIb.PUpOsf", ".tNxQIb", "h3", '[role="heading"]', ".LC20lb"]
DEFAULT_COMPANY_SELECTORS = [".wHYlTd.MKCbgd.a3jPc", ".wHYlTd.MKCbgd", ".MKCbgd", ".vNEEBe"]
DEFAULT_LOCATION_SELECTORS = [".wHYlTd.FqK3wc.MKCbgd", ".FqK3wc.MKCbgd", ".FqK3wc", ".Qk80Jf"]
DEFAULT_POSTED_TIME_SELECTORS = [
    '.Yf9oye span[aria-hidden="true"]',
    ".Yf9oye",
    ".SuWscb",
    ".f",
    ".LEwnzc",
]


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    """Log output formats."""

    JSON = "json"
    KEY_VALUE = "key-value"


class StorageBackend(str, Enum):
    """Where qualified jobs are upserted."""

    DATABASE = "database"
    SUPABASE = "supabase"
    NONE = "none"


class TimeAssignment(str, Enum):
    """How a container is paired with its relative-time token."""

    POSITIONAL = "positional"
    CONTAINER_FIRST = "container-first"


class ServiceDescriptor(BaseModel):
    """A job category to search for, and the rules its results must pass.

    Accepts both the camelCase keys used by services.json files
    (``validationWords``, ``maxHoursWindow``) and snake_case keys.
    """

    name: str = Field(..., min_length=1, description="Search term and file prefix")
    display_name: str = Field(..., min_length=1, description="Human-readable service name")
    table: str = Field(
        ...,
        min_length=1,
        pattern=r"^[A-Za-z_][A-Za-z0-9_]*$",
        description="Target store table for this service's jobs",
    )
    enabled: bool = Field(True, description="Whether to scrape this service")
    validation_words: List[str] = Field(
        default_factory=list,
        alias="validationWords",
        description="Keyword allowlist; a title must contain one of them",
    )
    max_hours_window: Optional[int] = Field(
        None,
        alias="maxHoursWindow",
        description="Freshness threshold in hours (default applies when unset or <= 0)",
    )

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    @field_validator("name", "display_name", "table")
    @classmethod
    def strip_whitespace(cls, v: str) -> str:
        """Strip whitespace from string fields."""
        stripped = v.strip()
        if not stripped:
            raise ValueError("Field cannot be empty or whitespace-only")
        return stripped

    @field_validator("validation_words", mode="before")
    @classmethod
    def normalize_validation_words(cls, v):
        """Drop blank keywords; a null list means no allowlist."""
        if v is None:
            return []
        if isinstance(v, str):
            v = [v]
        return [word.strip() for word in v if isinstance(word, str) and word.strip()]

    @property
    def threshold_hours(self) -> int:
        """Effective freshness threshold in hours."""
        if self.max_hours_window is None or self.max_hours_window <= 0:
            return DEFAULT_MAX_HOURS_WINDOW
        return self.max_hours_window


class ScraperConfig(BaseModel):
    """Settings for fetching and extracting search-result pages."""

    api_endpoint: str = Field(
        "https://scraper-api.decodo.com/v2/scrape",
        description="Remote scraping service endpoint",
    )
    search_url: str = Field("https://www.google.com/search", description="Search page URL")
    search_query: str = Field(
        "{name} jobs UNITED STATES since yesterday",
        description="Query template; {name} is replaced with the service name",
    )
    search_params: Dict[str, str] = Field(
        default_factory=lambda: {"udm": "8"},
        description="Extra query parameters (udm=8 selects the jobs vertical)",
    )
    geo: str = Field("United States", description="Geo location passed to the scraping service")
    request_timeout: int = Field(60, ge=5, le=300, description="HTTP timeout in seconds")
    user_agent: str = Field("JobScraper/1.0", min_length=1, description="User-Agent header")
    max_jobs: int = Field(
        100, ge=0, description="Maximum containers processed per document (0 = unlimited)"
    )
    delay_between_services: float = Field(
        2.0, ge=0, le=60, description="Pause between services in seconds"
    )
    timezone: Optional[str] = Field(
        None, description="IANA zone for posted_date strings (system zone when unset)"
    )
    time_assignment: TimeAssignment = Field(
        TimeAssignment.POSITIONAL,
        description="positional (document-order pairing) or container-first",
    )

    model_config = {"use_enum_values": True}

    @field_validator("search_query")
    @classmethod
    def require_name_placeholder(cls, v: str) -> str:
        """The query template must mention the service name."""
        if "{name}" not in v:
            raise ValueError("search_query must contain the {name} placeholder")
        return v

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v: Optional[str]) -> Optional[str]:
        """Reject zone names the tz database does not know."""
        if v is None or not v.strip():
            return None
        try:
            ZoneInfo(v.strip())
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {v}") from e
        return v.strip()

    def get_tzinfo(self) -> Optional[ZoneInfo]:
        """Return the configured zone, or None for the system zone."""
        return ZoneInfo(self.timezone) if self.timezone else None


class SelectorConfig(BaseModel):
    """Ordered CSS selector lists for the selector cascade."""

    containers: List[str] = Field(default_factory=lambda: list(DEFAULT_CONTAINER_SELECTORS))
    title: List[str] = Field(default_factory=lambda: list(DEFAULT_TITLE_SELECTORS))
    company: List[str] = Field(default_factory=lambda: list(DEFAULT_COMPANY_SELECTORS))
    location: List[str] = Field(default_factory=lambda: list(DEFAULT_LOCATION_SELECTORS))
    posted_time: List[str] = Field(default_factory=lambda: list(DEFAULT_POSTED_TIME_SELECTORS))

    @field_validator("containers", "title", "company", "location", "posted_time")
    @classmethod
    def require_selectors(cls, v: List[str]) -> List[str]:
        """Each cascade needs at least one non-blank selector."""
        cleaned = [selector.strip() for selector in v if selector and selector.strip()]
        if not cleaned:
            raise ValueError("At least one selector is required")
        return cleaned


class StorageConfig(BaseModel):
    """Store collaborator selection."""

    backend: StorageBackend = Field(StorageBackend.DATABASE, description="database, supabase or none")

    model_config = {"use_enum_values": True}


class OutputConfig(BaseModel):
    """JSON/CSV file sink settings."""

    enabled: bool = Field(True, description="Write JSON and CSV result files")
    directory: str = Field("output", min_length=1, description="Output directory")
    combined: bool = Field(True, description="Also write the all-services files after a run")


class NotificationConfig(BaseModel):
    """Push notification (ntfy) settings."""

    enabled: bool = Field(True, description="Send a summary notification per service")
    ntfy_url: Optional[str] = Field(None, description="ntfy topic URL, e.g. https://ntfy.sh/my-topic")
    priority: str = Field("low", description="ntfy Priority header")
    max_retries: int = Field(1, ge=0, le=5, description="Retries after a failed delivery")
    retry_initial_delay: float = Field(2.0, ge=0, le=60, description="First retry delay in seconds")
    retry_backoff_multiplier: float = Field(2.0, ge=1.0, le=5.0, description="Backoff multiplier")

    @field_validator("priority")
    @classmethod
    def validate_priority(cls, v: str) -> str:
        """Accept ntfy's named priorities and their numeric forms."""
        allowed = {"min", "low", "default", "high", "urgent", "max", "1", "2", "3", "4", "5"}
        value = str(v).strip().lower()
        if value not in allowed:
            raise ValueError(f"priority must be one of {', '.join(sorted(allowed))}")
        return value


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: LogLevel = Field(LogLevel.INFO, description="Log level")
    format: LogFormat = Field(
        LogFormat.KEY_VALUE, description="Log output format (json or key-value)"
    )

    model_config = {"use_enum_values": True}


class AppConfig(BaseModel):
    """Root configuration object for the job scraper."""

    services: List[ServiceDescriptor] = Field(
        ..., min_length=1, description="Job categories to scrape"
    )
    scan_interval: str = Field("1h", description="Interval between scheduled runs")
    scraper: ScraperConfig = Field(default_factory=ScraperConfig)
    selectors: SelectorConfig = Field(default_factory=SelectorConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    # Computed field
    scan_interval_seconds: Optional[int] = None

    @field_validator("scan_interval")
    @classmethod
    def validate_scan_interval(cls, v: str) -> str:
        """Validate and parse scan interval."""
        try:
            validate_duration_range(parse_duration(v))
        except DurationParseError as e:
            raise ValueError(str(e)) from e
        return v

    @model_validator(mode="after")
    def validate_services_and_compute_fields(self):
        """Validate services and compute derived fields."""
        if not any(service.enabled for service in self.services):
            raise ValueError(
                "At least one service must be enabled. All services have enabled=false."
            )

        seen_names = set()
        for service in self.services:
            key = service.name.lower()
            if key in seen_names:
                raise ValueError(f"Duplicate service: '{service.name}' appears multiple times")
            seen_names.add(key)

        self.scan_interval_seconds = parse_duration(self.scan_interval)
        return self

    def get_enabled_services(self) -> List[ServiceDescriptor]:
        """Get list of enabled services, in configuration order."""
        return [service for service in self.services if service.enabled]

    def get_service(self, name: str) -> Optional[ServiceDescriptor]:
        """Look a service up by name (case-insensitive)."""
        for service in self.services:
            if service.name.lower() == name.lower():
                return service
        return None
