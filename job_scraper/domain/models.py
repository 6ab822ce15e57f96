"""Job record produced by the extraction pipeline."""

from typing import Any, Dict

from pydantic import BaseModel, ConfigDict, Field


class JobRecord(BaseModel):
    """A qualified job posting.

    Built once per accepted container and never mutated afterwards. The
    ``fingerprint`` is derived from ``(title, location, service)`` by
    ``compute_fingerprint``; the extractor is the only place that sets it.
    """

    service: str = Field(..., description="Service name the record was scraped for")
    service_display_name: str = Field(..., description="Human-readable service name")
    title: str = Field(..., description="Job title")
    company: str = Field("", description="Company name")
    city: str = Field("", description="City parsed from location")
    state: str = Field("", description="State parsed from location")
    location: str = Field("", description="Location text as shown in the listing")
    posted_date: str = Field(..., description="Local posting time, 'YYYY-MM-DD HH:MM AM/PM'")
    posted_at: str = Field(..., description="Posting time as ISO-8601 UTC")
    found_time: str = Field(..., description="Relative-time token the posting time came from")
    scraped_at: str = Field(..., description="When the record was built, ISO-8601 UTC")
    fingerprint: str = Field(..., min_length=1, description="Identity key for dedup and upserts")

    model_config = ConfigDict(frozen=True)

    def to_dict(self) -> Dict[str, Any]:
        """Plain dict of every field, in declaration order."""
        return self.model_dump()
