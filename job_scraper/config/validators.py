"""Non-fatal configuration checks."""

import warnings
from typing import Any, Dict, List


def check_for_warnings(config_dict: Dict[str, Any]) -> List[str]:
    """
    Check raw configuration for likely mistakes that still validate.

    Args:
        config_dict: Raw configuration dictionary

    Returns:
        List of warning messages
    """
    warning_messages = []

    services = config_dict.get("services", [])
    if isinstance(services, list):
        for service in services:
            if not isinstance(service, dict):
                continue
            name = service.get("name", "Unknown")
            if not service.get("enabled", True):
                warning_messages.append(f"Service '{name}' is disabled and will be skipped")

            window = service.get("maxHoursWindow", service.get("max_hours_window"))
            if isinstance(window, int) and window <= 0:
                warning_messages.append(
                    f"Service '{name}' has maxHoursWindow={window}; the default window applies"
                )

            words = service.get("validationWords", service.get("validation_words"))
            if isinstance(words, list):
                normalized = [w.strip().lower() for w in words if isinstance(w, str)]
                duplicates = {w for w in normalized if normalized.count(w) > 1}
                if duplicates:
                    warning_messages.append(
                        f"Service '{name}' repeats validation words: {', '.join(sorted(duplicates))}"
                    )

    scraper = config_dict.get("scraper", {})
    if isinstance(scraper, dict):
        max_jobs = scraper.get("max_jobs", 100)
        if isinstance(max_jobs, int) and max_jobs > 1000:
            warning_messages.append(
                f"Large max_jobs ({max_jobs}) may cause slow extraction runs"
            )

        delay = scraper.get("delay_between_services", 2.0)
        if isinstance(delay, (int, float)) and delay == 0:
            warning_messages.append(
                "delay_between_services is 0; the scraping API may rate-limit back-to-back requests"
            )

    return warning_messages


def emit_warnings(warning_messages: List[str]) -> None:
    """Emit warning messages using Python's warnings module."""
    for message in warning_messages:
        warnings.warn(message, UserWarning, stacklevel=2)
