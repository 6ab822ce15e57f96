"""Structured logging helpers."""

import logging
from typing import Optional, Union

from .config import configure_logging
from .context import clear_log_context, get_log_context, log_context


class ComponentLoggerAdapter(logging.LoggerAdapter):
    """Adds a fixed ``component`` field; per-call ``extra`` keys take precedence."""

    def process(self, msg, kwargs):
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def get_logger(
    name: str, component: Optional[str] = None
) -> Union[logging.Logger, ComponentLoggerAdapter]:
    """Return a logger, tagged with ``component`` when one is given.

    Example:
        >>> logger = get_logger(__name__, component="extraction")
        >>> logger.info("Containers found", extra={"event": "extraction.containers.found"})
    """
    logger = logging.getLogger(name)
    if component:
        return ComponentLoggerAdapter(logger, {"component": component})
    return logger


__all__ = [
    "ComponentLoggerAdapter",
    "clear_log_context",
    "configure_logging",
    "get_log_context",
    "get_logger",
    "log_context",
]
