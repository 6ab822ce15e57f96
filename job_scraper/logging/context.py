"""Scoped fields merged into every log record.

Fields pushed here (``run_id``, ``service_name``, ...) are picked up by
``ContextualFilter`` so call sites do not have to repeat them. Backed by
contextvars, so scheduler threads each see their own context.
"""

from contextvars import ContextVar, Token
from typing import Any, Dict, Optional

LogContextVar: ContextVar[Dict[str, Any]] = ContextVar("job_scraper_log_context", default={})


def get_log_context() -> Dict[str, Any]:
    """Return a copy of the active context fields."""
    return dict(LogContextVar.get())


def push_log_context(**fields: Any) -> Token:
    """Merge fields into the active context.

    Args:
        **fields: Key-value pairs to add; later pushes override earlier ones

    Returns:
        Token to hand to pop_log_context() to restore the previous state
    """
    return LogContextVar.set({**LogContextVar.get(), **fields})


def pop_log_context(token: Token) -> None:
    """Restore the context captured by push_log_context()."""
    LogContextVar.reset(token)


def clear_log_context() -> None:
    """Drop every context field (used by tests)."""
    LogContextVar.set({})


class log_context:
    """Context manager that scopes fields to a block.

    Example:
        >>> with log_context(run_id="abc123", service_name="plumber"):
        ...     logger.info("Fetching page")  # carries run_id and service_name
    """

    def __init__(self, **fields: Any):
        self.fields = fields
        self.token: Optional[Token] = None

    def __enter__(self):
        self.token = push_log_context(**self.fields)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.token is not None:
            pop_log_context(self.token)
            self.token = None
        return False
