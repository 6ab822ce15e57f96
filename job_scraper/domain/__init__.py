"""Domain models."""

from .models import JobRecord

__all__ = ["JobRecord"]
