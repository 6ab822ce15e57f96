"""Result file sink."""

from .files import CSV_COLUMNS, FileSink

__all__ = ["CSV_COLUMNS", "FileSink"]
