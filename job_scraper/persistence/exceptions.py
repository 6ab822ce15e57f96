"""Persistence layer exceptions.

All store errors inherit from PersistenceError, so the runner can record
any of them as a per-service failure with a single except clause.
"""

from typing import Optional


class PersistenceError(Exception):
    """Base exception for all persistence layer errors."""

    pass


class DatabaseConnectionError(PersistenceError):
    """Raised when the store cannot be reached or initialized.

    Examples:
    - Invalid database URL
    - SQLite file not accessible
    - Supabase endpoint unreachable or timing out
    """

    pass


class DataIntegrityError(PersistenceError):
    """Raised when the store rejects rows for a constraint other than the
    fingerprint conflict (which is ignored)."""

    pass


class SchemaMismatchError(PersistenceError):
    """Raised when the target table lacks a column the rows carry.

    Attributes:
        column: Name of the missing column
        table: Target table, when known
    """

    def __init__(self, column: str, table: Optional[str] = None, message: Optional[str] = None):
        self.column = column
        self.table = table
        where = f" in table '{table}'" if table else ""
        super().__init__(message or f"Column '{column}' does not exist{where}")
