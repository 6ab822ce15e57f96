"""Persistence layer: job stores and the batch writer.

Public API:
    - init_database / get_engine / close_database: SQL engine lifecycle
    - JobStore, SQLJobStore, SupabaseJobStore, NullJobStore, build_store
    - persist_batch, build_store_rows
    - PersistenceError and subclasses
"""

from .database import close_database, get_engine, init_database
from .exceptions import (
    DatabaseConnectionError,
    DataIntegrityError,
    PersistenceError,
    SchemaMismatchError,
)
from .schema import OPTIONAL_COLUMNS, build_jobs_table, create_jobs_table
from .store import JobStore, NullJobStore, SQLJobStore, SupabaseJobStore, build_store
from .writer import build_store_rows, persist_batch

__all__ = [
    # Database functions
    "init_database",
    "get_engine",
    "close_database",
    # Schema
    "OPTIONAL_COLUMNS",
    "build_jobs_table",
    "create_jobs_table",
    # Stores
    "JobStore",
    "NullJobStore",
    "SQLJobStore",
    "SupabaseJobStore",
    "build_store",
    # Writer
    "build_store_rows",
    "persist_batch",
    # Exceptions
    "PersistenceError",
    "DatabaseConnectionError",
    "DataIntegrityError",
    "SchemaMismatchError",
]
