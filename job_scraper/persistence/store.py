"""Store collaborators: upsert job rows keyed by fingerprint.

Both stores treat a fingerprint conflict as "already present" and report a
missing column as SchemaMismatchError so the writer can retry without it.
"""

import re
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

import requests
from sqlalchemy import MetaData, Table, inspect
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from job_scraper.config.environment import EnvironmentConfig
from job_scraper.config.models import AppConfig, StorageBackend
from job_scraper.logging import get_logger

from .database import init_database
from .exceptions import (
    DatabaseConnectionError,
    DataIntegrityError,
    PersistenceError,
    SchemaMismatchError,
)
from .schema import create_jobs_table

logger = get_logger(__name__, component="store")

_INSERT_BY_DIALECT = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}

# PostgREST: "Could not find the 'found_time' column of 'plumber_jobs' in the schema cache"
# Postgres:  'column "found_time" of relation "plumber_jobs" does not exist'
_MISSING_COLUMN_PATTERNS = (
    re.compile(r"Could not find the '([^']+)' column"),
    re.compile(r'column "([^"]+)" of relation "[^"]+" does not exist'),
)


class JobStore(ABC):
    """Destination for qualified job rows."""

    @abstractmethod
    def upsert_jobs(self, table: str, rows: List[Dict[str, Any]]) -> int:
        """Insert rows into ``table``, ignoring fingerprints already present.

        Args:
            table: Target table name
            rows: Row dicts; every row has the same keys

        Returns:
            Number of rows the store reports as written

        Raises:
            SchemaMismatchError: If the table lacks one of the row columns
            PersistenceError: On any other store failure
        """

    def close(self) -> None:
        """Release connections held by the store."""


class NullJobStore(JobStore):
    """Store used when ``storage.backend`` is ``none``; discards rows."""

    def upsert_jobs(self, table: str, rows: List[Dict[str, Any]]) -> int:
        logger.debug(
            f"Storage disabled, discarding {len(rows)} rows for {table}",
            extra={"event": "store.disabled", "table": table, "rows": len(rows)},
        )
        return 0


class SQLJobStore(JobStore):
    """Job tables in a SQL database through SQLAlchemy Core.

    Tables are created on first use. A table that already exists is
    reflected as-is, so an older layout surfaces as SchemaMismatchError.
    """

    def __init__(self, engine: Engine):
        dialect = engine.dialect.name
        if dialect not in _INSERT_BY_DIALECT:
            raise PersistenceError(
                f"Unsupported database dialect '{dialect}'; "
                f"use one of: {', '.join(sorted(_INSERT_BY_DIALECT))}"
            )
        self.engine = engine
        self._insert = _INSERT_BY_DIALECT[dialect]
        self._metadata = MetaData()
        self._tables: Dict[str, Table] = {}

    def _table(self, name: str) -> Table:
        if name in self._tables:
            return self._tables[name]

        if inspect(self.engine).has_table(name):
            table = Table(name, self._metadata, autoload_with=self.engine)
        else:
            table = create_jobs_table(self.engine, self._metadata, name)
            logger.info(
                f"Created job table {name}",
                extra={"event": "store.table.created", "table": name},
            )
        self._tables[name] = table
        return table

    def upsert_jobs(self, table: str, rows: List[Dict[str, Any]]) -> int:
        if not rows:
            return 0

        try:
            target = self._table(table)
        except SQLAlchemyError as e:
            raise DatabaseConnectionError(f"Could not prepare table {table}: {e}") from e

        for column in rows[0]:
            if column not in target.c:
                raise SchemaMismatchError(column, table)

        statement = self._insert(target).on_conflict_do_nothing(index_elements=["fingerprint"])
        try:
            with self.engine.begin() as conn:
                result = conn.execute(statement, rows)
        except IntegrityError as e:
            raise DataIntegrityError(f"Rows rejected by {table}: {e.orig}") from e
        except SQLAlchemyError as e:
            raise PersistenceError(f"Insert into {table} failed: {e}") from e

        inserted = result.rowcount if result.rowcount is not None and result.rowcount >= 0 else len(rows)
        logger.info(
            f"Stored {inserted} of {len(rows)} jobs in {table}",
            extra={
                "event": "store.upsert.completed",
                "table": table,
                "rows": len(rows),
                "inserted": inserted,
                "skipped_duplicates": len(rows) - inserted,
            },
        )
        return inserted


class SupabaseJobStore(JobStore):
    """Job tables behind Supabase's PostgREST API."""

    def __init__(
        self,
        base_url: str,
        service_key: str,
        timeout: int = 30,
        session: Optional[requests.Session] = None,
    ):
        if not base_url or not service_key:
            raise DatabaseConnectionError("Supabase URL and service key are required")
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update(
            {
                "apikey": service_key,
                "Authorization": f"Bearer {service_key}",
                "Content-Type": "application/json",
                "Prefer": "resolution=ignore-duplicates,return=minimal",
            }
        )

    def upsert_jobs(self, table: str, rows: List[Dict[str, Any]]) -> int:
        if not rows:
            return 0

        url = f"{self.base_url}/rest/v1/{table}"
        try:
            response = self._session.post(
                url,
                params={"on_conflict": "fingerprint"},
                json=rows,
                timeout=self.timeout,
            )
        except requests.exceptions.Timeout as e:
            raise DatabaseConnectionError(
                f"Supabase insert into {table} timed out after {self.timeout} seconds"
            ) from e
        except requests.exceptions.RequestException as e:
            raise DatabaseConnectionError(f"Supabase insert into {table} failed: {e}") from e

        if response.ok:
            logger.info(
                f"Stored {len(rows)} jobs in {table}",
                extra={"event": "store.upsert.completed", "table": table, "rows": len(rows)},
            )
            return len(rows)

        body = response.text or ""
        if response.status_code == 409 and "duplicate key" in body:
            logger.info(
                f"Some jobs already exist in {table} (duplicates skipped)",
                extra={"event": "store.upsert.duplicates", "table": table, "rows": len(rows)},
            )
            return 0

        column = _missing_column(body)
        if column:
            raise SchemaMismatchError(column, table)

        raise PersistenceError(
            f"Supabase insert into {table} failed: {response.status_code} - {body[:500]}"
        )

    def close(self) -> None:
        self._session.close()


def _missing_column(body: str) -> Optional[str]:
    for pattern in _MISSING_COLUMN_PATTERNS:
        match = pattern.search(body)
        if match:
            return match.group(1)
    return None


def build_store(app_config: AppConfig, env_config: EnvironmentConfig) -> JobStore:
    """Pick the store for ``storage.backend``.

    Args:
        app_config: Application configuration
        env_config: Environment with DATABASE_URL or the Supabase credentials

    Raises:
        DatabaseConnectionError: If the chosen backend cannot be initialized
    """
    backend = app_config.storage.backend

    if backend == StorageBackend.SUPABASE:
        return SupabaseJobStore(
            env_config.supabase_url,
            env_config.supabase_service_key,
            timeout=app_config.scraper.request_timeout,
        )
    if backend == StorageBackend.NONE:
        return NullJobStore()

    return SQLJobStore(init_database(env_config.database_url))
