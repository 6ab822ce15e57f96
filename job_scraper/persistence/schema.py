"""Table layout for per-service job tables.

Every service writes to its own table (``ServiceDescriptor.table``); all
of them share this column set. ``fingerprint`` is unique and is the upsert
conflict target.
"""

from sqlalchemy import Column, Integer, MetaData, String, Table, Text
from sqlalchemy.engine import Engine

from job_scraper.utils.timestamps import format_timestamp, utc_now

# Columns a legacy table may lack; rows are retried without them
OPTIONAL_COLUMNS = ("found_time", "source_url")


def _created_at() -> str:
    return format_timestamp(utc_now())


def build_jobs_table(metadata: MetaData, name: str) -> Table:
    """Declare a job table called ``name`` on ``metadata``."""
    return Table(
        name,
        metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("title", Text, nullable=False),
        Column("job_name", String(255), nullable=False),
        Column("posted_at", String(50), nullable=True),
        Column("location", Text, nullable=True),
        Column("city", String(255), nullable=True),
        Column("state", String(100), nullable=True),
        Column("source_url", Text, nullable=True),
        Column("fingerprint", String(64), nullable=False, unique=True),
        Column("found_time", String(50), nullable=True),
        Column("created_at", String(50), nullable=False, default=_created_at),
    )


def create_jobs_table(engine: Engine, metadata: MetaData, name: str) -> Table:
    """Declare and create a job table (no-op when it already exists)."""
    table = build_jobs_table(metadata, name)
    table.create(engine, checkfirst=True)
    return table
