"""SQLAlchemy engine lifecycle for the SQL job store."""

from pathlib import Path

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import ArgumentError

from job_scraper.logging import get_logger

from .exceptions import DatabaseConnectionError

# Module-level engine, shared by every SQLJobStore in the process
_engine: Engine | None = None

logger = get_logger(__name__, component="database")


def init_database(database_url: str) -> Engine:
    """Create the process-wide engine and check that it connects.

    Job tables are not created here; each store creates its service tables
    on first use.

    Args:
        database_url: SQLAlchemy URL (e.g. "sqlite:///./data/job_scraper.db")

    Returns:
        The initialized Engine

    Raises:
        DatabaseConnectionError: If the URL is invalid or the database is unreachable
    """
    global _engine

    if not database_url or not isinstance(database_url, str):
        raise DatabaseConnectionError("Database URL must be a non-empty string")

    try:
        url = make_url(database_url)
    except ArgumentError as e:
        raise DatabaseConnectionError(f"Invalid database URL: {e}") from e

    redacted = _redact_url(database_url)
    logger.info(
        "Initializing database",
        extra={"event": "database.initializing", "database_url": redacted},
    )

    is_sqlite = url.get_backend_name() == "sqlite"
    if is_sqlite and url.database and url.database != ":memory:":
        db_dir = Path(url.database).parent
        if not db_dir.exists():
            logger.info(f"Creating database directory: {db_dir}")
            db_dir.mkdir(parents=True, exist_ok=True)

    try:
        engine = create_engine(
            url,
            pool_pre_ping=True,
            connect_args={"check_same_thread": False, "timeout": 30} if is_sqlite else {},
        )
        if is_sqlite:
            _configure_sqlite(engine)
        _validate_connection(engine)
    except DatabaseConnectionError:
        raise
    except Exception as e:
        logger.error(
            f"Failed to initialize database: {e}",
            extra={"event": "database.init_failed", "database_url": redacted},
            exc_info=True,
        )
        raise DatabaseConnectionError(f"Failed to initialize database: {e}") from e

    if _engine is not None:
        _engine.dispose()
    _engine = engine

    logger.info(
        "Database initialized",
        extra={"event": "database.initialised", "database_url": redacted},
    )
    return _engine


def _configure_sqlite(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()


def _validate_connection(engine: Engine) -> None:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
    except Exception as e:
        raise DatabaseConnectionError(f"Failed to validate database connection: {e}") from e
    logger.debug("Database connection validated", extra={"event": "database.validated"})


def _redact_url(url: str) -> str:
    """Database URL with any password masked, safe for logs."""
    try:
        return make_url(url).render_as_string(hide_password=True)
    except ArgumentError:
        return "<invalid url>"


def get_engine() -> Engine:
    """Return the engine created by init_database().

    Raises:
        DatabaseConnectionError: If init_database() has not been called
    """
    if _engine is None:
        raise DatabaseConnectionError(
            "Database not initialized. Call init_database() before using get_engine()"
        )
    return _engine


def close_database() -> None:
    """Dispose of the engine's connection pool."""
    global _engine

    if _engine is not None:
        _engine.dispose()
        _engine = None
        logger.info("Database connections closed", extra={"event": "database.closed"})
