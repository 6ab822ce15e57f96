"""Command-line entry point for the job scraper."""

from dotenv import load_dotenv
load_dotenv()

import argparse
import json
import signal
import sys
import threading
import time
from pathlib import Path
from typing import List, Optional, Tuple

from job_scraper.adapters.exceptions import AdapterError
from job_scraper.adapters.scraper_api import ScraperAPIAdapter
from job_scraper.config.environment import EnvironmentConfig
from job_scraper.config.exceptions import ConfigurationError
from job_scraper.config.loader import load_config
from job_scraper.config.models import AppConfig
from job_scraper.extraction.extractor import JobExtractor
from job_scraper.logging import get_logger
from job_scraper.logging.config import configure_logging
from job_scraper.notifications.service import NotificationService
from job_scraper.output.files import FileSink
from job_scraper.persistence.database import close_database
from job_scraper.persistence.exceptions import PersistenceError
from job_scraper.persistence.store import build_store
from job_scraper.pipeline import ScrapePipeline
from job_scraper.scheduler import ScrapeScheduler

logger = get_logger(__name__, component="cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Job Scraper - extracts fresh job postings from search results"
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to configuration file (default: config.yaml, then config/config.yaml)",
    )
    parser.add_argument(
        "--manual-run",
        action="store_true",
        help="Scrape every enabled service once and exit",
    )
    parser.add_argument(
        "--html",
        type=Path,
        default=None,
        metavar="FILE",
        help="Extract jobs from a saved document and print them as JSON (requires --service)",
    )
    parser.add_argument(
        "--service",
        default=None,
        metavar="NAME",
        help="Service the --html document belongs to",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Log level (overrides config and environment)",
    )
    return parser


def load_runtime_config(
    config_path: Optional[Path],
    log_level_override: Optional[str],
    offline: bool = False,
) -> Tuple[AppConfig, EnvironmentConfig]:
    """
    Load configuration and settle the effective log level.

    Log level priority: CLI flag, then LOG_LEVEL, then ``logging.level``.

    Args:
        config_path: Explicit config file, or None for the default lookup
        log_level_override: Level given on the command line
        offline: Skip the API_AUTH requirement (saved-document mode)

    Raises:
        ConfigurationError: If configuration is invalid
    """
    app_config, env_config = load_config(config_path, require_api_auth=not offline)

    if log_level_override:
        env_config.log_level = log_level_override
    elif not env_config.log_level:
        env_config.log_level = app_config.logging.level or "INFO"
    env_config.log_level = env_config.log_level.upper()

    return app_config, env_config


def build_pipeline(app_config: AppConfig, env_config: EnvironmentConfig) -> ScrapePipeline:
    """Wire the adapter, store, file sink and notifier into a pipeline."""
    adapter = ScraperAPIAdapter(env_config.api_auth, app_config.scraper)
    store = build_store(app_config, env_config)
    file_sink = FileSink(app_config.output.directory) if app_config.output.enabled else None
    notification_service = NotificationService(
        config=app_config.notifications,
        topic_url=env_config.ntfy_url,
        tz=app_config.scraper.get_tzinfo(),
    )

    logger.info(
        "Services initialized",
        extra={
            "event": "services.initialized",
            "storage_backend": app_config.storage.backend,
            "file_output": file_sink is not None,
            "notifications": notification_service.enabled,
        },
    )

    return ScrapePipeline(
        app_config=app_config,
        adapter=adapter,
        store=store,
        notification_service=notification_service,
        file_sink=file_sink,
    )


def run_offline(app_config: AppConfig, html_path: Path, service_name: str) -> int:
    """Extract a saved document and print its qualified records as JSON."""
    descriptor = app_config.get_service(service_name)
    if descriptor is None:
        known = ", ".join(service.name for service in app_config.services)
        print(f"Unknown service '{service_name}'. Known services: {known}", file=sys.stderr)
        return 2

    html = html_path.read_text(encoding="utf-8")
    result = JobExtractor(app_config.scraper, app_config.selectors).extract(html, descriptor)

    records: List[dict] = [record.to_dict() for record in result.jobs]
    print(json.dumps(records, indent=2, ensure_ascii=False))

    logger.info(
        f"Offline extraction: {len(records)} qualified of {result.total_found} found",
        extra={
            "event": "service.offline.completed",
            "service_name": descriptor.name,
            "total_found": result.total_found,
            "qualified": len(records),
        },
    )
    return 0


def run_daemon(pipeline: ScrapePipeline, interval_seconds: int) -> None:
    """Run the pipeline on the interval until SIGINT/SIGTERM."""
    shutdown_event = threading.Event()
    scheduler = ScrapeScheduler(
        run_callable=pipeline.run_once,
        interval_seconds=interval_seconds,
        shutdown_event=shutdown_event,
    )

    def signal_handler(signum, frame):
        logger.info(
            f"Received signal {signum}, shutting down",
            extra={"event": "service.signal_received", "signal": signum},
        )
        scheduler.shutdown(wait=False)

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    scheduler.start()
    logger.info(
        "Scheduler started. Press Ctrl+C to stop",
        extra={"event": "service.daemon_mode.started"},
    )

    try:
        shutdown_event.wait()
    except KeyboardInterrupt:
        logger.info(
            "Keyboard interrupt received, shutting down",
            extra={"event": "service.keyboard_interrupt"},
        )
        scheduler.shutdown(wait=False)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point for the job scraper.

    Returns:
        Exit code: 0 on success, 1 on configuration/fatal errors or when a
        manual run had errors, 2 on bad arguments
    """
    start_time = time.time()
    parser = build_parser()
    args = parser.parse_args(argv)

    offline = args.html is not None
    if offline and not args.service:
        print("--html requires --service NAME", file=sys.stderr)
        return 2

    try:
        app_config, env_config = load_runtime_config(args.config, args.log_level, offline=offline)
        configure_logging(
            level=env_config.log_level,
            format_type=app_config.logging.format,
            environment=env_config.environment,
        )

        logger.info(
            "Job scraper starting",
            extra={
                "event": "service.starting",
                "config_path": str(args.config) if args.config else None,
                "log_level": env_config.log_level,
                "manual_run": args.manual_run,
                "offline": offline,
            },
        )
        logger.info(
            "Configuration loaded",
            extra={
                "event": "config.loaded",
                "service_count": len(app_config.services),
                "enabled_service_count": len(app_config.get_enabled_services()),
                "scan_interval_seconds": app_config.scan_interval_seconds,
                "log_format": app_config.logging.format,
            },
        )

        if offline:
            return run_offline(app_config, args.html, args.service)

        pipeline = build_pipeline(app_config, env_config)

        try:
            if args.manual_run:
                logger.info("Executing manual run", extra={"event": "service.manual_run.starting"})
                result = pipeline.run_once()
                logger.info(
                    f"Manual run completed: {result.total_qualified} qualified of "
                    f"{result.total_found} found, {result.total_stored} stored",
                    extra={
                        "event": "service.manual_run.completed",
                        "duration_seconds": result.total_duration_seconds,
                        "had_errors": result.had_errors,
                        "total_errors": result.total_errors,
                    },
                )
                return 1 if result.had_errors else 0

            run_daemon(pipeline, app_config.scan_interval_seconds)
            return 0
        finally:
            pipeline.store.close()
            pipeline.adapter.close()
            close_database()
            logger.info(
                "Job scraper stopped",
                extra={
                    "event": "service.stopping",
                    "uptime_seconds": round(time.time() - start_time, 2),
                },
            )

    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        logger.error(
            f"Configuration error: {e}",
            extra={"event": "config.error", "error_type": "ConfigurationError"},
        )
        return 1
    except (AdapterError, PersistenceError, OSError) as e:
        print(f"Startup failed: {e}", file=sys.stderr)
        logger.critical(
            "Fatal error during startup",
            extra={"event": "service.startup.failed", "error_type": type(e).__name__},
            exc_info=True,
        )
        return 1
    except KeyboardInterrupt:
        print("\nShutdown requested by user", file=sys.stderr)
        return 0


if __name__ == "__main__":
    sys.exit(main())
