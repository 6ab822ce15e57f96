"""Unit tests for the command-line entry point.

Covers:
- Log level priority (CLI > env > config)
- Offline extraction of a saved document
- Manual run mode and its exit codes
- Daemon mode wiring
- Configuration error handling
"""

import json
import logging
from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest

from job_scraper.main import build_pipeline, load_runtime_config, main
from job_scraper.persistence import NullJobStore
from job_scraper.pipeline import PipelineRunResult, ScrapePipeline
from tests.helpers import FIXTURES_DIR

CONFIG_YAML = """
services:
  - name: plumber
    display_name: Plumbers
    table: plumber_jobs
    validationWords: ["plumber"]
scraper:
  timezone: UTC
storage:
  backend: none
output:
  enabled: false
notifications:
  enabled: false
logging:
  level: WARNING
  format: key-value
"""


@pytest.fixture
def config_path(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(CONFIG_YAML)
    return path


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ("API_AUTH", "LOG_LEVEL", "DATABASE_URL", "NTFY_URL", "SUPABASE_URL", "SUPABASE_SERVICE_KEY"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def run_result(had_errors=False):
    now = datetime(2025, 3, 1, 12, 0, tzinfo=timezone.utc)
    return PipelineRunResult(run_started_at=now, run_finished_at=now, had_errors=had_errors)


class TestLoadRuntimeConfig:
    def test_cli_level_wins(self, config_path, monkeypatch):
        monkeypatch.setenv("API_AUTH", "key")
        monkeypatch.setenv("LOG_LEVEL", "ERROR")

        _, env_config = load_runtime_config(config_path, "DEBUG")

        assert env_config.log_level == "DEBUG"

    def test_env_level_beats_config(self, config_path, monkeypatch):
        monkeypatch.setenv("API_AUTH", "key")
        monkeypatch.setenv("LOG_LEVEL", "error")

        _, env_config = load_runtime_config(config_path, None)

        assert env_config.log_level == "ERROR"

    def test_config_level_used_last(self, config_path, monkeypatch):
        monkeypatch.setenv("API_AUTH", "key")

        _, env_config = load_runtime_config(config_path, None)

        assert env_config.log_level == "WARNING"

    def test_offline_skips_api_auth(self, config_path):
        app_config, env_config = load_runtime_config(config_path, None, offline=True)

        assert env_config.api_auth is None
        assert app_config.services[0].name == "plumber"


class TestOfflineMode:
    def test_prints_qualified_records(self, config_path, capsys):
        exit_code = main(
            [
                "--config", str(config_path),
                "--html", str(FIXTURES_DIR / "google_jobs.html"),
                "--service", "plumber",
                "--log-level", "ERROR",
            ]
        )

        assert exit_code == 0
        records = json.loads(capsys.readouterr().out)
        assert [r["title"] for r in records] == [
            "Licensed Plumber",
            "Plumber Apprentice",
            "Commercial Plumber",
        ]
        assert records[2]["found_time"] == "3 hours ago"

    def test_requires_service(self, config_path, capsys):
        exit_code = main(["--config", str(config_path), "--html", str(FIXTURES_DIR / "google_jobs.html")])

        assert exit_code == 2
        assert "--service" in capsys.readouterr().err

    def test_unknown_service(self, config_path, capsys):
        exit_code = main(
            [
                "--config", str(config_path),
                "--html", str(FIXTURES_DIR / "google_jobs.html"),
                "--service", "roofer",
                "--log-level", "ERROR",
            ]
        )

        assert exit_code == 2
        assert "Known services: plumber" in capsys.readouterr().err


class TestManualRun:
    @patch("job_scraper.main.build_pipeline")
    def test_exit_zero_on_clean_run(self, mock_build, config_path, monkeypatch):
        monkeypatch.setenv("API_AUTH", "key")
        pipeline = MagicMock()
        pipeline.run_once.return_value = run_result()
        mock_build.return_value = pipeline

        assert main(["--config", str(config_path), "--manual-run"]) == 0
        pipeline.run_once.assert_called_once()
        pipeline.store.close.assert_called_once()
        pipeline.adapter.close.assert_called_once()

    @patch("job_scraper.main.build_pipeline")
    def test_exit_one_when_errors(self, mock_build, config_path, monkeypatch):
        monkeypatch.setenv("API_AUTH", "key")
        pipeline = MagicMock()
        pipeline.run_once.return_value = run_result(had_errors=True)
        mock_build.return_value = pipeline

        assert main(["--config", str(config_path), "--manual-run"]) == 1


class TestDaemonMode:
    @patch("job_scraper.main.run_daemon")
    @patch("job_scraper.main.build_pipeline")
    def test_starts_scheduler_with_interval(self, mock_build, mock_daemon, config_path, monkeypatch):
        monkeypatch.setenv("API_AUTH", "key")
        pipeline = MagicMock()
        mock_build.return_value = pipeline

        assert main(["--config", str(config_path)]) == 0
        mock_daemon.assert_called_once_with(pipeline, 3600)


class TestErrors:
    def test_missing_api_auth_is_configuration_error(self, config_path, capsys):
        assert main(["--config", str(config_path), "--manual-run"]) == 1
        assert "API_AUTH" in capsys.readouterr().err

    def test_missing_config_file(self, tmp_path, capsys):
        assert main(["--config", str(tmp_path / "missing.yaml")]) == 1
        assert "Configuration Error" in capsys.readouterr().err


class TestBuildPipeline:
    def test_wires_collaborators(self, config_path, monkeypatch):
        monkeypatch.setenv("API_AUTH", "key")
        monkeypatch.setenv("NTFY_URL", "https://ntfy.sh/topic")
        app_config, env_config = load_runtime_config(config_path, None)

        pipeline = build_pipeline(app_config, env_config)

        try:
            assert isinstance(pipeline, ScrapePipeline)
            assert isinstance(pipeline.store, NullJobStore)
            assert pipeline.file_sink is None
            assert pipeline.notification_service.topic_url == "https://ntfy.sh/topic"
            assert not pipeline.notification_service.enabled
        finally:
            pipeline.adapter.close()
