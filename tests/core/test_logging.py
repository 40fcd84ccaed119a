"""Tests for structlog configuration helpers."""

import json

import pytest
import structlog

from computejobs.core.config import ComputeJobsSettings
from computejobs.core.logging import (
    clear_context,
    configure_from_settings,
    configure_logging,
    get_logger,
    job_log_context,
)


@pytest.fixture(autouse=True)
def _reset_structlog():
    yield
    structlog.reset_defaults()


class TestConfigureLogging:
    def test_json_output_has_ecs_fields(self, capsys):
        configure_logging(level="INFO", json_format=True, service="computejobs-test")
        get_logger("test").info("jobs.submitted", job_id="abc")
        line = capsys.readouterr().out.strip().splitlines()[-1]
        record = json.loads(line)
        assert record["event"] == "jobs.submitted"
        assert record["job_id"] == "abc"
        assert record["service.name"] == "computejobs-test"
        assert record["log.level"] == "info"
        assert record["log.logger"] == "test"
        assert "@timestamp" in record

    def test_level_filters(self, capsys):
        configure_logging(level="WARNING", json_format=True)
        get_logger("test").info("jobs.hidden")
        assert "jobs.hidden" not in capsys.readouterr().out

    def test_from_settings(self, capsys):
        configure_from_settings(ComputeJobsSettings(log_level="ERROR", log_format="json"))
        log = get_logger("test")
        log.warning("jobs.hidden")
        log.error("jobs.persist_failed", job_id="j1")
        out = capsys.readouterr().out
        assert "jobs.hidden" not in out
        assert json.loads(out.strip().splitlines()[-1])["event"] == "jobs.persist_failed"


class TestGetLogger:
    def test_package_imports(self):
        import computejobs
        from computejobs.execution import runner

        assert computejobs.__version__
        assert runner.logger is not None

    def test_logger_created_before_configuration(self, capsys):
        log = get_logger("computejobs.sample")
        configure_logging(level="INFO", json_format=True)
        log.info("jobs.submitted")
        record = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert record["log.logger"] == "computejobs.sample"
        assert record["event"] == "jobs.submitted"


class TestJobLogContext:
    def test_binds_and_unbinds(self):
        with job_log_context("j1", attempt=1):
            assert structlog.contextvars.get_contextvars() == {"job_id": "j1", "attempt": 1}
        assert "job_id" not in structlog.contextvars.get_contextvars()

    def test_events_carry_job_and_thread(self, capsys):
        configure_logging(level="INFO", json_format=True)
        with job_log_context("j1"):
            get_logger("test").info("jobs.completed")
        record = json.loads(capsys.readouterr().out.strip().splitlines()[-1])
        assert record["job_id"] == "j1"
        assert record["thread"] == "MainThread"

    def test_clear_context(self):
        structlog.contextvars.bind_contextvars(caller="u1")
        clear_context()
        assert structlog.contextvars.get_contextvars() == {}
