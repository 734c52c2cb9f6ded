"""Tests for the structured logging setup.

Every log entry written by the sync process carries a timestamp, a level
and the event name; events emitted inside a sync cycle also carry the
cycle number bound through structlog's context variables.
"""

import json
import logging
from datetime import datetime

import pytest
import structlog
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from recordsync.models.config import LoggingConfig
from recordsync.utils.logging_config import configure_logging, configure_logging_from_config


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    structlog.contextvars.clear_contextvars()
    logging.basicConfig(force=True)
    structlog.reset_defaults()


def read_entries(path) -> list[dict]:
    lines = path.read_text(encoding="utf-8").splitlines()
    return [json.loads(line) for line in lines if line.strip()]


@pytest.mark.parametrize("log_level", ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"])
def test_log_entries_contain_required_fields(tmp_path, log_level: str):
    log_file = tmp_path / "sync.log"
    configure_logging(log_level="DEBUG", json_logs=True, log_file=str(log_file))

    log = structlog.stdlib.get_logger("test_logger")
    getattr(log, log_level.lower())("sync_cycle_failed", error="store unreachable")

    (entry,) = read_entries(log_file)

    datetime.fromisoformat(entry["timestamp"].replace("Z", "+00:00"))
    assert entry["level"].upper() == log_level
    assert entry["event"] == "sync_cycle_failed"
    assert entry["error"] == "store unreachable"


def test_bound_cycle_context_is_merged(tmp_path):
    log_file = tmp_path / "sync.log"
    configure_logging(json_logs=True, log_file=str(log_file))

    log = structlog.stdlib.get_logger("test_logger")
    structlog.contextvars.bind_contextvars(sync_cycle=7)
    log.info("page_synced", records_read=2)
    structlog.contextvars.unbind_contextvars("sync_cycle")
    log.info("delta_synced")

    first, second = read_entries(log_file)

    assert first["sync_cycle"] == 7
    assert "sync_cycle" not in second


def test_level_filters_lower_entries(tmp_path):
    log_file = tmp_path / "sync.log"
    configure_logging_from_config(
        LoggingConfig(log_level="WARNING", json_logs=True, log_file=str(log_file))
    )

    log = structlog.stdlib.get_logger("test_logger")
    log.info("delta_no_changes")
    log.warning("sync_cycle_failed")

    assert [entry["event"] for entry in read_entries(log_file)] == ["sync_cycle_failed"]


@given(message=st.text(min_size=1, max_size=200))
@settings(
    max_examples=50, suppress_health_check=[HealthCheck.function_scoped_fixture], deadline=None
)
def test_console_renderer_accepts_any_message(message: str):
    """Property: console output never fails on arbitrary event payloads."""
    configure_logging(log_level="INFO", json_logs=False)

    structlog.stdlib.get_logger("test_logger").info("event_being_sent", fields={"name": message})
