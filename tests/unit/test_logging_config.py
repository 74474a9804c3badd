"""Tests for logging config."""

import json
import logging
from pathlib import Path

import pytest

import clinic_console.log as log_module
from clinic_console.log import (
    ConsoleFormatter,
    JsonFormatter,
    JsonlHandler,
    configure_logging,
    logger,
)

pytestmark = pytest.mark.unit


@pytest.fixture
def reset_logger() -> None:
    prev_handlers = list(logger.handlers)
    prev_level = logger.level
    prev_log_dir = log_module._log_dir
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)
    log_module._log_dir = None
    try:
        yield
    finally:
        for handler in logger.handlers:
            handler.close()
        logger.handlers.clear()
        logger.handlers.extend(prev_handlers)
        logger.setLevel(prev_level)
        log_module._log_dir = prev_log_dir


@pytest.fixture
def log_dir_env(monkeypatch, tmp_path: Path) -> Path:
    path = tmp_path / "logs"
    monkeypatch.setenv("CLINIC_CONSOLE_LOG_DIR", str(path))
    return path


def _stream_handler() -> logging.Handler:
    return next(
        h
        for h in logger.handlers
        if isinstance(h, logging.StreamHandler)
        and not isinstance(h, logging.FileHandler)
    )


def test_configure_logging_attaches_handlers_once(
    reset_logger: None, log_dir_env: Path
) -> None:
    configure_logging()
    handlers = list(logger.handlers)
    assert len(handlers) == 3
    file_handlers = [
        h
        for h in handlers
        if isinstance(h, logging.FileHandler) and not isinstance(h, JsonlHandler)
    ]
    json_handlers = [h for h in handlers if isinstance(h, JsonlHandler)]
    assert len(file_handlers) == 1
    assert len(json_handlers) == 1
    configure_logging()
    assert logger.handlers == handlers


def test_configure_logging_sets_console_level(
    reset_logger: None, log_dir_env: Path
) -> None:
    configure_logging(level=logging.WARNING)
    assert logger.level == logging.DEBUG
    stream_handler = _stream_handler()
    assert stream_handler.level == logging.WARNING
    assert isinstance(stream_handler.formatter, ConsoleFormatter)


def test_console_formatter_appends_payload_when_message_is_event(
    reset_logger: None, log_dir_env: Path
) -> None:
    configure_logging(level=logging.DEBUG)
    formatter = _stream_handler().formatter
    record = logging.LogRecord(
        name="clinic_console",
        level=logging.INFO,
        pathname=__file__,
        lineno=0,
        msg="LOAD_SETTLED",
        args=(),
        exc_info=None,
    )
    record.json = {
        "event": "LOAD_SETTLED",
        "payload": {"view": "patients"},
        "size_bytes": 10,
    }
    assert formatter.format(record).endswith('{"view": "patients"}')


def test_json_formatter_keeps_event_fields() -> None:
    record = logging.LogRecord(
        name="clinic_console",
        level=logging.WARNING,
        pathname=__file__,
        lineno=0,
        msg="WATCHDOG_FIRED",
        args=(),
        exc_info=None,
    )
    record.json = {"event": "WATCHDOG_FIRED", "payload": {"watchdog_ms": 5000}}
    data = json.loads(JsonFormatter().format(record))
    assert data["event"] == "WATCHDOG_FIRED"
    assert data["payload"] == {"watchdog_ms": 5000}
    assert data["level"] == "WARNING"
    assert "timestamp" in data


def test_log_directory_and_files_created(
    reset_logger: None, log_dir_env: Path
) -> None:
    configure_logging()
    directory = log_dir_env.resolve()
    assert log_module._log_dir == directory
    assert directory.exists()
    logger.info("hello")
    for handler in logger.handlers:
        handler.flush()
    assert (directory / "clinic_console.log").exists()
    assert (directory / "clinic_console.jsonl").exists()
