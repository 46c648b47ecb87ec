"""
Tests for structured logging.
"""

import json
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from uuid import uuid4
from shortgen.shared.logging import (
    PACKAGE_LOGGER,
    JSONFormatter,
    configure_logging,
    get_job_id,
    get_logger,
    set_job_id,
)


def _format_last(caplog) -> dict:
    assert len(caplog.records) > 0
    return json.loads(JSONFormatter().format(caplog.records[-1]))


def test_get_logger_nests_under_package():
    """Test that module loggers are children of the package logger."""
    logger = get_logger("composer.test_logging")
    assert isinstance(logger, logging.Logger)
    assert logger.name == "shortgen.composer.test_logging"
    assert get_logger("shortgen.composer.test_logging") is logger


def test_handlers_live_on_package_logger():
    """Test that module loggers carry no handlers and propagate to the package logger."""
    logger = get_logger("composer.test_handlers")
    package_logger = logging.getLogger(PACKAGE_LOGGER)

    assert logger.handlers == []
    assert logger.propagate is True
    assert len(package_logger.handlers) >= 1
    assert all(isinstance(h.formatter, JSONFormatter) for h in package_logger.handlers)


def test_logger_outputs_json_format(caplog):
    """Test that logger outputs JSON format."""
    logger = get_logger("composer.test_logging")
    logger.setLevel(logging.INFO)

    logger.info("Planned dual_card timeline", extra={"layout": "dual_card"})

    log_data = _format_last(caplog)
    assert log_data["level"] == "INFO"
    assert log_data["message"] == "Planned dual_card timeline"
    assert log_data["layout"] == "dual_card"
    assert log_data["timestamp"].endswith("Z")


def test_logger_includes_job_id(caplog):
    """Test that logger includes job_id when set in context."""
    logger = get_logger("composer.test_logging")
    logger.setLevel(logging.INFO)

    job_id = uuid4()
    set_job_id(job_id)

    try:
        logger.info("Composing video")
        log_data = _format_last(caplog)
        assert log_data["job_id"] == str(job_id)
    finally:
        set_job_id(None)


def test_logger_excludes_job_id_when_not_set(caplog):
    """Test that logger excludes job_id when not set."""
    logger = get_logger("composer.test_logging")
    logger.setLevel(logging.INFO)

    set_job_id(None)
    logger.info("Composing video")

    assert "job_id" not in _format_last(caplog)


def test_set_get_job_id():
    """Test that job_id can be set and retrieved."""
    job_id = uuid4()
    set_job_id(job_id)
    assert get_job_id() == job_id

    set_job_id(None)
    assert get_job_id() is None


def test_logger_includes_numeric_extra_fields(caplog):
    """Test that timing values stay numeric in JSON."""
    logger = get_logger("composer.test_logging")
    logger.setLevel(logging.INFO)

    logger.info("Planned timeline", extra={
        "background_start": 12.5,
        "speedup_factor": 1.85,
        "node_count": 17,
        "has_outro": False
    })

    log_data = _format_last(caplog)
    assert log_data["background_start"] == 12.5
    assert log_data["speedup_factor"] == 1.85
    assert log_data["node_count"] == 17
    assert log_data["has_outro"] is False


def test_logger_includes_exception(caplog):
    """Test that logger includes exception information."""
    logger = get_logger("composer.test_logging")
    logger.setLevel(logging.ERROR)

    try:
        raise ValueError("Render failed")
    except ValueError:
        logger.exception("Exception occurred")

    log_data = _format_last(caplog)
    assert "ValueError" in log_data["exception"]
    assert "Render failed" in log_data["exception"]


def test_logger_respects_log_level(caplog):
    """Test that logger respects log level configuration."""
    logger = get_logger("composer.test_logging")
    logger.setLevel(logging.WARNING)

    logger.debug("Debug message")
    logger.info("Info message")
    logger.warning("Warning message")
    logger.error("Error message")

    log_levels = [record.levelname for record in caplog.records]
    assert "DEBUG" not in log_levels
    assert "INFO" not in log_levels
    assert "WARNING" in log_levels
    assert "ERROR" in log_levels


def test_logger_stringifies_complex_types(caplog):
    """Test that commands, paths and UUIDs in extra fields become strings."""
    logger = get_logger("composer.test_logging")
    logger.setLevel(logging.INFO)

    logger.info("Starting ffmpeg", extra={
        "command": ["ffmpeg", "-i", "bg.mp4"],
        "output_path": Path("/tmp/out.mp4"),
        "request_id": uuid4()
    })

    log_data = _format_last(caplog)
    assert isinstance(log_data["command"], str)
    assert log_data["output_path"] == str(Path("/tmp/out.mp4"))
    assert isinstance(log_data["request_id"], str)


def test_configure_logging_adds_rotating_file(tmp_path):
    """Test that a rotating file handler is attached to the package logger."""
    log_file = tmp_path / "logs" / "shortgen.log"

    try:
        package_logger = configure_logging(level="DEBUG", log_file=str(log_file))

        file_handlers = [h for h in package_logger.handlers if isinstance(h, RotatingFileHandler)]
        assert len(file_handlers) == 1
        assert log_file.parent.exists()
        assert package_logger.level == logging.DEBUG

        get_logger("composer.test_file").info("Written to file", extra={"node_count": 9})
        file_handlers[0].flush()
        line = json.loads(log_file.read_text().strip().splitlines()[-1])
        assert line["logger"] == "shortgen.composer.test_file"
        assert line["node_count"] == 9
    finally:
        configure_logging(level="INFO", log_file="")


def test_configure_logging_replaces_handlers():
    first = configure_logging(level="INFO", log_file="")
    second = configure_logging(level="INFO", log_file="")

    assert second is first
    assert len(second.handlers) == 1
    assert not any(isinstance(h, RotatingFileHandler) for h in second.handlers)


def test_console_handler_writes_to_stderr():
    """Test that the console handler leaves stdout to the caller."""
    package_logger = configure_logging(level="INFO", log_file="")

    stream_handlers = [h for h in package_logger.handlers if type(h) is logging.StreamHandler]
    assert len(stream_handlers) == 1
    assert stream_handlers[0].stream is sys.stderr


def test_json_names_the_emitting_logger(caplog):
    logger = get_logger("composer.graph_builder")
    logger.setLevel(logging.INFO)

    logger.info("Built filter graph")

    assert _format_last(caplog)["logger"] == "shortgen.composer.graph_builder"
