"""Log format checks: the JSON lines must stay parseable and keep the
workflow fields at the top level where the aggregator indexes them."""

from __future__ import annotations

import json
import logging
import sys

from meetly.core.logging import (
    _ContainerFormatter,
    _JsonFormatter,
    request_id_var,
    setup_logging,
)


def _record(msg: str = "test message", level: int = logging.INFO, **fields) -> logging.LogRecord:
    record = logging.LogRecord(
        name="meetly.test",
        level=level,
        pathname="test.py",
        lineno=1,
        msg=msg,
        args=(),
        exc_info=None,
    )
    for key, value in fields.items():
        setattr(record, key, value)
    return record


def test_json_formatter_produces_valid_json() -> None:
    parsed = json.loads(_JsonFormatter().format(_record("Hello world")))
    assert parsed["level"] == "INFO"
    assert parsed["logger"] == "meetly.test"
    assert parsed["message"] == "Hello world"
    assert "timestamp" in parsed


def test_json_formatter_includes_request_fields() -> None:
    record = _record(request_id="abc-123", method="GET", path="/health", duration_ms=12.5)
    parsed = json.loads(_JsonFormatter().format(record))
    assert parsed["request_id"] == "abc-123"
    assert parsed["method"] == "GET"
    assert parsed["duration_ms"] == 12.5


def test_json_formatter_includes_workflow_fields() -> None:
    record = _record(
        "Provider call failed",
        level=logging.WARNING,
        event_id="e-1",
        package_id="p-1",
        operation="schedule_meeting",
        outcome="error",
    )
    parsed = json.loads(_JsonFormatter().format(record))
    assert parsed["event_id"] == "e-1"
    assert parsed["package_id"] == "p-1"
    assert parsed["operation"] == "schedule_meeting"
    assert parsed["outcome"] == "error"
    assert "purchase_id" not in parsed


def test_json_formatter_includes_exception_info() -> None:
    formatter = _JsonFormatter()
    try:
        raise ValueError("test error")
    except ValueError:
        record = _record("Something failed", level=logging.ERROR)
        record.exc_info = sys.exc_info()
        output = formatter.format(record)

    assert "ValueError: test error" in json.loads(output)["exception"]


def test_container_formatter_is_plain_text() -> None:
    output = _ContainerFormatter().format(_record("server started"))
    assert "INFO" in output
    assert "meetly.test" in output
    assert "server started" in output
    assert not output.startswith("{")


def test_container_formatter_adds_location_for_warnings() -> None:
    output = _ContainerFormatter().format(_record("careful", level=logging.WARNING))
    assert "[test.py:1]" in output


def test_setup_logging_levels() -> None:
    setup_logging("debug")
    assert logging.getLogger().level == logging.DEBUG
    # Client libraries stay quiet even at debug; they log request URLs.
    assert logging.getLogger("httpx").level == logging.WARNING

    setup_logging("nonexistent")
    assert logging.getLogger().level == logging.INFO


def test_setup_logging_json_handler() -> None:
    setup_logging("info", json_format=True)
    (handler,) = logging.getLogger().handlers
    assert isinstance(handler.formatter, _JsonFormatter)


def test_handler_stamps_request_id_on_child_logger_records() -> None:
    setup_logging("info", json_format=True)
    (handler,) = logging.getLogger().handlers
    record = _record()

    token = request_id_var.set("req-42")
    try:
        assert handler.filter(record)
    finally:
        request_id_var.reset(token)
    assert json.loads(handler.format(record))["request_id"] == "req-42"
