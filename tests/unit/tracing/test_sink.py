from __future__ import annotations

import json
import logging
from io import StringIO

import pytest

from tracedhttp.tracing import LoggingSink, TraceRecord
from tracedhttp.utils.structured_logging import StructuredFormatter, configure_logging


@pytest.fixture
def record() -> TraceRecord:
    return TraceRecord(
        url="http://example.com/get",
        method="GET",
        body="success",
        param="key=TEST_HELLO",
        server_processing=0.003,
        total=0.005,
    )


#################################
#     Tests for LoggingSink     #
#################################


def test_logging_sink_default_logger() -> None:
    """Test that records go to the tracedhttp.trace logger by default."""
    assert LoggingSink()._logger.name == "tracedhttp.trace"


def test_logging_sink_emit(caplog: pytest.LogCaptureFixture, record: TraceRecord) -> None:
    """Test that one log record carries the record fields."""
    with caplog.at_level(logging.DEBUG, logger="tracedhttp.trace"):
        LoggingSink().emit(record)
    assert len(caplog.records) == 1
    log_record = caplog.records[0]
    assert log_record.getMessage() == "http trace"
    assert log_record.levelno == logging.DEBUG
    assert log_record.url == "http://example.com/get"
    assert log_record.method == "GET"
    assert log_record.body == "success"
    assert log_record.param == "key=TEST_HELLO"
    assert log_record.server_processing == "3ms"
    assert log_record.total == "5ms"
    assert log_record.tls_handshake == "0s"


def test_logging_sink_tags(caplog: pytest.LogCaptureFixture, record: TraceRecord) -> None:
    """Test that static tags are added to every record."""
    with caplog.at_level(logging.INFO, logger="tracedhttp.trace"):
        LoggingSink(level=logging.INFO, tags={"ip": "10.0.0.5"}).emit(record)
    assert caplog.records[0].ip == "10.0.0.5"
    assert caplog.records[0].levelno == logging.INFO


def test_logging_sink_record_fields_win_over_tags(
    caplog: pytest.LogCaptureFixture, record: TraceRecord
) -> None:
    """Test that a tag cannot shadow a record field."""
    with caplog.at_level(logging.DEBUG, logger="tracedhttp.trace"):
        LoggingSink(tags={"url": "ignored"}).emit(record)
    assert caplog.records[0].url == "http://example.com/get"


def test_logging_sink_disabled_level(
    caplog: pytest.LogCaptureFixture, record: TraceRecord
) -> None:
    """Test that nothing is logged below the logger threshold."""
    with caplog.at_level(logging.WARNING, logger="tracedhttp.trace"):
        LoggingSink().emit(record)
    assert caplog.records == []


def test_logging_sink_json_output(record: TraceRecord) -> None:
    """Test that the record renders as one JSON line."""
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    logger = logging.getLogger("test_logging_sink_json")
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)
    try:
        LoggingSink(logger, tags={"ip": "10.0.0.5"}).emit(record)
        data = json.loads(stream.getvalue().strip())
    finally:
        logger.removeHandler(handler)
    assert data["message"] == "http trace"
    assert data["ip"] == "10.0.0.5"
    assert data["body"] == "success"
    assert data["total"] == "5ms"


def test_logging_sink_visible_after_configure_logging(record: TraceRecord) -> None:
    """Test that configuring the package logger enables the default sink."""
    stream = StringIO()
    package_logger = logging.getLogger("tracedhttp")
    handler = configure_logging(stream=stream)
    try:
        LoggingSink().emit(record)
    finally:
        package_logger.removeHandler(handler)
        package_logger.setLevel(logging.NOTSET)
    data = json.loads(stream.getvalue().strip())
    assert data["logger"] == "tracedhttp.trace"
    assert data["url"] == "http://example.com/get"
