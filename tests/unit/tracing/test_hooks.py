from __future__ import annotations

import itertools
import logging
from unittest.mock import Mock

import pytest

from tracedhttp.tracing import ClientTrace, Timeline


def make_timeline() -> Timeline:
    counter = itertools.count(1)
    return Timeline(clock=lambda: float(next(counter)))


#################################
#     Tests for ClientTrace     #
#################################


def test_client_trace_defaults() -> None:
    """Test that every hook slot is empty by default."""
    trace = ClientTrace()
    assert trace.dns_start is None
    assert trace.got_first_response_byte is None


def test_client_trace_fire_calls_hook() -> None:
    """Test that fire forwards the arguments to the hook."""
    hook = Mock()
    ClientTrace(connect_done=hook).fire("connect_done", "10.0.0.1", 443, None)
    hook.assert_called_once_with("10.0.0.1", 443, None)


def test_client_trace_fire_missing_hook() -> None:
    """Test that firing an unset hook is a no-op."""
    ClientTrace().fire("got_conn")


def test_client_trace_fire_unknown_hook() -> None:
    """Test that firing an unknown slot fails loudly."""
    with pytest.raises(AttributeError):
        ClientTrace().fire("wrote_request")


##############################
#     Tests for Timeline     #
##############################


def test_timeline_initial_state() -> None:
    """Test that no instant is recorded before any hook fires."""
    timeline = Timeline()
    assert timeline.start is None
    assert timeline.dns_done is None
    assert timeline.connect_done is None
    assert timeline.conn_ready is None
    assert timeline.first_byte is None
    assert timeline.end is None


def test_timeline_full_sequence() -> None:
    """Test that each hook records its own instant."""
    timeline = make_timeline()
    trace = timeline.client_trace()
    trace.fire("dns_start", "api.example.com")
    trace.fire("dns_done", ["10.0.0.1"], None)
    trace.fire("connect_start", "10.0.0.1", 80)
    trace.fire("connect_done", "10.0.0.1", 80, None)
    trace.fire("got_conn")
    trace.fire("got_first_response_byte")
    timeline.finish()
    assert (
        timeline.start,
        timeline.dns_done,
        timeline.connect_done,
        timeline.conn_ready,
        timeline.first_byte,
        timeline.end,
    ) == (1.0, 2.0, 3.0, 4.0, 5.0, 6.0)


def test_timeline_ip_address_starts_at_connect() -> None:
    """Test that without DNS the connect start marks both the start and the
    end of name resolution."""
    timeline = make_timeline()
    trace = timeline.client_trace()
    trace.fire("connect_start", "127.0.0.1", 80)
    trace.fire("connect_done", "127.0.0.1", 80, None)
    timeline.finish()
    assert timeline.dns_done == 1.0
    assert timeline.start == 1.0


def test_timeline_connect_start_keeps_dns_done() -> None:
    """Test that a connect start after DNS does not move the DNS instant."""
    timeline = make_timeline()
    trace = timeline.client_trace()
    trace.fire("dns_done", ["10.0.0.1"], None)
    trace.fire("connect_start", "10.0.0.1", 80)
    assert timeline.dns_done == 1.0


def test_timeline_reused_connection_starts_at_conn_ready() -> None:
    """Test that a reused connection starts at the connection-ready
    instant."""
    timeline = make_timeline()
    trace = timeline.client_trace()
    trace.fire("got_conn")
    trace.fire("got_first_response_byte")
    timeline.finish()
    assert timeline.start == timeline.conn_ready == 1.0
    assert timeline.end == 3.0


def test_timeline_finish_without_events() -> None:
    """Test that finishing an empty timeline only sets the end."""
    timeline = make_timeline()
    timeline.finish()
    assert timeline.start is None
    assert timeline.end == 1.0


def test_timeline_connect_error_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    """Test that a failed connect attempt is logged and recorded."""
    timeline = make_timeline()
    with caplog.at_level(logging.DEBUG, logger="tracedhttp.tracing.hooks"):
        timeline.client_trace().fire(
            "connect_done", "10.0.0.1", 80, ConnectionRefusedError("refused")
        )
    assert timeline.connect_done == 1.0
    assert "connection to 10.0.0.1:80 failed: refused" in caplog.text
