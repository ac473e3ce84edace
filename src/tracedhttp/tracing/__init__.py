r"""Connection lifecycle tracing: hooks, timing records, sinks and the
instrumented httpx transport."""

from __future__ import annotations

__all__ = [
    "DURATION_FIELDS",
    "TRACE_EXTENSION",
    "ClientTrace",
    "DiagnosticSink",
    "LoggingSink",
    "Timeline",
    "TraceRecord",
    "TracingNetworkBackend",
    "TracingTransport",
    "format_duration",
]

from tracedhttp.tracing.hooks import TRACE_EXTENSION, ClientTrace, Timeline
from tracedhttp.tracing.record import DURATION_FIELDS, TraceRecord, format_duration
from tracedhttp.tracing.sink import DiagnosticSink, LoggingSink
from tracedhttp.tracing.transport import TracingNetworkBackend, TracingTransport
