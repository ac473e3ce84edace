r"""Timing record derived from the connection lifecycle of one request."""

from __future__ import annotations

__all__ = ["DURATION_FIELDS", "TraceRecord", "format_duration"]

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from tracedhttp.tracing.hooks import Timeline

DURATION_FIELDS = (
    "dns_lookup",
    "tcp_connection",
    "tls_handshake",
    "server_processing",
    "content_transfer",
    "name_lookup",
    "connect",
    "pre_transfer",
    "start_transfer",
    "total",
)


def _span(earlier: float | None, later: float | None) -> float:
    if earlier is None or later is None:
        return 0.0
    return max(later - earlier, 0.0)


def _trim(number: str) -> str:
    return number.rstrip("0").rstrip(".") if "." in number else number


def format_duration(seconds: float) -> str:
    """Format a duration with the largest unit that fits, e.g. ``1m30s``.

    Args:
        seconds: The duration in seconds.

    Returns:
        A compact human-readable string.

    Example:
        ```pycon
        >>> from tracedhttp.tracing.record import format_duration
        >>> format_duration(0)
        '0s'
        >>> format_duration(0.0015)
        '1.5ms'
        >>> format_duration(90)
        '1m30s'

        ```
    """
    nanos = round(seconds * 1e9)
    if nanos < 0:
        return "-" + format_duration(-seconds)
    if nanos == 0:
        return "0s"
    if nanos < 1_000:
        return f"{nanos}ns"
    if nanos < 1_000_000:
        return _trim(f"{nanos / 1e3:.3f}") + "µs"
    if nanos < 1_000_000_000:
        return _trim(f"{nanos / 1e6:.6f}") + "ms"
    hours, rest = divmod(nanos, 3_600_000_000_000)
    minutes, rest = divmod(rest, 60_000_000_000)
    text = _trim(f"{rest / 1e9:.9f}") + "s"
    if hours or minutes:
        text = f"{minutes}m{text}"
    if hours:
        text = f"{hours}h{text}"
    return text


@dataclass
class TraceRecord:
    r"""Latency breakdown of a single request.

    Durations are in seconds. Phases whose boundaries were not observed are
    reported as zero.

    Attributes:
        url: The requested URL.
        method: The HTTP method.
        body: The response body as text (empty when the request failed).
        param: The URL-encoded request parameters.
        dns_lookup: DNS resolution.
        tcp_connection: TCP connect. For plain HTTP this also covers the time
            until the connection is ready to send.
        tls_handshake: TLS handshake. Always zero for plain HTTP.
        server_processing: From sending the request to the response head.
        content_transfer: Reading the response body.
        name_lookup: Cumulative time until DNS resolution finished.
        connect: Cumulative time until the connection was established.
        pre_transfer: Cumulative time until the request could be sent.
        start_transfer: Cumulative time until the response head arrived.
        total: Cumulative time until the body was fully read.
    """

    url: str
    method: str
    body: str = ""
    param: str = ""
    dns_lookup: float = 0.0
    tcp_connection: float = 0.0
    tls_handshake: float = 0.0
    server_processing: float = 0.0
    content_transfer: float = 0.0
    name_lookup: float = 0.0
    connect: float = 0.0
    pre_transfer: float = 0.0
    start_transfer: float = 0.0
    total: float = 0.0

    @classmethod
    def from_timeline(
        cls,
        timeline: Timeline,
        *,
        url: str,
        method: str,
        scheme: str,
        body: str = "",
        param: str = "",
    ) -> TraceRecord:
        """Compute the durations of a finished request.

        Without TLS no handshake instant exists between the connect and the
        connection becoming ready, so that interval is reported as part of
        the TCP connection phase.

        Args:
            timeline: The instants recorded during the request.
            url: The requested URL.
            method: The HTTP method.
            scheme: The URL scheme, ``"http"`` or ``"https"``.
            body: The response body as text.
            param: The URL-encoded request parameters.

        Returns:
            The timing record.
        """
        t0, t1, t2 = timeline.start, timeline.dns_done, timeline.connect_done
        t3, t4, t5 = timeline.conn_ready, timeline.first_byte, timeline.end
        record = cls(
            url=url,
            method=method,
            body=body,
            param=param,
            dns_lookup=_span(t0, t1),
            server_processing=_span(t3, t4),
            content_transfer=_span(t4, t5),
            name_lookup=_span(t0, t1),
            pre_transfer=_span(t0, t3),
            start_transfer=_span(t0, t4),
            total=_span(t0, t5),
        )
        if scheme == "https":
            record.tcp_connection = _span(t1, t2)
            record.tls_handshake = _span(t2, t3)
            record.connect = _span(t0, t2)
        else:
            record.tcp_connection = _span(t1, t3)
            record.connect = _span(t0, t3)
        return record

    def to_fields(self) -> dict[str, str]:
        """Return the record as flat log fields with formatted durations."""
        fields = {
            "url": self.url,
            "method": self.method,
            "param": self.param,
            "body": self.body,
        }
        for name in DURATION_FIELDS:
            fields[name] = format_duration(getattr(self, name))
        return fields
