r"""Connection lifecycle hooks and the per-request timestamp sequence.

A :class:`ClientTrace` is a set of optional callbacks fired by the transport
at phase boundaries of a request: DNS resolution, TCP connect, connection
ready, first response byte. A :class:`Timeline` records the instants of those
boundaries for exactly one request.
"""

from __future__ import annotations

__all__ = ["TRACE_EXTENSION", "ClientTrace", "Timeline"]

import logging
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Callable

logger: logging.Logger = logging.getLogger(__name__)

# Key of the httpx request extension carrying a ClientTrace
TRACE_EXTENSION = "client_trace"


@dataclass
class ClientTrace:
    r"""Callbacks fired during the lifecycle of one request.

    Every slot is optional. The transport calls them from the thread that
    executes the request.

    Attributes:
        dns_start: Called with the host name before it is resolved.
        dns_done: Called with the resolved addresses and the resolution
            error, if any.
        connect_start: Called with the address and port before a TCP
            connection attempt.
        connect_done: Called with the address, port and connect error,
            if any, when the attempt finishes.
        got_conn: Called when a connection, new or reused, is ready to
            send the request.
        got_first_response_byte: Called when the response head has been
            received.
    """

    dns_start: Callable[[str], None] | None = None
    dns_done: Callable[[list[str], Exception | None], None] | None = None
    connect_start: Callable[[str, int], None] | None = None
    connect_done: Callable[[str, int, Exception | None], None] | None = None
    got_conn: Callable[[], None] | None = None
    got_first_response_byte: Callable[[], None] | None = None

    def fire(self, hook: str, *args: Any) -> None:
        """Call the named hook if it is set.

        Args:
            hook: The slot name, e.g. ``"dns_start"``.
            *args: Arguments passed to the callback.
        """
        callback = getattr(self, hook)
        if callback is not None:
            callback(*args)


class Timeline:
    r"""Instants of the connection lifecycle of a single request.

    The instants are ``time.perf_counter()`` values and stay ``None`` while
    the matching event has not fired:

    - ``start``: DNS resolution started (t0)
    - ``dns_done``: DNS resolution finished (t1)
    - ``connect_done``: TCP connection established (t2)
    - ``conn_ready``: connection ready to send the request (t3)
    - ``first_byte``: response head received (t4)
    - ``end``: response body fully read (t5)

    Example:
        ```pycon
        >>> from tracedhttp.tracing.hooks import Timeline
        >>> timeline = Timeline()
        >>> trace = timeline.client_trace()
        >>> trace.fire("connect_start", "127.0.0.1", 80)
        >>> trace.fire("connect_done", "127.0.0.1", 80, None)
        >>> trace.fire("got_conn")
        >>> timeline.finish()
        >>> timeline.start == timeline.dns_done
        True

        ```
    """

    def __init__(self, clock: Callable[[], float] = time.perf_counter) -> None:
        self._clock = clock
        self.start: float | None = None
        self.dns_done: float | None = None
        self.connect_done: float | None = None
        self.conn_ready: float | None = None
        self.first_byte: float | None = None
        self.end: float | None = None

    def client_trace(self) -> ClientTrace:
        """Return the hooks recording into this timeline."""
        return ClientTrace(
            dns_start=self._on_dns_start,
            dns_done=self._on_dns_done,
            connect_start=self._on_connect_start,
            connect_done=self._on_connect_done,
            got_conn=self._on_got_conn,
            got_first_response_byte=self._on_first_byte,
        )

    def finish(self) -> None:
        """Record the end of the body read.

        When no DNS phase was observed the start falls back to the connect
        start, and to the connection-ready instant when no connection was
        dialled at all (reused keep-alive connection).
        """
        self.end = self._clock()
        if self.start is None:
            self.start = self.dns_done if self.dns_done is not None else self.conn_ready

    def _on_dns_start(self, host: str) -> None:
        self.start = self._clock()

    def _on_dns_done(self, addresses: list[str], error: Exception | None) -> None:
        self.dns_done = self._clock()

    def _on_connect_start(self, address: str, port: int) -> None:
        if self.dns_done is None:
            # connecting to an IP address
            self.dns_done = self._clock()

    def _on_connect_done(self, address: str, port: int, error: Exception | None) -> None:
        self.connect_done = self._clock()
        if error is not None:
            logger.debug(f"connection to {address}:{port} failed: {error}")

    def _on_got_conn(self) -> None:
        self.conn_ready = self._clock()

    def _on_first_byte(self) -> None:
        self.first_byte = self._clock()
