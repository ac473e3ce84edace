r"""httpx transport firing connection lifecycle hooks.

httpx does not expose connection-level events itself. This module provides
two cooperating pieces:

- :class:`TracingNetworkBackend` wraps httpcore's synchronous network backend,
  resolves host names itself and fires the DNS and connect hooks.
- :class:`TracingTransport` runs an ``httpcore.ConnectionPool`` on that
  backend. It binds the ``ClientTrace`` found in the request extensions to
  the current context while the request is dispatched, and translates
  httpcore's ``trace`` extension events into the connection-ready and
  first-byte hooks.

Example:
    ```python
    import httpx

    from tracedhttp.tracing import ClientTrace, TracingTransport

    trace = ClientTrace(got_conn=lambda: print("connection ready"))
    with httpx.Client(transport=TracingTransport()) as client:
        request = client.build_request("GET", "https://example.com")
        request.extensions["client_trace"] = trace
        client.send(request)
    ```
"""

from __future__ import annotations

__all__ = ["TracingNetworkBackend", "TracingTransport"]

import contextvars
import ipaddress
import logging
import socket
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import httpcore
import httpx

from tracedhttp.tracing.hooks import TRACE_EXTENSION, ClientTrace

if TYPE_CHECKING:
    import ssl
    from collections.abc import Generator, Iterable, Iterator

logger: logging.Logger = logging.getLogger(__name__)

_active_trace: contextvars.ContextVar[ClientTrace | None] = contextvars.ContextVar(
    "active_client_trace", default=None
)

DEFAULT_LIMITS = httpx.Limits(max_connections=100, max_keepalive_connections=20)


def _is_ip_address(host: str) -> bool:
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return False
    return True


@contextmanager
def _map_httpcore_exceptions() -> Generator[None, None, None]:
    """Re-raise httpcore exceptions as the httpx exception of the same
    name."""
    try:
        yield
    except Exception as exc:
        for klass in type(exc).__mro__:
            if klass.__module__.startswith("httpcore") and hasattr(httpx, klass.__name__):
                mapped = getattr(httpx, klass.__name__)
                raise mapped(str(exc)) from exc
        raise


class TracingNetworkBackend(httpcore.NetworkBackend):
    r"""Network backend firing the DNS and connect hooks of the active
    trace.

    Without an active trace every call is delegated unchanged.

    Args:
        backend: The wrapped backend. Defaults to ``httpcore.SyncBackend``.
    """

    def __init__(self, backend: httpcore.NetworkBackend | None = None) -> None:
        self._backend = backend or httpcore.SyncBackend()

    def connect_tcp(
        self,
        host: str,
        port: int,
        timeout: float | None = None,
        local_address: str | None = None,
        socket_options: Iterable[Any] | None = None,
    ) -> httpcore.NetworkStream:
        trace = _active_trace.get()
        if trace is None:
            return self._backend.connect_tcp(
                host,
                port,
                timeout=timeout,
                local_address=local_address,
                socket_options=socket_options,
            )

        addresses = [host] if _is_ip_address(host) else self._resolve(host, port, trace)
        last_error: Exception | None = None
        for address in addresses:
            trace.fire("connect_start", address, port)
            try:
                stream = self._backend.connect_tcp(
                    address,
                    port,
                    timeout=timeout,
                    local_address=local_address,
                    socket_options=socket_options,
                )
            except (httpcore.ConnectError, httpcore.ConnectTimeout) as exc:
                trace.fire("connect_done", address, port, exc)
                last_error = exc
                continue
            trace.fire("connect_done", address, port, None)
            return stream
        raise last_error or httpcore.ConnectError(f"no address to connect to for {host}")

    def connect_unix_socket(
        self,
        path: str,
        timeout: float | None = None,
        socket_options: Iterable[Any] | None = None,
    ) -> httpcore.NetworkStream:
        return self._backend.connect_unix_socket(
            path, timeout=timeout, socket_options=socket_options
        )

    def sleep(self, seconds: float) -> None:
        self._backend.sleep(seconds)

    def _resolve(self, host: str, port: int, trace: ClientTrace) -> list[str]:
        trace.fire("dns_start", host)
        try:
            infos = socket.getaddrinfo(host, port, type=socket.SOCK_STREAM)
        except OSError as exc:
            trace.fire("dns_done", [], exc)
            raise httpcore.ConnectError(f"failed to resolve {host}: {exc}") from exc
        addresses = list(dict.fromkeys(info[4][0] for info in infos))
        trace.fire("dns_done", addresses, None)
        return addresses


class _TraceEventAdapter:
    """Translate httpcore ``trace`` extension events into ClientTrace hooks."""

    def __init__(self, trace: ClientTrace) -> None:
        self._trace = trace

    def __call__(self, event_name: str, info: dict[str, Any]) -> None:
        if event_name.endswith(".send_request_headers.started"):
            self._trace.fire("got_conn")
        elif event_name.endswith(".receive_response_headers.complete"):
            self._trace.fire("got_first_response_byte")


class _ResponseStream(httpx.SyncByteStream):
    def __init__(self, stream: Iterable[bytes]) -> None:
        self._stream = stream

    def __iter__(self) -> Iterator[bytes]:
        with _map_httpcore_exceptions():
            yield from self._stream

    def close(self) -> None:
        if hasattr(self._stream, "close"):
            self._stream.close()


class TracingTransport(httpx.BaseTransport):
    r"""httpx transport firing the hooks of the request's ClientTrace.

    The trace is read from ``request.extensions["client_trace"]``. Requests
    without one are sent without instrumentation.

    Args:
        verify: TLS verification, as accepted by ``httpx.create_ssl_context``.
        limits: Connection limits of the underlying pool.
        network_backend: The backend to wrap. Defaults to
            ``httpcore.SyncBackend``.
    """

    def __init__(
        self,
        *,
        verify: ssl.SSLContext | str | bool = True,
        limits: httpx.Limits = DEFAULT_LIMITS,
        network_backend: httpcore.NetworkBackend | None = None,
    ) -> None:
        self._pool = httpcore.ConnectionPool(
            ssl_context=httpx.create_ssl_context(verify=verify),
            max_connections=limits.max_connections,
            max_keepalive_connections=limits.max_keepalive_connections,
            keepalive_expiry=limits.keepalive_expiry,
            network_backend=TracingNetworkBackend(network_backend),
        )

    def handle_request(self, request: httpx.Request) -> httpx.Response:
        assert isinstance(request.stream, httpx.SyncByteStream)  # noqa: S101

        trace = request.extensions.get(TRACE_EXTENSION)
        extensions = {k: v for k, v in request.extensions.items() if k != TRACE_EXTENSION}
        if trace is not None:
            extensions["trace"] = _TraceEventAdapter(trace)

        core_request = httpcore.Request(
            method=request.method,
            url=httpcore.URL(
                scheme=request.url.raw_scheme,
                host=request.url.raw_host,
                port=request.url.port,
                target=request.url.raw_path,
            ),
            headers=request.headers.raw,
            content=request.stream,
            extensions=extensions,
        )
        token = _active_trace.set(trace)
        try:
            with _map_httpcore_exceptions():
                core_response = self._pool.handle_request(core_request)
        finally:
            _active_trace.reset(token)

        return httpx.Response(
            status_code=core_response.status,
            headers=core_response.headers,
            stream=_ResponseStream(core_response.stream),
            extensions=core_response.extensions,
        )

    def close(self) -> None:
        self._pool.close()
