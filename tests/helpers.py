r"""Shared test helpers: a local HTTP server and fake execution pools.

The local server answers on a few fixed routes:

- ``/get``, ``/post``, ``/put``, ``/delete``: ``200 success`` when the method
  matches the route and the ``key`` parameter (query string or form body)
  equals ``TEST_HELLO``, ``404`` otherwise.
- ``/auth``: ``200 success`` for basic credentials ``scott:fine``, ``401``
  otherwise.
- ``/headers``: the request headers as a JSON object, names as received.
- ``/sleep``: sleeps ``delay`` seconds (query parameter) before answering.
"""

from __future__ import annotations

__all__ = [
    "AUTH_PASSWORD",
    "AUTH_USER",
    "EXPECTED_KEY",
    "FailingStream",
    "HandlerCase",
    "RecordingHandler",
    "create_fake_worker",
    "start_server",
]

import base64
import json
import threading
import time
from dataclasses import dataclass
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import TYPE_CHECKING
from unittest.mock import Mock
from urllib.parse import parse_qs, urlsplit

import httpx

from tracedhttp import Worker

if TYPE_CHECKING:
    import ssl
    from collections.abc import Iterator

EXPECTED_KEY = "TEST_HELLO"
AUTH_USER = "scott"
AUTH_PASSWORD = "fine"  # noqa: S105


class RecordingHandler(BaseHTTPRequestHandler):
    protocol_version = "HTTP/1.1"

    def log_message(self, format: str, *args: object) -> None:  # noqa: A002
        pass

    def _write(self, status: int, body: bytes, headers: dict[str, str] | None = None) -> None:
        self.send_response(status)
        for name, value in (headers or {}).items():
            self.send_header(name, value)
        self.send_header("Content-Length", str(len(body)))
        self.end_headers()
        self.wfile.write(body)

    def _form(self) -> dict[str, list[str]]:
        form = parse_qs(urlsplit(self.path).query)
        length = int(self.headers.get("Content-Length") or 0)
        if length:
            form.update(parse_qs(self.rfile.read(length).decode()))
        return form

    def _dispatch(self) -> None:
        path = urlsplit(self.path).path
        form = self._form()
        if path in ("/get", "/post", "/put", "/delete"):
            self._check_method_and_key(path[1:].upper(), form)
        elif path == "/auth":
            self._check_basic_auth()
        elif path == "/headers":
            self._write(200, json.dumps(dict(self.headers.items())).encode())
        elif path == "/sleep":
            time.sleep(float(form.get("delay", ["1"])[0]))
            self._write(200, b"late")
        else:
            self._write(404, b"not found")

    def _check_method_and_key(self, method: str, form: dict[str, list[str]]) -> None:
        if self.command != method:
            self._write(404, b"method error")
            return
        key = form.get("key", [""])[0]
        if key != EXPECTED_KEY:
            self._write(404, f"param error ,request:{key}".encode())
            return
        self._write(200, b"success")

    def _check_basic_auth(self) -> None:
        auth = self.headers.get("Authorization", "")
        if auth.startswith("Basic "):
            user, _, password = base64.b64decode(auth[6:]).decode().partition(":")
            if user == AUTH_USER and password == AUTH_PASSWORD:
                self._write(200, b"success")
                return
        self._write(401, b"unauthorized", {"WWW-Authenticate": 'Basic realm="Restricted"'})

    do_GET = _dispatch  # noqa: N815
    do_POST = _dispatch  # noqa: N815
    do_PUT = _dispatch  # noqa: N815
    do_DELETE = _dispatch  # noqa: N815


class _QuietServer(ThreadingHTTPServer):
    daemon_threads = True

    def handle_error(self, request: object, client_address: object) -> None:
        # clients that gave up on /sleep close the socket under the handler
        pass


def start_server(
    ssl_context: ssl.SSLContext | None = None,
) -> tuple[ThreadingHTTPServer, str]:
    """Start the local server on a free port.

    Args:
        ssl_context: If set, the server speaks HTTPS with this context.

    Returns:
        The server and its base URL.
    """
    server = _QuietServer(("127.0.0.1", 0), RecordingHandler)
    scheme = "http"
    if ssl_context is not None:
        server.socket = ssl_context.wrap_socket(server.socket, server_side=True)
        scheme = "https"
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    host, port = server.server_address[:2]
    return server, f"{scheme}://{host}:{port}"


@dataclass
class HandlerCase:
    """A verb of the client and the route accepting it.

    Attributes:
        method: The HTTP method name.
        client_method: The Client method name.
        path: The route expecting this method.
    """

    method: str
    client_method: str
    path: str


class FailingStream(httpx.SyncByteStream):
    """Response stream yielding one chunk then failing like a reset
    connection."""

    def __init__(self) -> None:
        self.closed = False

    def __iter__(self) -> Iterator[bytes]:
        yield b"partial"
        msg = "connection reset by peer"
        raise httpx.ReadError(msg)

    def close(self) -> None:
        self.closed = True


def create_fake_worker(
    status_code: int = 200,
    content: bytes = b"success",
    error: Exception | None = None,
) -> Mock:
    """Create a Mock worker answering every request synchronously.

    Args:
        status_code: The status of the fake response.
        content: The body of the fake response.
        error: If set, the callback receives this transport error instead
            of a response.

    Returns:
        A Mock with the Worker interface.
    """

    def execute(request: httpx.Request, callback: object, *, timeout: float) -> None:
        if error is not None:
            callback(None, error)
            return
        callback(httpx.Response(status_code, content=content, request=request), None)

    return Mock(spec=Worker, execute=Mock(side_effect=execute))
