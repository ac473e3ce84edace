r"""tracedhttp - HTTP client facade with connection lifecycle timing.

This package provides an HTTP client that sends every request through a
shared, bounded execution pool and can measure the network lifecycle of each
request. Built on top of httpx and httpcore, it lets services that issue many
outbound calls share per-client configuration and get structured latency
diagnostics without instrumenting every call site.

Key Features:
    - GET, POST, PUT and DELETE with URL-encoded parameters
    - Shared headers, basic authentication and ``Host`` override, safe to
      update while requests are in flight
    - Bounded thread pool with a per-request deadline covering the body read
    - Optional timing breakdown per request: DNS lookup, TCP connection,
      TLS handshake, server processing and content transfer
    - Timing records emitted as structured (JSON) log records

Example:
    ```pycon
    >>> from tracedhttp import Client, Worker
    >>> from tracedhttp.utils.structured_logging import configure_logging
    >>> configure_logging()  # doctest: +SKIP
    >>> with Worker(max_workers=10) as worker:  # doctest: +SKIP
    ...     client = Client(worker, timeout=5.0, trace=True)
    ...     client.set_header("x-api-key", "secret")
    ...     content, status_code = client.post(
    ...         "https://api.example.com/items", {"name": "widget"}
    ...     )
    ...

    ```
"""

from __future__ import annotations

__all__ = [
    "BodyReadError",
    "Client",
    "ClientConfig",
    "HttpRequestError",
    "HttpResult",
    "RequestBuildError",
    "RequestExecutor",
    "RequestTimeoutError",
    "TransportError",
    "Worker",
    "__version__",
]

from importlib.metadata import PackageNotFoundError, version

from tracedhttp.client import Client
from tracedhttp.core.config import ClientConfig
from tracedhttp.exceptions import (
    BodyReadError,
    HttpRequestError,
    RequestBuildError,
    RequestTimeoutError,
    TransportError,
)
from tracedhttp.executor import HttpResult, RequestExecutor
from tracedhttp.worker import Worker

try:
    __version__ = version(__name__)
except PackageNotFoundError:  # pragma: no cover
    # Package is not installed, fallback if needed
    __version__ = "0.0.0"
