r"""HTTP client with shared per-client configuration.

A :class:`Client` holds the headers and the host override applied to every
request it issues, and exposes one method per HTTP verb. Requests are sent
through an execution pool shared by any number of clients.
"""

from __future__ import annotations

__all__ = ["Client"]

import logging
from typing import TYPE_CHECKING

import httpx

from tracedhttp.core.config import ClientConfig
from tracedhttp.exceptions import RequestBuildError
from tracedhttp.executor import HttpResult, RequestExecutor
from tracedhttp.utils.headers import basic_auth_value, encode_params, normalize_header_name
from tracedhttp.utils.net import is_valid_host
from tracedhttp.utils.rwlock import ReadWriteLock

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence
    from typing import Self

    from tracedhttp.tracing.sink import DiagnosticSink
    from tracedhttp.worker import ExecutionPool

    Params = Mapping[str, str | Sequence[str]]

logger: logging.Logger = logging.getLogger(__name__)


class Client:
    r"""HTTP client applying shared headers and host override to every
    request.

    Configuration methods return the client so calls can be chained. They
    are safe to call while other threads issue requests through the same
    client: configuration changes are exclusive, while any number of
    requests may read the configuration at the same time. The lock is never
    held during network I/O.

    Args:
        worker: The execution pool sending the requests.
        timeout: Deadline in seconds for each request, including the
            response body read. Overrides ``config.timeout``.
        trace: Whether to emit a timing record per request. Overrides
            ``config.trace``. The default sink logs the records at
            ``DEBUG`` on the ``tracedhttp.trace`` logger, which drops them
            until logging is configured, e.g. with
            :func:`~tracedhttp.utils.structured_logging.configure_logging`.
        config: Optional base configuration.
        sink: Destination of the timing records. Defaults to a
            :class:`~tracedhttp.tracing.LoggingSink`.

    Example:
        ```pycon
        >>> from tracedhttp import Client, Worker
        >>> with Worker(max_workers=10) as worker:  # doctest: +SKIP
        ...     client = Client(worker, timeout=15.0, trace=True)
        ...     client.set_basic_auth("scott", "fine").set_header("x-request-source", "batch")
        ...     content, status_code = client.get("https://api.example.com/data", {"page": "1"})
        ...

        ```
    """

    def __init__(
        self,
        worker: ExecutionPool,
        timeout: float | None = None,
        trace: bool | None = None,
        *,
        config: ClientConfig | None = None,
        sink: DiagnosticSink | None = None,
    ) -> None:
        self._config = (config if config is not None else ClientConfig()).merge(
            timeout=timeout, trace=trace
        )
        self._executor = RequestExecutor(
            worker, timeout=self._config.timeout, trace=self._config.trace, sink=sink
        )
        self._lock = ReadWriteLock()
        self._headers = {
            normalize_header_name(name): value for name, value in self._config.headers.items()
        }
        self._host = self._config.host

    @property
    def config(self) -> ClientConfig:
        return self._config

    @property
    def headers(self) -> dict[str, str]:
        """A copy of the headers sent with every request."""
        with self._lock.read():
            return dict(self._headers)

    @property
    def host(self) -> str:
        """The ``Host`` header override, empty if none."""
        with self._lock.read():
            return self._host

    def set_basic_auth(self, username: str, password: str) -> Self:
        """Send basic authentication credentials with every request.

        Args:
            username: The user name.
            password: The password.

        Returns:
            The client.
        """
        value = basic_auth_value(username, password)
        with self._lock.write():
            self._headers["Authorization"] = value
        return self

    def set_header(self, name: str, value: str) -> Self:
        """Send a header with every request.

        The name is normalized (``x-custom-header`` becomes
        ``X-Custom-Header``) and any previous value is replaced.

        Args:
            name: The header name.
            value: The header value.

        Returns:
            The client.
        """
        name = normalize_header_name(name)
        with self._lock.write():
            self._headers[name] = value
        return self

    def set_host(self, host: str) -> Self:
        """Override the ``Host`` header of every request.

        The connection is still made to the host of the request URL. An
        empty string removes the override.

        Args:
            host: The host sent to the server.

        Returns:
            The client.
        """
        with self._lock.write():
            self._host = host
        return self

    def get(self, url: str, params: Params | None = None) -> HttpResult:
        """Send a GET request, with ``params`` added to the query string.

        Args:
            url: The URL to send the request to.
            params: Optional query parameters.

        Returns:
            The response body and status code.

        Raises:
            HttpRequestError: If the request could not be built or completed.
        """
        return self._send("GET", url, params)

    def post(self, url: str, params: Params | None = None) -> HttpResult:
        """Send a POST request with ``params`` as a URL-encoded form body.

        Args:
            url: The URL to send the request to.
            params: Optional form parameters.

        Returns:
            The response body and status code.

        Raises:
            HttpRequestError: If the request could not be built or completed.
        """
        return self._send("POST", url, params)

    def put(self, url: str, params: Params | None = None) -> HttpResult:
        """Send a PUT request with ``params`` as a URL-encoded form body."""
        return self._send("PUT", url, params)

    def delete(self, url: str, params: Params | None = None) -> HttpResult:
        """Send a DELETE request with ``params`` as a URL-encoded form body."""
        return self._send("DELETE", url, params)

    def _send(self, method: str, url: str, params: Params | None) -> HttpResult:
        request, param = self._build_request(method, url, params)
        with self._lock.read():
            headers = dict(self._headers)
            host = self._host
        return self._executor.resolve(request, param=param, headers=headers, host=host)

    def _build_request(
        self, method: str, url: str, params: Params | None
    ) -> tuple[httpx.Request, str]:
        try:
            param = encode_params(params)
            if method == "GET":
                request = httpx.Request(method, url, params=params or None)
            else:
                request = httpx.Request(method, url, content=param.encode())
        except (httpx.InvalidURL, TypeError, ValueError) as exc:
            logger.debug(f"could not build {method} request to {url}: {exc}")
            raise RequestBuildError(
                method=method,
                url=url,
                message=f"invalid {method} request to {url}: {exc}",
                cause=exc,
            ) from exc
        if request.url.scheme not in ("http", "https") or not request.url.host:
            msg = f"invalid {method} request to {url}: an absolute http(s) URL is required"
            raise RequestBuildError(method=method, url=url, message=msg)
        if not is_valid_host(request.url.raw_host.decode("ascii", errors="replace")):
            msg = f"invalid {method} request to {url}: invalid host name {request.url.host!r}"
            raise RequestBuildError(method=method, url=url, message=msg)
        return request, param
