r"""Bounded execution pool sending HTTP requests.

The client does not send requests itself. It hands every request to an
:class:`ExecutionPool` together with a completion callback and a timeout.
:class:`Worker` is the default pool: a fixed number of threads sharing one
``httpx.Client`` built on the tracing transport.
"""

from __future__ import annotations

__all__ = ["ExecutionPool", "ResponseCallback", "Worker"]

import logging
import time
from collections.abc import Callable
from concurrent import futures
from typing import TYPE_CHECKING, Protocol

import httpx

from tracedhttp.core.config import DEFAULT_MAX_WORKERS
from tracedhttp.core.validation import validate_max_workers, validate_timeout
from tracedhttp.exceptions import RequestTimeoutError
from tracedhttp.tracing.transport import TracingTransport

if TYPE_CHECKING:
    import ssl
    from types import TracebackType
    from typing import Self

ResponseCallback = Callable[[httpx.Response | None, Exception | None], None]

logger: logging.Logger = logging.getLogger(__name__)


class ExecutionPool(Protocol):
    r"""Executes requests with bounded concurrency.

    Implementations call ``callback`` at most once per submission, with
    either the response or the transport error, and propagate any exception
    raised by the callback to the caller of :meth:`execute`. The call blocks
    until the callback returned or ``timeout`` seconds elapsed.
    """

    def execute(
        self,
        request: httpx.Request,
        callback: ResponseCallback,
        *,
        timeout: float,
    ) -> None:
        """Send ``request`` and pass the outcome to ``callback``."""


class Worker:
    r"""Thread pool executing HTTP requests.

    At most ``max_workers`` requests run at the same time. When all threads
    are busy, new submissions wait in the queue; a submission whose deadline
    expires before a thread picks it up is dropped without being sent.

    Args:
        max_workers: Maximum number of requests executed in parallel.
            Must be > 0.
        client: Optional ``httpx.Client`` used to send requests. If ``None``,
            a client on :class:`~tracedhttp.tracing.TracingTransport` is
            created and closed with the worker. That client ignores proxy
            environment variables.
        verify: TLS verification of the default client.

    Example:
        ```pycon
        >>> from tracedhttp import Client, Worker
        >>> with Worker(max_workers=4) as worker:  # doctest: +SKIP
        ...     client = Client(worker, timeout=5.0)
        ...     result = client.get("https://api.example.com/data")
        ...

        ```
    """

    def __init__(
        self,
        max_workers: int = DEFAULT_MAX_WORKERS,
        *,
        client: httpx.Client | None = None,
        verify: ssl.SSLContext | str | bool = True,
    ) -> None:
        validate_max_workers(max_workers)
        self._max_workers = max_workers
        self._executor = futures.ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="tracedhttp-worker"
        )
        self._owns_client = client is None
        # proxy mounts from the environment would bypass the tracing transport
        self._client = client or httpx.Client(
            transport=TracingTransport(verify=verify), trust_env=False
        )

    @property
    def max_workers(self) -> int:
        return self._max_workers

    def __enter__(self) -> Self:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Wait for running requests, then release the threads and the
        owned HTTP client."""
        self._executor.shutdown(wait=True)
        if self._owns_client:
            self._client.close()

    def execute(
        self,
        request: httpx.Request,
        callback: ResponseCallback,
        *,
        timeout: float,
    ) -> None:
        """Send ``request`` on a pool thread and pass the outcome to
        ``callback``.

        Args:
            request: The request to send.
            callback: Receives ``(response, None)`` or ``(None, error)``.
                The response is closed once the callback returns.
            timeout: Deadline in seconds for queueing, sending and the
                callback together. Must be > 0.

        Raises:
            RequestTimeoutError: If the deadline elapsed.
            Exception: Whatever the callback raised.
        """
        validate_timeout(timeout)
        deadline = time.monotonic() + timeout
        future = self._executor.submit(self._run, request, callback, deadline)
        try:
            future.result(timeout=timeout)
        except futures.TimeoutError as exc:
            future.cancel()
            raise RequestTimeoutError(
                method=request.method,
                url=str(request.url),
                message=f"{request.method} request to {request.url} timed out after {timeout}s",
                cause=exc,
            ) from exc

    def _run(
        self,
        request: httpx.Request,
        callback: ResponseCallback,
        deadline: float,
    ) -> None:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise RequestTimeoutError(
                method=request.method,
                url=str(request.url),
                message=(
                    f"{request.method} request to {request.url} timed out "
                    "while waiting for a free worker"
                ),
            )
        request.extensions["timeout"] = httpx.Timeout(remaining).as_dict()
        try:
            response = self._client.send(request, stream=True)
        except httpx.HTTPError as exc:
            logger.debug(f"{request.method} request to {request.url} failed: {exc}")
            callback(None, exc)
            return
        try:
            callback(response, None)
        finally:
            response.close()
