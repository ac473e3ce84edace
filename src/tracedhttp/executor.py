r"""Dispatch of built requests through an execution pool.

The :class:`RequestExecutor` applies the shared headers and host override to
a request, submits it to the pool with a deadline, drains the response body
and, when tracing is enabled, emits one timing record per request.
"""

from __future__ import annotations

__all__ = ["HttpResult", "RequestExecutor"]

import logging
import time
from typing import TYPE_CHECKING, NamedTuple

import httpx

from tracedhttp.core.config import (
    DEFAULT_TIMEOUT,
    FORM_CONTENT_TYPE,
    FORM_METHODS,
)
from tracedhttp.core.validation import validate_timeout
from tracedhttp.exceptions import (
    BodyReadError,
    HttpRequestError,
    RequestTimeoutError,
    TransportError,
)
from tracedhttp.tracing.hooks import TRACE_EXTENSION, Timeline
from tracedhttp.tracing.record import TraceRecord
from tracedhttp.tracing.sink import LoggingSink

if TYPE_CHECKING:
    from collections.abc import Mapping

    from tracedhttp.tracing.sink import DiagnosticSink
    from tracedhttp.worker import ExecutionPool

logger: logging.Logger = logging.getLogger(__name__)


class HttpResult(NamedTuple):
    r"""Outcome of a completed request.

    Attributes:
        content: The full response body.
        status_code: The HTTP status code. Any status, including 4xx and
            5xx, is a valid result.
    """

    content: bytes
    status_code: int

    @property
    def text(self) -> str:
        """The response body decoded as UTF-8."""
        return self.content.decode("utf-8", errors="replace")


class RequestExecutor:
    r"""Send requests through an execution pool within a deadline.

    Args:
        worker: The pool executing the requests.
        timeout: Deadline in seconds for each request, including the
            response body read. Must be > 0.
        trace: Whether to record the connection lifecycle of each request
            and emit a :class:`~tracedhttp.tracing.TraceRecord`.
        sink: Destination of the timing records. Defaults to a
            :class:`~tracedhttp.tracing.LoggingSink`.
    """

    def __init__(
        self,
        worker: ExecutionPool,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        trace: bool = False,
        sink: DiagnosticSink | None = None,
    ) -> None:
        validate_timeout(timeout)
        self._worker = worker
        self._timeout = timeout
        self._trace = trace
        self._sink = sink or LoggingSink()

    @property
    def timeout(self) -> float:
        return self._timeout

    @property
    def trace(self) -> bool:
        return self._trace

    def resolve(
        self,
        request: httpx.Request,
        *,
        param: str = "",
        headers: Mapping[str, str] | None = None,
        host: str = "",
    ) -> HttpResult:
        """Send a request and return its body and status code.

        Args:
            request: The request to send.
            param: The URL-encoded request parameters, echoed in the timing
                record.
            headers: Headers set on the request, replacing existing values.
            host: If not empty, the ``Host`` header sent to the server.

        Returns:
            The response body and status code.

        Raises:
            RequestTimeoutError: If the deadline elapsed.
            TransportError: If the request could not be sent.
            BodyReadError: If the response body could not be read.
        """
        timeline = None
        if self._trace:
            timeline = Timeline()
            request.extensions[TRACE_EXTENSION] = timeline.client_trace()

        result: HttpResult | None = None
        try:
            result = self._dispatch(request, headers=headers, host=host, timeline=timeline)
        finally:
            if timeline is not None:
                self._emit_trace(request, timeline, param=param, result=result)
        return result

    def _dispatch(
        self,
        request: httpx.Request,
        *,
        headers: Mapping[str, str] | None,
        host: str,
        timeline: Timeline | None,
    ) -> HttpResult:
        deadline = time.monotonic() + self._timeout
        for name, value in (headers or {}).items():
            request.headers[name] = value
        if host:
            request.headers["Host"] = host
        if request.method in FORM_METHODS and "Content-Type" not in request.headers:
            request.headers["Content-Type"] = FORM_CONTENT_TYPE

        outcome: list[HttpResult] = []

        def on_response(response: httpx.Response | None, error: Exception | None) -> None:
            if error is not None:
                raise error
            try:
                status_code = response.status_code
                content = self._read_body(request, response, deadline)
            finally:
                response.close()
                if timeline is not None:
                    timeline.finish()
            outcome.append(HttpResult(content=content, status_code=status_code))

        try:
            self._worker.execute(request, on_response, timeout=self._timeout)
        except HttpRequestError:
            raise
        except httpx.TimeoutException as exc:
            raise RequestTimeoutError(
                method=request.method,
                url=str(request.url),
                message=f"{request.method} request to {request.url} timed out: {exc}",
                cause=exc,
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportError(
                method=request.method,
                url=str(request.url),
                message=f"{request.method} request to {request.url} failed: {exc}",
                cause=exc,
            ) from exc
        return outcome[0]

    def _read_body(
        self, request: httpx.Request, response: httpx.Response, deadline: float
    ) -> bytes:
        chunks = []
        try:
            for chunk in response.iter_bytes():
                chunks.append(chunk)
                if time.monotonic() > deadline:
                    raise RequestTimeoutError(
                        method=request.method,
                        url=str(request.url),
                        message=(
                            f"{request.method} request to {request.url} timed out "
                            "while reading the response body"
                        ),
                    )
        except httpx.TimeoutException as exc:
            raise RequestTimeoutError(
                method=request.method,
                url=str(request.url),
                message=f"{request.method} request to {request.url} timed out: {exc}",
                cause=exc,
            ) from exc
        except (httpx.HTTPError, httpx.StreamError) as exc:
            raise BodyReadError(
                method=request.method,
                url=str(request.url),
                message=f"failed to read the response body of {request.method} {request.url}: {exc}",
                cause=exc,
            ) from exc
        return b"".join(chunks)

    def _emit_trace(
        self,
        request: httpx.Request,
        timeline: Timeline,
        *,
        param: str,
        result: HttpResult | None,
    ) -> None:
        record = TraceRecord.from_timeline(
            timeline,
            url=str(request.url),
            method=request.method,
            scheme=request.url.scheme,
            body=result.text if result is not None else "",
            param=param,
        )
        try:
            self._sink.emit(record)
        except Exception:
            logger.exception(f"failed to emit the trace record of {request.method} {request.url}")
