r"""Exceptions raised by tracedhttp.

Every failure of a request surfaces as a subclass of
:class:`HttpRequestError`. Non-success HTTP status codes are not errors: they
are returned to the caller as part of the result.
"""

from __future__ import annotations

__all__ = [
    "BodyReadError",
    "HttpRequestError",
    "RequestBuildError",
    "RequestTimeoutError",
    "TransportError",
]


class HttpRequestError(RuntimeError):
    r"""Base exception for a request that could not be completed.

    Args:
        method: The HTTP method of the failed request.
        url: The URL of the failed request.
        message: A descriptive error message.
        cause: The underlying exception, if any.

    Example:
        ```pycon
        >>> from tracedhttp import HttpRequestError
        >>> exc = HttpRequestError(method="GET", url="http://test.com", message="boom")
        >>> exc.method, exc.url
        ('GET', 'http://test.com')
        >>> str(exc)
        'boom'

        ```
    """

    def __init__(
        self,
        method: str,
        url: str,
        message: str,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.method = method
        self.url = url
        self.cause = cause


class RequestBuildError(HttpRequestError):
    r"""Raised when a request cannot be constructed (malformed URL or
    parameters).

    No network activity takes place and no trace record is emitted.
    """


class RequestTimeoutError(HttpRequestError):
    r"""Raised when the per-request deadline elapses before the response
    body has been fully read."""


class TransportError(HttpRequestError):
    r"""Raised on DNS, connect, TLS or protocol failures."""


class BodyReadError(HttpRequestError):
    r"""Raised when draining the response body fails after the headers
    were received."""
