r"""JSON log output for timing records and package diagnostics.

Timing records travel as ordinary log records whose fields are attached
through ``extra``. :class:`StructuredFormatter` turns each of them into a
single JSON line, ready for a log shipper.

The package never installs handlers on import. Applications either call
:func:`configure_logging` at startup or attach :class:`StructuredFormatter`
to handlers of their own.

Example:
    ```python
    import logging

    from tracedhttp import Client, Worker
    from tracedhttp.utils.structured_logging import (
        clear_correlation_id,
        configure_logging,
        set_correlation_id,
    )

    configure_logging(level=logging.DEBUG)
    with Worker(max_workers=10) as worker:
        client = Client(worker, timeout=5.0, trace=True)
        set_correlation_id("job-42")
        try:
            client.get("https://api.example.com/data")
        finally:
            clear_correlation_id()
    ```
"""

from __future__ import annotations

__all__ = [
    "StructuredFormatter",
    "clear_correlation_id",
    "configure_logging",
    "get_correlation_id",
    "log_structured",
    "set_correlation_id",
]

import contextvars
import json
import logging
import sys
from datetime import datetime, timezone
from typing import IO, Any

_correlation_id: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "tracedhttp_correlation_id", default=None
)

# Attributes set by logging.LogRecord itself, never by ``extra``
_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime"}

# Marks handlers installed by configure_logging
_HANDLER_MARK = "_tracedhttp_handler"


def get_correlation_id() -> str | None:
    """Return the correlation ID of the current context, if any."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str) -> None:
    """Tag the log records of the current context with an identifier.

    The value lives in a context variable: requests issued from other
    threads are not tagged.

    Args:
        correlation_id: Identifier of the surrounding unit of work, e.g. a
            job or an inbound request ID.

    Example:
        ```pycon
        >>> from tracedhttp.utils.structured_logging import (
        ...     clear_correlation_id,
        ...     get_correlation_id,
        ...     set_correlation_id,
        ... )
        >>> set_correlation_id("job-42")
        >>> get_correlation_id()
        'job-42'
        >>> clear_correlation_id()

        ```
    """
    _correlation_id.set(correlation_id)


def clear_correlation_id() -> None:
    """Stop tagging the log records of the current context."""
    _correlation_id.set(None)


class StructuredFormatter(logging.Formatter):
    """Render log records as one JSON object per line.

    Every line holds ``timestamp`` (UTC, ISO 8601 with milliseconds),
    ``level``, ``logger``, ``message``, the origin of the call (``module``,
    ``function``, ``line``, ``thread``, ``process``) and, when set, the
    ``correlation_id`` and the formatted ``exception``. Fields passed through
    ``extra`` are merged at the top level; values JSON cannot encode are
    rendered with ``str``.

    Example:
        ```pycon
        >>> import logging
        >>> from io import StringIO
        >>> from tracedhttp.utils.structured_logging import StructuredFormatter
        >>> out = StringIO()
        >>> handler = logging.StreamHandler(out)
        >>> handler.setFormatter(StructuredFormatter())
        >>> trace_logger = logging.getLogger("doctest.trace")
        >>> trace_logger.addHandler(handler)
        >>> trace_logger.setLevel(logging.DEBUG)
        >>> trace_logger.debug("http trace", extra={"total": "12ms"})
        >>> '"total": "12ms"' in out.getvalue()
        True

        ```
    """

    def format(self, record: logging.LogRecord) -> str:
        fields: dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "thread": record.threadName,
            "process": record.process,
        }
        correlation_id = get_correlation_id()
        if correlation_id is not None:
            fields["correlation_id"] = correlation_id
        if record.exc_info:
            fields["exception"] = self.formatException(record.exc_info)
        fields.update(
            (key, value) for key, value in vars(record).items() if key not in _RECORD_ATTRS
        )
        return json.dumps(fields, default=str)

    def formatTime(  # noqa: N802
        self, record: logging.LogRecord, datefmt: str | None = None
    ) -> str:
        """Return the record creation time as ``YYYY-MM-DDTHH:MM:SS.mmmZ``.

        ``datefmt`` is accepted for compatibility and ignored.
        """
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return created.strftime("%Y-%m-%dT%H:%M:%S.") + f"{int(record.msecs):03d}Z"


def log_structured(logger: logging.Logger, level: int, message: str, **extra: Any) -> None:
    """Log ``message`` with ``extra`` as structured fields.

    Args:
        logger: The destination logger.
        level: The log level, e.g. ``logging.DEBUG``.
        message: The log message.
        **extra: Fields attached to the record.
    """
    logger.log(level, message, extra=extra)


def configure_logging(
    level: int = logging.DEBUG,
    stream: IO[str] | None = None,
    logger_name: str = "tracedhttp",
) -> logging.Handler:
    """Send the package's log records to ``stream`` as JSON lines.

    Calling this function again replaces the handler it installed before.
    Handlers added by the application are kept.

    Args:
        level: Threshold of the package logger.
        stream: Output stream. Defaults to ``sys.stdout``.
        logger_name: Logger to configure.

    Returns:
        The installed handler.
    """
    logger = logging.getLogger(logger_name)
    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARK, False):
            logger.removeHandler(handler)
    handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    handler.setFormatter(StructuredFormatter())
    setattr(handler, _HANDLER_MARK, True)
    logger.addHandler(handler)
    logger.setLevel(level)
    return handler
