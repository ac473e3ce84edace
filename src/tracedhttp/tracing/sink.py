r"""Destinations for timing records."""

from __future__ import annotations

__all__ = ["DiagnosticSink", "LoggingSink"]

import logging
from typing import TYPE_CHECKING, Protocol

from tracedhttp.utils.structured_logging import log_structured

if TYPE_CHECKING:
    from collections.abc import Mapping

    from tracedhttp.tracing.record import TraceRecord


class DiagnosticSink(Protocol):
    r"""Anything able to receive timing records."""

    def emit(self, record: TraceRecord) -> None:
        """Publish one timing record."""


class LoggingSink:
    r"""Emit timing records as structured log records.

    Each record becomes one log call with message ``"http trace"`` whose
    ``extra`` fields are the record fields, durations formatted as text,
    plus the static ``tags``.

    Args:
        logger: The logger to write to. Defaults to the ``tracedhttp.trace``
            logger.
        level: The log level of the records.
        tags: Static fields added to every record, e.g. the host address.

    Example:
        ```pycon
        >>> from tracedhttp.tracing import LoggingSink, TraceRecord
        >>> sink = LoggingSink(tags={"ip": "10.0.0.5"})
        >>> sink.emit(TraceRecord(url="http://example.com", method="GET"))

        ```
    """

    def __init__(
        self,
        logger: logging.Logger | None = None,
        *,
        level: int = logging.DEBUG,
        tags: Mapping[str, str] | None = None,
    ) -> None:
        self._logger = logger or logging.getLogger("tracedhttp.trace")
        self._level = level
        self._tags = dict(tags or {})

    def emit(self, record: TraceRecord) -> None:
        if not self._logger.isEnabledFor(self._level):
            return
        fields = {**self._tags, **record.to_fields()}
        log_structured(self._logger, self._level, "http trace", **fields)
