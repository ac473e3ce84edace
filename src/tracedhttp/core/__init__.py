r"""Configuration defaults and validation shared by the client and the
worker pool."""

from __future__ import annotations

__all__ = [
    "DEFAULT_MAX_WORKERS",
    "DEFAULT_TIMEOUT",
    "FORM_CONTENT_TYPE",
    "FORM_METHODS",
    "ClientConfig",
    "validate_max_workers",
    "validate_timeout",
]

from tracedhttp.core.config import (
    DEFAULT_MAX_WORKERS,
    DEFAULT_TIMEOUT,
    FORM_CONTENT_TYPE,
    FORM_METHODS,
    ClientConfig,
)
from tracedhttp.core.validation import validate_max_workers, validate_timeout
