r"""Configuration dataclass and defaults for Client.

This module provides configuration constants and a dataclass-based
configuration object for the :class:`~tracedhttp.client.Client` class.
"""

from __future__ import annotations

__all__ = [
    "DEFAULT_MAX_WORKERS",
    "DEFAULT_TIMEOUT",
    "FORM_CONTENT_TYPE",
    "FORM_METHODS",
    "ClientConfig",
]

from dataclasses import dataclass, field, replace
from typing import Any

from tracedhttp.core.validation import validate_timeout

# Default deadline in seconds for a whole request, body read included
DEFAULT_TIMEOUT = 10.0

# Default number of requests a Worker executes in parallel
DEFAULT_MAX_WORKERS = 10

# Methods whose parameters are sent as a URL-encoded form body
FORM_METHODS = ("POST", "PUT", "DELETE")

FORM_CONTENT_TYPE = "application/x-www-form-urlencoded; charset=UTF-8"


@dataclass
class ClientConfig:
    """Configuration for a Client.

    Args:
        timeout: Deadline in seconds for each request, including the
            response body read. Must be > 0.
        trace: Whether to measure each request's connection lifecycle and
            emit one timing record per request.
        headers: Initial headers sent with every request. Names are
            normalized when the client is created.
        host: Initial ``Host`` header override. An empty string means
            no override.

    Example:
        ```pycon
        >>> from tracedhttp.core.config import ClientConfig
        >>> config = ClientConfig()
        >>> config.timeout
        10.0
        >>> config = ClientConfig(timeout=5.0, trace=True)
        >>> merged = config.merge(timeout=1.0, trace=None)
        >>> merged.timeout, merged.trace
        (1.0, True)
        >>> config.timeout  # Original unchanged
        5.0

        ```
    """

    timeout: float = DEFAULT_TIMEOUT
    trace: bool = False
    headers: dict[str, str] = field(default_factory=dict)
    host: str = ""

    def __post_init__(self) -> None:
        """Validate configuration parameters after initialization.

        Raises:
            ValueError: If any parameter fails validation.
        """
        validate_timeout(self.timeout)

    def merge(self, **overrides: Any) -> ClientConfig:
        """Create a new config with specified parameters overridden.

        Only non-None override values are applied.

        Args:
            **overrides: Keyword arguments for parameters to override.

        Returns:
            A new ClientConfig instance with overrides applied.
        """
        filtered_overrides = {k: v for k, v in overrides.items() if v is not None}
        return replace(self, **filtered_overrides)

    def to_dict(self) -> dict[str, Any]:
        """Convert configuration to dictionary format.

        Returns:
            Dictionary with the configuration parameters.

        Example:
            ```pycon
            >>> from tracedhttp.core.config import ClientConfig
            >>> ClientConfig(timeout=2.0).to_dict()
            {'timeout': 2.0, 'trace': False, 'headers': {}, 'host': ''}

            ```
        """
        return {
            "timeout": self.timeout,
            "trace": self.trace,
            "headers": dict(self.headers),
            "host": self.host,
        }
