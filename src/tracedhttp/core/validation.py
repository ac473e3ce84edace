r"""Argument checks shared by the client, the executor and the worker
pool."""

from __future__ import annotations

__all__ = ["validate_max_workers", "validate_timeout"]


def validate_timeout(timeout: float) -> None:
    """Check a per-request deadline.

    Args:
        timeout: Seconds a request may take, response body included.

    Raises:
        ValueError: If ``timeout`` is not strictly positive.

    Example:
        ```pycon
        >>> from tracedhttp.core.validation import validate_timeout
        >>> validate_timeout(2.5)
        >>> validate_timeout(-1)
        Traceback (most recent call last):
        ...
        ValueError: timeout must be > 0, got -1

        ```
    """
    if timeout <= 0:
        msg = f"timeout must be > 0, got {timeout}"
        raise ValueError(msg)


def validate_max_workers(max_workers: int) -> None:
    """Check the concurrency bound of a worker pool.

    Raises:
        ValueError: If ``max_workers`` is not strictly positive.
    """
    if max_workers <= 0:
        msg = f"max_workers must be > 0, got {max_workers}"
        raise ValueError(msg)
