r"""Helpers to build request headers and encode request parameters."""

from __future__ import annotations

__all__ = ["basic_auth_value", "encode_params", "normalize_header_name"]

import base64
import re
from typing import TYPE_CHECKING

import httpx

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

_WORD = re.compile(r"[^-]+")


def normalize_header_name(name: str) -> str:
    """Return the header name with the first letter of each hyphen-separated
    word in upper case and the rest in lower case.

    Only hyphens separate words: ``x_trace_id`` becomes ``X_trace_id``.

    Args:
        name: The header name to normalize.

    Returns:
        The normalized header name.

    Raises:
        ValueError: If the name is empty.

    Example:
        ```pycon
        >>> from tracedhttp.utils.headers import normalize_header_name
        >>> normalize_header_name("x-custom-header")
        'X-Custom-Header'
        >>> normalize_header_name("CONTENT-type")
        'Content-Type'
        >>> normalize_header_name("x_trace_id")
        'X_trace_id'

        ```
    """
    name = name.strip()
    if not name:
        msg = "header name must not be empty"
        raise ValueError(msg)
    return _WORD.sub(lambda match: match.group(0).capitalize(), name)


def basic_auth_value(username: str, password: str) -> str:
    """Return the value of a basic ``Authorization`` header.

    Example:
        ```pycon
        >>> from tracedhttp.utils.headers import basic_auth_value
        >>> basic_auth_value("scott", "fine")
        'Basic c2NvdHQ6ZmluZQ=='

        ```
    """
    token = base64.b64encode(f"{username}:{password}".encode()).decode("ascii")
    return f"Basic {token}"


def encode_params(params: Mapping[str, str | Sequence[str]] | None) -> str:
    """URL-encode a parameter set.

    Multi-valued parameters are encoded once per value.

    Example:
        ```pycon
        >>> from tracedhttp.utils.headers import encode_params
        >>> encode_params({"key": "TEST_HELLO", "tags": ["a", "b"]})
        'key=TEST_HELLO&tags=a&tags=b'
        >>> encode_params(None)
        ''

        ```
    """
    if not params:
        return ""
    return str(httpx.QueryParams(params))
