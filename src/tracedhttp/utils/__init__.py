r"""Utility functions for building requests, locking shared configuration
and structured logging."""

from __future__ import annotations

__all__ = [
    "ReadWriteLock",
    "basic_auth_value",
    "encode_params",
    "get_external_ip",
    "is_valid_host",
    "normalize_header_name",
]

from tracedhttp.utils.headers import basic_auth_value, encode_params, normalize_header_name
from tracedhttp.utils.net import get_external_ip, is_valid_host
from tracedhttp.utils.rwlock import ReadWriteLock
