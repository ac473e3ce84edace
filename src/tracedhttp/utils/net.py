r"""Host name checks and network lookups used to tag diagnostic records."""

from __future__ import annotations

__all__ = ["get_external_ip", "is_valid_host"]

import ipaddress
import logging
import re
import socket

logger: logging.Logger = logging.getLogger(__name__)

_HOST_NAME = re.compile(r"[A-Za-z0-9_-]+(\.[A-Za-z0-9_-]+)*\.?")


def is_valid_host(host: str) -> bool:
    """Indicate if ``host`` is an IP address or a well-formed host name.

    Host names are expected in their ASCII form, e.g. the ``raw_host`` of an
    ``httpx.URL``.

    Example:
        ```pycon
        >>> from tracedhttp.utils.net import is_valid_host
        >>> is_valid_host("api.example.com")
        True
        >>> is_valid_host("::1")
        True
        >>> is_valid_host("exa%20mple.com")
        False

        ```
    """
    try:
        ipaddress.ip_address(host)
    except ValueError:
        return _HOST_NAME.fullmatch(host) is not None
    return True


def get_external_ip(probe: tuple[str, int] = ("8.8.8.8", 80)) -> str | None:
    """Return the IPv4 address of the interface used for outbound traffic.

    The address is found by connecting a UDP socket towards ``probe``, which
    selects a route without sending any packet.

    Args:
        probe: Any routable address; only used for the route lookup.

    Returns:
        The local IPv4 address, or ``None`` if the host is not connected
        to a network or only has a loopback address.
    """
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        sock.connect(probe)
        address = sock.getsockname()[0]
    except OSError as exc:
        logger.debug(f"could not determine external IP address: {exc}")
        return None
    finally:
        sock.close()
    if address.startswith("127.") or address == "0.0.0.0":  # noqa: S104
        return None
    return address
