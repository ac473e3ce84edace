from __future__ import annotations

import ssl
from typing import TYPE_CHECKING
from unittest.mock import Mock

import pytest
import trustme

from tests.helpers import create_fake_worker, start_server
from tracedhttp import Worker
from tracedhttp.tracing import LoggingSink

if TYPE_CHECKING:
    from collections.abc import Generator


@pytest.fixture(scope="session")
def server_url() -> Generator[str, None, None]:
    """Start a local HTTP server for the whole test session."""
    server, url = start_server()
    yield url
    server.shutdown()
    server.server_close()


@pytest.fixture(scope="session")
def tls_ca() -> trustme.CA:
    """Create a certificate authority trusted by the HTTPS tests."""
    return trustme.CA()


@pytest.fixture(scope="session")
def tls_server_url(tls_ca: trustme.CA) -> Generator[str, None, None]:
    """Start a local HTTPS server for the whole test session."""
    context = ssl.create_default_context(ssl.Purpose.CLIENT_AUTH)
    tls_ca.issue_cert("127.0.0.1", "localhost").configure_cert(context)
    server, url = start_server(ssl_context=context)
    yield url
    server.shutdown()
    server.server_close()


@pytest.fixture
def tls_worker(tls_ca: trustme.CA) -> Generator[Worker, None, None]:
    """Create a real Worker trusting the local certificate authority."""
    context = ssl.create_default_context()
    tls_ca.configure_trust(context)
    with Worker(max_workers=4, verify=context) as pool:
        yield pool


@pytest.fixture
def worker() -> Generator[Worker, None, None]:
    """Create a real Worker closed after the test."""
    with Worker(max_workers=4) as pool:
        yield pool


@pytest.fixture
def fake_worker() -> Mock:
    """Create a fake worker answering ``200 success`` to every request."""
    return create_fake_worker()


@pytest.fixture
def mock_sink() -> Mock:
    """Create a mock diagnostic sink recording emitted trace records."""
    return Mock(spec=LoggingSink)
