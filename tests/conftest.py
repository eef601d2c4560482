"""Pytest configuration and fixtures for simple-rest tests.

This file provides:
- PortReservation: Race-free port allocation for the test server
- MockServer: Subprocess management for the mock HTTP server
- FakeServer: In-process httpx.MockTransport plugged into the connection factory
- Fixtures: Shared test infrastructure (servers, clients)
"""

from __future__ import annotations

import os
import socket
import subprocess
import sys
import time
from pathlib import Path
from typing import Any, Callable, Generator

import httpx
import pytest

from simple_rest.client import RestClient
from simple_rest.response import Response
from simple_rest.trust import TrustPolicy

# Project root for subprocess cwd
PROJECT_ROOT = Path(__file__).parent.parent
MOCK_SERVER_MODULE = "tests.integration.mock_server"
NETWORK_TESTS_ENV = "SIMPLE_REST_NETWORK_TESTS"


def make_response(
    status_code: int = 200,
    body: str | None = "",
    headers: dict[str, Any] | None = None,
) -> Response:
    """Create a Response for testing.

    Prefer this over constructing Response directly - it provides
    sensible defaults.
    """
    return Response(body, status_code, headers or {})


class PortReservation:
    """Holds a reserved port with socket kept open to prevent races.

    The port stays held until release() is called just before the server
    binds, so no other process can take it in between.

    Usage:
        reservation = PortReservation()
        server = MockServer(reservation)
        server.start()  # calls release() internally, then binds
    """

    def __init__(self) -> None:
        self._socket = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        self._socket.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        self._socket.bind(("127.0.0.1", 0))  # Port 0 = OS assigns ephemeral port
        self._port = self._socket.getsockname()[1]
        self._released = False

    @property
    def port(self) -> int:
        return self._port

    def release(self) -> int:
        """Release the socket and return the port for server use.

        Safe to call multiple times - subsequent calls are no-ops.
        """
        if not self._released:
            self._socket.close()
            self._released = True
        return self._port

    def __enter__(self) -> PortReservation:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.release()


def find_free_port() -> int:
    """Find a port that nothing listens on (for connection-refused tests)."""
    with PortReservation() as reservation:
        return reservation.port


def wait_for_server_ready(host: str, port: int, timeout: float = 10.0) -> bool:
    """Block until server accepts TCP connections, or timeout expires."""
    start = time.time()
    while time.time() - start < timeout:
        try:
            with socket.create_connection((host, port), timeout=1.0):
                return True
        except (ConnectionRefusedError, socket.timeout, OSError):
            time.sleep(0.1)
    return False


class MockServer:
    """Manages the mock server subprocess for integration tests.

    Runs tests/integration/mock_server.py under uvicorn in a subprocess.
    """

    def __init__(self, port: int | PortReservation) -> None:
        if isinstance(port, PortReservation):
            self._reservation = port
            self.port = port.port
        else:
            self._reservation = None
            self.port = port
        self.host = "127.0.0.1"
        self.base_url = f"http://{self.host}:{self.port}"
        self._process: subprocess.Popen | None = None

    def url(self, path: str) -> str:
        """Absolute URL for a server path."""
        return f"{self.base_url}/{path.lstrip('/')}"

    def start(self) -> None:
        """Start the mock server subprocess.

        Raises:
            RuntimeError: If server fails to start within 10 seconds.
        """
        if self._reservation:
            self._reservation.release()

        self._process = subprocess.Popen(
            [
                sys.executable, "-m", MOCK_SERVER_MODULE,
                "--host", self.host,
                "--port", str(self.port),
            ],
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            cwd=PROJECT_ROOT,
        )

        if not wait_for_server_ready(self.host, self.port):
            stderr = ""
            if self._process and self._process.stderr:
                stderr = self._process.stderr.read().decode(errors="replace")
            self.stop()
            raise RuntimeError(
                f"MockServer failed to start on port {self.port}. "
                f"stderr: {stderr or '(empty)'}"
            )

    def stop(self) -> None:
        """Stop the mock server subprocess with graceful shutdown.

        Uses SIGTERM first, then SIGKILL after 5s if process doesn't exit.
        Safe to call multiple times or if server was never started.
        """
        if self._process:
            self._process.terminate()
            try:
                self._process.wait(timeout=5)
            except subprocess.TimeoutExpired:
                self._process.kill()
                try:
                    self._process.wait(timeout=5)
                except subprocess.TimeoutExpired:
                    pass  # unkillable, nothing more we can do
            self._process = None

    def __enter__(self) -> MockServer:
        self.start()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.stop()


class FakeServer:
    """Answers client calls in-process through httpx.MockTransport.

    Records every request and every connection the client opened, so tests
    can assert on the wire headers/body and on connection cleanup.
    """

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self._handler = handler
        self.requests: list[httpx.Request] = []
        self.connections: list[httpx.Client] = []

    def _handle(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        return self._handler(request)

    def open_connection(self, follow_redirects: bool = True) -> httpx.Client:
        connection = httpx.Client(
            transport=httpx.MockTransport(self._handle), follow_redirects=follow_redirects
        )
        self.connections.append(connection)
        return connection

    @property
    def last_request(self) -> httpx.Request:
        return self.requests[-1]


# =============================================================================
# Pytest Fixtures
# =============================================================================


@pytest.fixture
def fake_server(
    monkeypatch: pytest.MonkeyPatch,
) -> Callable[[Callable[[httpx.Request], httpx.Response]], FakeServer]:
    """Install a FakeServer as the connection factory of every TrustPolicy.

    Example:
        def test_get(fake_server):
            server = fake_server(lambda request: httpx.Response(200, json={}))
            RestClient().get("http://test/x")
            assert server.last_request.method == "GET"
    """

    def install(handler: Callable[[httpx.Request], httpx.Response]) -> FakeServer:
        server = FakeServer(handler)
        monkeypatch.setattr(
            TrustPolicy,
            "open_connection",
            lambda policy, follow_redirects=True: server.open_connection(follow_redirects),
        )
        return server

    return install


@pytest.fixture
def rest_client() -> RestClient:
    return RestClient()


@pytest.fixture(scope="session")
def mock_server() -> Generator[MockServer, None, None]:
    """Start the mock HTTP server once per test session.

    Example:
        def test_get(mock_server, rest_client):
            response = rest_client.get(mock_server.url("/simple"))
    """
    with MockServer(PortReservation()) as server:
        yield server


# =============================================================================
# Pytest Hooks
# =============================================================================


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Automatically apply markers based on test location.

    Enables running subsets via:
        pytest -m integration  # only integration tests
        pytest -m unit         # only unit tests

    Tests marked ``network`` reach external hosts and are skipped unless
    SIMPLE_REST_NETWORK_TESTS=1.
    """
    run_network = os.environ.get(NETWORK_TESTS_ENV) == "1"
    skip_network = pytest.mark.skip(reason=f"set {NETWORK_TESTS_ENV}=1 to run external network tests")
    for item in items:
        test_path = Path(item.fspath)
        if "integration" in test_path.parts:
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)
        if "network" in item.keywords and not run_network:
            item.add_marker(skip_network)
