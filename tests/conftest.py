"""
pytest configuration and fixtures.
"""

import socket
import threading
from pathlib import Path
from typing import Callable, Dict, Generator, Tuple
import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from rawhttp import HTTPServer, ServerConfig


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /api/users?page=1 HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"User-Agent: pytest\r\n"
        b"Accept: application/json\r\n"
        b"\r\n"
    )


@pytest.fixture
def sample_post_request() -> bytes:
    """Sample HTTP POST request with JSON body."""
    body = b'{"name": "John", "email": "john@example.com"}'
    return (
        b"POST /api/users HTTP/1.1\r\n"
        b"Host: localhost:8080\r\n"
        b"Content-Type: application/json\r\n"
        + f"Content-Length: {len(body)}\r\n".encode()
        + b"\r\n"
    ) + body


@pytest.fixture
def document_root(tmp_path: Path) -> Path:
    """An empty document root directory."""
    root = tmp_path / "www"
    root.mkdir()
    return root


class BackgroundServer:
    """Runs an HTTPServer on a background thread for end-to-end tests."""

    def __init__(self, server: HTTPServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def port(self) -> int:
        return self.server.address[1]

    def start(self):
        self._thread = threading.Thread(
            target=self.server.run,
            kwargs={"setup_logging": False},
            daemon=True,
        )
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        self.server.shutdown()
        self.server.wait_for_shutdown(timeout=5.0)
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)

    def exchange(self, raw_request: bytes, half_close: bool = True) -> bytes:
        """Send raw bytes and return everything the server sends back before EOF."""
        return http_exchange(self.port, raw_request, half_close=half_close)


def http_exchange(port: int, raw_request: bytes, half_close: bool = True) -> bytes:
    """
    Open a connection, send raw bytes, read until the server closes.

    With half_close the client shuts down its write side after sending,
    so the server sees EOF if it tries to read past the request.
    """
    with socket.create_connection(("127.0.0.1", port), timeout=5.0) as sock:
        sock.sendall(raw_request)
        if half_close:
            sock.shutdown(socket.SHUT_WR)

        chunks = []
        while True:
            chunk = sock.recv(4096)
            if not chunk:
                break
            chunks.append(chunk)
        return b"".join(chunks)


def parse_response(raw: bytes) -> Tuple[int, str, Dict[str, str], bytes]:
    """Split raw response bytes into (status_code, status_text, headers, body)."""
    head, _, body = raw.partition(b"\r\n\r\n")
    lines = head.decode("iso-8859-1").split("\r\n")

    version, code, text = lines[0].split(" ", 2)
    assert version == "HTTP/1.1"

    headers = {}
    for line in lines[1:]:
        name, _, value = line.partition(": ")
        headers[name] = value
    return int(code), text, headers, body


@pytest.fixture
def make_server(document_root: Path) -> Generator[Callable[..., BackgroundServer], None, None]:
    """Factory for running servers; every server started is stopped afterwards."""
    started = []

    def factory(**kwargs) -> BackgroundServer:
        config = ServerConfig(
            host="127.0.0.1",
            port=0,  # Let OS pick a free port
            document_root=str(document_root),
            log_level="WARNING",
            linger_timeout=0.1,
        )
        bg = BackgroundServer(HTTPServer(config, **kwargs))
        bg.start()
        started.append(bg)
        return bg

    yield factory

    for bg in started:
        bg.stop()


@pytest.fixture
def test_server(make_server) -> BackgroundServer:
    """A running server with the default handlers and an empty document root."""
    return make_server()
