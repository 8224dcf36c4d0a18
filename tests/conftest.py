"""
pytest configuration and fixtures.
"""

import io
import socket
import threading
from pathlib import Path
from typing import Generator, Optional

import pytest

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from tinyserve import ServerConfig, TinyServe
from tinyserve.http.request import HTTPRequest, parse_request


def make_raw_request(
    method: str = "GET",
    target: str = "/",
    headers: Optional[dict] = None,
    body: bytes = b"",
) -> bytes:
    """Build raw request bytes; Content-Length is added for a body."""
    lines = [f"{method} {target} HTTP/1.1", "Host: localhost"]
    headers = dict(headers or {})
    if body and "Content-Length" not in headers:
        headers["Content-Length"] = str(len(body))
    for name, value in headers.items():
        lines.append(f"{name}: {value}")
    return ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8") + body


def make_request(
    method: str = "GET",
    target: str = "/",
    headers: Optional[dict] = None,
    body: bytes = b"",
) -> HTTPRequest:
    """Parse a request built by make_raw_request."""
    raw = make_raw_request(method, target, headers, body)
    return parse_request(io.BytesIO(raw), ("127.0.0.1", 50000))


@pytest.fixture
def sample_get_request() -> bytes:
    """Sample HTTP GET request."""
    return (
        b"GET /api/users?page=1&limit=10 HTTP/1.1\r\n"
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
def public_root(tmp_path: Path) -> Path:
    """Document root with an index page, a text file and a subdirectory."""
    root = tmp_path / "public"
    root.mkdir()
    (root / "index.html").write_text("<h1>Home</h1>")
    (root / "a.txt").write_bytes(b"hello from a.txt\n")
    (root / "docs").mkdir()
    (root / "docs" / "index.html").write_text("<h1>Docs</h1>")
    (root / "blob.bin").write_bytes(bytes(range(256)))
    return root


def send_raw(address, data: bytes, timeout: float = 5.0) -> bytes:
    """Send raw bytes to the server and read until it closes."""
    with socket.create_connection(address, timeout=timeout) as sock:
        sock.sendall(data)
        chunks = []
        while True:
            chunk = sock.recv(65536)
            if not chunk:
                break
            chunks.append(chunk)
    return b"".join(chunks)


def split_response(raw: bytes):
    """Split raw response bytes into (status, headers, body)."""
    head, _, body = raw.partition(b"\r\n\r\n")
    lines = head.decode("latin-1").split("\r\n")
    status = int(lines[0].split()[1])
    headers = {}
    for line in lines[1:]:
        name, _, value = line.partition(":")
        headers[name.strip().lower()] = value.strip()
    return status, headers, body


class LiveServer:
    """A TinyServe running in a background thread."""

    def __init__(self, server: TinyServe):
        self.server = server
        self._thread: Optional[threading.Thread] = None

    @property
    def address(self):
        return ("127.0.0.1", self.server.address[1])

    def start(self):
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        self.server.shutdown()
        if self._thread and self._thread.is_alive():
            self.server.wait_for_shutdown(timeout=5.0)
            self._thread.join(timeout=5.0)

    def request(self, method="GET", target="/", headers=None, body=b""):
        raw = send_raw(self.address, make_raw_request(method, target, headers, body))
        return split_response(raw)


@pytest.fixture
def make_server(public_root: Path):
    """Factory for unstarted servers on a free port, serving public_root."""
    def factory(**overrides) -> TinyServe:
        settings = dict(
            host="127.0.0.1",
            port=0,
            root=str(public_root),
            timeout=5.0,
            log_level="WARNING",
        )
        settings.update(overrides)
        return TinyServe(ServerConfig(**settings))
    return factory


@pytest.fixture
def live_server(make_server) -> Generator:
    """
    Start a configured server; stopped at teardown.

        def test_x(live_server):
            server = live_server.server
            ...                 # register routes before start()
            live_server.start()
    """
    holder = LiveServer(make_server())
    yield holder
    holder.stop()
