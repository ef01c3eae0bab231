"""
pytest configuration and fixtures.
"""

import dataclasses
import socket
import threading
from typing import Dict, Generator, Optional, Tuple
import pytest

# Add src to path for imports
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from fileserver import FileServer, ServerConfig
from fileserver.handlers import FileHandlers


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """
    Working directory with a small tree:

        hello.txt        "hello world"
        data.bin         4 raw bytes
        .hidden          "secret"
        notes/
            todo.md      "- write tests"
        empty/
    """
    (tmp_path / "hello.txt").write_bytes(b"hello world")
    (tmp_path / "data.bin").write_bytes(b"\x00\x01\x02\x03")
    (tmp_path / ".hidden").write_bytes(b"secret")
    (tmp_path / "notes").mkdir()
    (tmp_path / "notes" / "todo.md").write_bytes(b"- write tests")
    (tmp_path / "empty").mkdir()
    return tmp_path


@pytest.fixture
def config(workspace: Path) -> ServerConfig:
    """Test server configuration on a free loopback port."""
    return ServerConfig(
        host="127.0.0.1",
        port=0,  # Let OS pick a free port
        working_directory=str(workspace),
        timeout=5.0,
    )


@pytest.fixture
def handlers(workspace: Path) -> FileHandlers:
    return FileHandlers(str(workspace))


@pytest.fixture
def free_port() -> int:
    """Get a free port for testing."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


class RawResponse:
    """A response split into status line, headers and body."""

    def __init__(self, raw: bytes):
        self.raw = raw
        head, _, self.body = raw.partition(b"\r\n\r\n")
        lines = head.decode("utf-8").split("\r\n")
        self.status_line = lines[0]
        self.headers: Dict[str, str] = {}
        for line in lines[1:]:
            name, _, value = line.partition(": ")
            self.headers[name] = value

    @property
    def status(self) -> int:
        return int(self.status_line.split(" ")[1])


class ServerThread:
    """Runs a FileServer in a background thread."""

    def __init__(self, server: FileServer):
        self.server = server
        self._thread: threading.Thread = None

    @property
    def address(self) -> Tuple[str, int]:
        return self.server.address

    def start(self):
        """Start server in background thread and wait until it listens."""
        self._thread = threading.Thread(target=self.server.run, daemon=True)
        self._thread.start()

        if not self.server.wait_until_ready(timeout=5.0):
            raise RuntimeError("Server failed to start")

    def stop(self):
        """Stop the server."""
        self.server.shutdown()

        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5.0)

    def exchange(self, request: bytes, timeout: float = 5.0) -> bytes:
        """
        Send raw request bytes and return everything the server sends back
        before closing the connection.
        """
        with socket.create_connection(self.address, timeout=timeout) as s:
            s.sendall(request)
            s.shutdown(socket.SHUT_WR)

            chunks = []
            while True:
                chunk = s.recv(4096)
                if not chunk:
                    break
                chunks.append(chunk)
        return b"".join(chunks)

    def request(self, request: bytes) -> RawResponse:
        raw = self.exchange(request)
        assert raw, "server closed the connection without responding"
        return RawResponse(raw)

    def send(self, verb: str, path: str, body: bytes = b"", **kwargs) -> RawResponse:
        """Build a well-formed request and return the parsed response."""
        return self.request(build_request(verb, path, body, **kwargs))


def build_request(
    verb: str,
    path: str,
    body: bytes = b"",
    headers: Dict[str, str] = None,
    host: Optional[str] = "localhost",
) -> bytes:
    """Assemble request bytes in the wire format clients use."""
    lines = [f"{verb} {path} HTTP/1.1"]
    if host is not None:
        lines.append(f"Host: {host}")
    for name, value in (headers or {}).items():
        lines.append(f"{name}: {value}")
    if body:
        lines.append(f"Content-Length: {len(body)}")
    return ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8") + body


@pytest.fixture
def running_server(config: ServerConfig) -> Generator[ServerThread, None, None]:
    """A FileServer serving the workspace fixture."""
    server_thread = ServerThread(FileServer(config))
    server_thread.start()

    yield server_thread

    server_thread.stop()


@pytest.fixture
def domain_server(config: ServerConfig) -> Generator[ServerThread, None, None]:
    """A FileServer that only accepts requests for Host: files.local."""
    server_thread = ServerThread(
        FileServer(dataclasses.replace(config, server_domain="files.local"))
    )
    server_thread.start()

    yield server_thread

    server_thread.stop()
