"""
pytest configuration and fixtures.
"""

import socket
import threading
from collections.abc import Generator
from pathlib import Path

import pytest

from minihttpd.core.lib import Endpoint, FileServer, Socket

FILE1_HTML = b"<html><body><h1>file one</h1></body></html>\n"
# Binary content with embedded CRLFs to make sure the body is sent verbatim
IMAGE1_JPG = b"\xff\xd8\xff\xe0" + b"\r\n\r\n" + bytes(range(256)) * 8 + b"\xff\xd9"


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """Data directory with a page, an image, an empty page and an off-grammar file."""
    directory = tmp_path / "data"
    directory.mkdir()
    (directory / "file1.html").write_bytes(FILE1_HTML)
    (directory / "image1.jpg").write_bytes(IMAGE1_JPG)
    (directory / "file2.html").write_bytes(b"")
    # Exists on disk but is outside the allowed path grammar
    (directory / "nope.html").write_bytes(b"<html>should never be served</html>")
    return directory


@pytest.fixture
def listener() -> Generator[Socket, None, None]:
    """Listening socket on an OS-chosen loopback port."""
    sock = Socket.create_bind(Endpoint.localhost(0))
    sock.listen()
    yield sock
    sock.close()


@pytest.fixture
def connected_pair(listener: Socket) -> Generator[tuple[Socket, Socket], None, None]:
    """(client, server-side) sockets connected over loopback."""
    client = Socket.create_connect(listener.local_address())
    server_side, _peer = listener.accept()
    yield client, server_side
    client.close()
    server_side.close()


class RunningServer:
    """File server running in a background thread."""

    def __init__(self, server: FileServer):
        self.server = server
        self._thread: threading.Thread | None = None

    @property
    def address(self) -> tuple[str, int]:
        return self.server.endpoint.sockaddr

    def start(self):
        """Open the listener and start the accept loop."""
        self.server.open()
        self._thread = threading.Thread(target=self.server.serve_forever, daemon=True)
        self._thread.start()

    def exchange(self, raw_request: bytes) -> bytes:
        """Send a raw request and read the response until the server closes."""
        with socket.create_connection(self.address, timeout=5.0) as client:
            client.sendall(raw_request)
            chunks = []
            while True:
                chunk = client.recv(4096)
                if not chunk:
                    break
                chunks.append(chunk)
        return b"".join(chunks)

    def stop(self):
        """Ask the loop to stop and unblock its pending accept()."""
        self.server.request_shutdown()
        if self._thread and self._thread.is_alive():
            try:
                with socket.create_connection(self.address, timeout=1.0):
                    pass
            except OSError:
                pass
            self._thread.join(timeout=5.0)
        self.server.close()

    @property
    def is_alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()


@pytest.fixture
def running_server(data_dir: Path) -> Generator[RunningServer, None, None]:
    """Server on a free loopback port serving ``data_dir``."""
    srv = RunningServer(FileServer(Endpoint.localhost(0), data_dir=data_dir))
    srv.start()

    yield srv

    srv.stop()


def split_response(response: bytes) -> tuple[str, dict[str, str], bytes]:
    """Split a raw response into status line, headers and body."""
    head, _, body = response.partition(b"\r\n\r\n")
    lines = head.decode("latin-1").split("\r\n")
    headers = {}
    for line in lines[1:]:
        name, _, value = line.partition(":")
        headers[name.strip()] = value.strip()
    return lines[0], headers, body


@pytest.fixture
def parse_response():
    """Helper that splits a raw response into (status line, headers, body)."""
    return split_response
