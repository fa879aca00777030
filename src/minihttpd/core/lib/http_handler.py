"""HTTP/1.0 request handling for a single accepted connection.

This module implements the restricted HTTP/1.0 subset the server speaks:
- One request per connection, read up to the blank line (CRLFCRLF)
- Request line ``METHOD SP path SP version``; header lines are parsed but
  otherwise ignored
- Only ``/fileN.html`` and ``/imageN.jpg`` may be requested, N a single digit
- GET returns the file, HEAD returns only its headers, everything else is 400

Paths outside the allowed grammar get a 404 without the filesystem ever being
consulted, so nothing outside the data directory is reachable.

Example:
    handler = ConnectionHandler(Path("data"))
    client, peer = listener.accept()
    try:
        writer = handler.handle(client, peer)
    finally:
        client.close()
"""

import enum
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final

from loguru import logger

from minihttpd.core.exceptions import MalformedRequestError, SocketError

from .endpoint import Endpoint
from .response import ResponseWriter
from .tcp_socket import DEFAULT_MAX_LENGTH, Socket

HEADER_TERMINATOR: Final = b"\r\n\r\n"
LINE_TERMINATOR: Final = "\r\n"
HEADER_ENCODING: Final = "latin-1"
DEFAULT_DATA_DIR: Final = Path("data")
VALID_PATH: Final = re.compile(r"/(file[0-9]\.html|image[0-9]\.jpg)")


class Method(enum.Enum):
    GET = "GET"
    HEAD = "HEAD"
    POST = "POST"
    INVALID = "INVALID"

    @classmethod
    def parse(cls, token: str) -> "Method":
        """Map a request-line token to a method; unknown tokens are INVALID."""
        try:
            return cls(token)
        except ValueError:
            return cls.INVALID


@dataclass
class Request:
    """Parsed request line and headers of one HTTP request."""

    method: Method
    path: str
    version: str
    headers: dict[str, str] = field(default_factory=dict)


def parse_request(raw: bytes) -> Request:
    """Parse a header block into a ``Request``.

    Args:
        raw: Bytes received up to and including the blank line

    Returns:
        Request: Method, path, version and headers

    Raises:
        MalformedRequestError: If the request line is missing its CRLF or
            does not have exactly three tokens.
    """
    text = raw.decode(HEADER_ENCODING)
    request_line, crlf, rest = text.partition(LINE_TERMINATOR)
    if not crlf:
        raise MalformedRequestError("CRLF required for valid HTTP request")

    tokens = request_line.split()
    if len(tokens) != 3:
        raise MalformedRequestError(f"Unable to parse request line: {request_line!r}")
    method, path, version = tokens

    headers: dict[str, str] = {}
    for line in rest.split(LINE_TERMINATOR):
        name, colon, value = line.partition(":")
        if colon and name.strip():
            headers[name.strip().lower()] = value.strip()

    return Request(method=Method.parse(method), path=path, version=version, headers=headers)


def is_valid_path(path: str) -> bool:
    """Return True for ``/file<digit>.html`` and ``/image<digit>.jpg``."""
    return VALID_PATH.fullmatch(path) is not None


class ConnectionHandler:
    """Runs one request/response exchange per accepted socket.

    The handler never closes the socket; the caller owns it.
    """

    def __init__(
        self, data_dir: Path = DEFAULT_DATA_DIR, max_header_size: int = DEFAULT_MAX_LENGTH
    ) -> None:
        self.data_dir = Path(data_dir)
        self.max_header_size = max_header_size

    def resolve(self, path: str) -> Path:
        """Map a validated request path onto the data directory."""
        return self.data_dir / path.removeprefix("/")

    def read_request(self, client: Socket) -> Request | None:
        """Receive and parse the header block, or return None for a 400."""
        try:
            raw = client.receive_until(HEADER_TERMINATOR, self.max_header_size)
        except SocketError as e:
            logger.error(f"Failed to receive request data: {e}")
            return None

        logger.debug(f"Received request data:\n{raw.decode(HEADER_ENCODING)}")
        try:
            request = parse_request(raw)
        except MalformedRequestError as e:
            logger.error(str(e))
            return None

        logger.info(
            f"Successfully parsed request: {request.method.value} {request.path} {request.version}"
        )
        return request

    def handle(self, client: Socket, peer: Endpoint) -> ResponseWriter:
        """Serve one request from ``client``.

        Returns:
            ResponseWriter: The writer used, carrying the status sent and the
            number of bytes written.
        """
        logger.info(f"Processing connection from {peer}")
        writer = ResponseWriter(client)

        request = self.read_request(client)
        if request is None:
            writer.send_bad_request()
            return writer

        if not is_valid_path(request.path):
            logger.warning(f"Invalid filename requested: {request.path}")
            writer.send_not_found()
            return writer

        match request.method:
            case Method.GET:
                logger.info(f"Processing GET request: {request.path}")
                writer.send_file(self.resolve(request.path))
            case Method.HEAD:
                logger.info(f"Processing HEAD request: {request.path}")
                writer.send_file(self.resolve(request.path), include_body=False)
            case Method.POST:
                logger.info("POST is not supported")
                writer.send_bad_request()
            case _:
                logger.warning("Invalid or unsupported HTTP method")
                writer.send_bad_request()
        return writer

