"""HTTP/1.0 response writer.

Responses are written line by line, each line terminated with CRLF:

    HTTP/1.0 200 OK
    Content-Length: 1234
    Content-Type: text/html

    <body bytes>

Only three outcomes exist: 200 with a file, 400 and 404 with an empty body.
The body is skipped for HEAD requests and for empty files.

A failed send is logged and ends the response early; it is never raised to the
caller, because there is nobody left to report it to.
"""

from http import HTTPStatus
from pathlib import Path
from typing import Final

from loguru import logger

from minihttpd.core.exceptions import SocketError

from .tcp_socket import Socket

CRLF: Final = "\r\n"
HTTP_VERSION: Final = "HTTP/1.0"
DEFAULT_CONTENT_TYPE: Final = "application/octet-stream"
ERROR_CONTENT_TYPE: Final = "text/html"

CONTENT_TYPES: Final = {
    ".html": "text/html",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
}


def content_type_for(filename: str) -> str:
    """Map a file name to its MIME type by extension."""
    for extension, content_type in CONTENT_TYPES.items():
        if filename.endswith(extension):
            return content_type
    return DEFAULT_CONTENT_TYPE


def status_line(status: HTTPStatus) -> str:
    return f"{HTTP_VERSION} {status.value} {status.phrase}"


def read_file(path: Path) -> bytes | None:
    """Read a whole file, or return None if it is missing or unreadable."""
    try:
        return path.read_bytes()
    except FileNotFoundError:
        logger.debug(f"File not found: {path}")
    except OSError as e:
        logger.error(f"Cannot read file {path}: {e}")
    return None


class ResponseWriter:
    """Writes exactly one response to a connected socket."""

    def __init__(self, sock: Socket) -> None:
        self.sock = sock
        self.status: HTTPStatus | None = None
        self.bytes_sent = 0
        self._failed = False

    @property
    def failed(self) -> bool:
        """True once a send failed; later lines are not attempted."""
        return self._failed

    def send_line(self, line: str) -> bool:
        """Send ``line`` followed by CRLF."""
        return self._send(f"{line}{CRLF}".encode("latin-1"), line)

    def _send(self, data: bytes, description: str) -> bool:
        if self._failed:
            return False
        try:
            self.bytes_sent += self.sock.send_all(data)
        except SocketError as e:
            logger.error(f"Failed to send {description!r}: {e}")
            self._failed = True
            return False
        logger.debug(f"Sent: {description}")
        return True

    def send_response(
        self,
        status: HTTPStatus,
        body: bytes = b"",
        content_type: str = ERROR_CONTENT_TYPE,
        include_body: bool = True,
    ) -> bool:
        """Send status line, headers, blank line and (optionally) the body.

        Content-Length always reflects ``body``, also when the body is left
        out for a HEAD request.
        """
        self.status = status
        sent = (
            self.send_line(status_line(status))
            and self.send_line(f"Content-Length: {len(body)}")
            and self.send_line(f"Content-Type: {content_type}")
            and self.send_line("")
        )
        if sent and include_body and body:
            sent = self._send(body, f"<{len(body)} byte body>")
            if sent:
                logger.info(f"Successfully sent {len(body)} bytes")
        return sent

    def send_not_found(self) -> bool:
        logger.info("Sending 404 response")
        return self.send_response(HTTPStatus.NOT_FOUND)

    def send_bad_request(self) -> bool:
        logger.info("Sending 400 response")
        return self.send_response(HTTPStatus.BAD_REQUEST)

    def send_file(self, path: Path, include_body: bool = True) -> bool:
        """Send ``path`` as a 200 response, or a 404 if it cannot be read."""
        logger.info(f"Attempting to serve file: {path}")
        content = read_file(path)
        if content is None:
            return self.send_not_found()
        return self.send_response(
            HTTPStatus.OK,
            body=content,
            content_type=content_type_for(path.name),
            include_body=include_body,
        )
