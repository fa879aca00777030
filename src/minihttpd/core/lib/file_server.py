"""Single-threaded HTTP/1.0 file server loop.

This module owns the listening socket and drives connections one at a time:

    accept() -> ConnectionHandler.handle() -> close() -> accept() -> ...

There is no worker pool; a slow client holds up everyone behind it. Shutdown
is cooperative: ``request_shutdown()`` (or SIGINT/SIGTERM once
``install_signal_handlers()`` has run) sets a flag that the loop checks between
connections. A signal that lands while the loop is blocked in ``accept()``
interrupts the call; one that lands mid-request lets the request finish.

Any unexpected error raised while handling one connection is logged and the
loop moves on to the next ``accept()``.

Example:
    server = FileServer(Endpoint.localhost(1701), data_dir=Path("data"))
    server.open()
    server.install_signal_handlers()
    server.serve_forever()
    server.close()
"""

import errno
import signal
import threading
from pathlib import Path
from typing import Final

from loguru import logger

from minihttpd.core.exceptions import InvalidState, OperationFailed, SocketError

from .endpoint import Endpoint
from .http_handler import DEFAULT_DATA_DIR, ConnectionHandler
from .server_stats import ServerStats
from .tcp_socket import DEFAULT_BACKLOG, DEFAULT_MAX_LENGTH, Socket, SocketOptions

SHUTDOWN_SIGNALS: Final = (signal.SIGINT, signal.SIGTERM)


class FileServer:
    """Serves files from a data directory over restricted HTTP/1.0."""

    def __init__(
        self,
        endpoint: Endpoint,
        data_dir: Path = DEFAULT_DATA_DIR,
        backlog: int = DEFAULT_BACKLOG,
        max_header_size: int = DEFAULT_MAX_LENGTH,
        options: SocketOptions | None = None,
    ) -> None:
        """Initialize the server. No socket is created until ``open()``.

        Args:
            endpoint: Address to listen on (port 0 lets the OS choose)
            data_dir: Directory files are served from
            backlog: Listen queue depth
            max_header_size: Upper bound on the request header block
            options: Socket options for the listener
        """
        self.requested_endpoint = endpoint
        self.backlog = backlog
        self.options = options if options is not None else SocketOptions(reuse_addr=True)
        self.handler = ConnectionHandler(data_dir, max_header_size)
        self.stats = ServerStats()
        self._listener: Socket | None = None
        self._endpoint: Endpoint | None = None
        self._shutdown_requested = threading.Event()
        self._accepting = False
        self._original_handlers: dict[int, object] = {}

    @property
    def endpoint(self) -> Endpoint:
        """Address actually bound (resolves port 0), or the requested one."""
        return self._endpoint or self.requested_endpoint

    @property
    def is_open(self) -> bool:
        return self._listener is not None

    @property
    def shutdown_requested(self) -> bool:
        return self._shutdown_requested.is_set()

    def open(self) -> Endpoint:
        """Create, bind and listen.

        Returns:
            Endpoint: The bound address.

        Raises:
            SocketError: If the socket cannot be created, bound or put into
                listening mode.
        """
        logger.info(f"Attempting to bind to {self.requested_endpoint}")
        listener = Socket.create_bind(self.requested_endpoint, options=self.options)
        try:
            listener.listen(self.backlog)
            self._endpoint = listener.local_address()
        except SocketError:
            listener.close()
            raise
        self._listener = listener
        logger.info(f"Server listening on {self._endpoint}")
        return self._endpoint

    def request_shutdown(self) -> None:
        """Ask the loop to stop after the current connection."""
        self._shutdown_requested.set()

    def install_signal_handlers(self) -> None:
        """Route SIGINT and SIGTERM to ``request_shutdown``. Main thread only."""

        def shutdown_handler(signum, _frame):
            logger.info(f"Received {signal.Signals(signum).name}, shutting down...")
            self.request_shutdown()
            if self._accepting:
                # Break out of the blocking accept() instead of resuming it
                raise InterruptedError(errno.EINTR, "accept interrupted by signal")

        for sig in SHUTDOWN_SIGNALS:
            self._original_handlers[sig] = signal.signal(sig, shutdown_handler)

    def restore_signal_handlers(self) -> None:
        for sig, handler in self._original_handlers.items():
            signal.signal(sig, handler)
        self._original_handlers.clear()

    def _accept(self) -> tuple[Socket, Endpoint] | None:
        """Wait for the next connection, or None if there is nothing to handle."""
        try:
            self._accepting = True
            logger.debug("Waiting for connection")
            return self._listener.accept()
        except (SocketError, InterruptedError) as e:
            if isinstance(e, InvalidState):
                logger.error(f"Listener is no longer usable: {e}")
                self.request_shutdown()
            elif not self.shutdown_requested:
                logger.error(f"Failed to accept connection: {e}")
            return None
        finally:
            self._accepting = False

    def handle_connection(self, client: Socket, peer: Endpoint) -> None:
        """Process one accepted connection and close it."""
        logger.debug(f"Accepted connection from: {peer}")
        self.stats.connection_started()
        try:
            writer = self.handler.handle(client, peer)
            self.stats.record_response(writer.status, writer.bytes_sent)
        except Exception:
            self.stats.connection_failed()
            logger.exception(f"Failed to process connection from {peer}")
        finally:
            client.close()
        logger.debug("Connection processed and closed")

    def serve_forever(self) -> None:
        """Accept and handle connections until shutdown is requested."""
        if self._listener is None:
            raise InvalidState("Server is not open; call open() first")

        while not self.shutdown_requested:
            try:
                connection = self._accept()
            except InterruptedError:
                # Signal landed after accept() returned, while still marked accepting
                logger.debug("Accept interrupted after completion")
                continue
            if connection is None:
                continue
            self.handle_connection(*connection)

        logger.info("Server shutting down gracefully")

    def close(self) -> None:
        """Shut down both directions of the listener and release it."""
        self.restore_signal_handlers()
        if self._listener is None:
            return
        try:
            self._listener.shutdown(read=True, write=True)
        except OperationFailed as e:
            # Listening sockets have no peer on some platforms (ENOTCONN)
            logger.debug(f"Listener shutdown: {e}")
        finally:
            self._listener.close()
            self._listener = None
        logger.info("Server closed")

    def __enter__(self) -> "FileServer":
        if not self.is_open:
            self.open()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


def run_server(
    endpoint: Endpoint,
    data_dir: Path = DEFAULT_DATA_DIR,
    backlog: int = DEFAULT_BACKLOG,
    max_header_size: int = DEFAULT_MAX_LENGTH,
) -> FileServer:
    """Open a server, serve until SIGINT/SIGTERM, then close it.

    Args:
        endpoint: Address to listen on
        data_dir: Directory files are served from
        backlog: Listen queue depth
        max_header_size: Upper bound on the request header block

    Returns:
        FileServer: The stopped server, for its statistics.

    Raises:
        SocketError: If the listener cannot be opened.
    """
    server = FileServer(endpoint, data_dir, backlog, max_header_size)
    server.open()
    try:
        server.install_signal_handlers()
        server.serve_forever()
    finally:
        server.close()
    return server
