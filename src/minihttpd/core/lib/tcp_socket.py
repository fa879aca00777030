"""State-machine socket over an exclusively owned OS handle.

This module wraps the BSD socket calls used by the server behind a small,
explicit lifecycle:

    CREATED --bind--> BOUND --listen--> LISTENING --accept--> (new CONNECTED)
    CREATED/BOUND --connect--> CONNECTED
    any state --close--> CLOSED

Every operation is looked up in ``TRANSITIONS`` before any OS call is made;
operations that are not in the table raise ``InvalidState``. Failing OS calls
raise ``OperationFailed`` with the errno, and the errno is also kept in the
sticky ``last_error`` slot, which only the next failure overwrites.

All I/O is blocking. ``receive_line`` and ``receive_until`` read one byte per
call so that nothing past the line end or delimiter is consumed from the
kernel buffer.

Example:
    with Socket.create_bind(Endpoint.localhost(8080)) as listener:
        listener.listen()
        client, peer = listener.accept()
        with client:
            header = client.receive_until(b"\\r\\n\\r\\n")
"""

import enum
import errno
import socket
import struct
from dataclasses import dataclass
from typing import Final

from loguru import logger

from minihttpd.core.exceptions import (
    CreationError,
    InvalidState,
    OperationFailed,
    UnsupportedOperation,
)

from .endpoint import Endpoint
from .handle import Handle

DEFAULT_BACKLOG: Final = 128
DEFAULT_MAX_LENGTH: Final = 4096
LINE_FEED: Final = b"\n"
SEND_FLAGS: Final = getattr(socket, "MSG_NOSIGNAL", 0)


class SocketType(enum.Enum):
    """Transport kind. Only TCP supports the full lifecycle."""

    TCP = socket.SOCK_STREAM
    UDP = socket.SOCK_DGRAM


class SocketState(enum.Enum):
    CREATED = "created"
    BOUND = "bound"
    LISTENING = "listening"
    CONNECTED = "connected"
    CLOSED = "closed"


class Operation(enum.Enum):
    BIND = "bind"
    LISTEN = "listen"
    ACCEPT = "accept"
    CONNECT = "connect"
    SEND = "send"
    RECEIVE = "receive"
    SHUTDOWN = "shutdown"
    SET_OPTIONS = "set_options"
    LOCAL_ADDRESS = "local_address"
    REMOTE_ADDRESS = "remote_address"


_OPEN_STATES: Final = (
    SocketState.CREATED,
    SocketState.BOUND,
    SocketState.LISTENING,
    SocketState.CONNECTED,
)

# (current state, operation) -> state after the operation succeeds
TRANSITIONS: Final[dict[tuple[SocketState, Operation], SocketState]] = {
    (SocketState.CREATED, Operation.BIND): SocketState.BOUND,
    (SocketState.CREATED, Operation.CONNECT): SocketState.CONNECTED,
    (SocketState.BOUND, Operation.CONNECT): SocketState.CONNECTED,
    (SocketState.BOUND, Operation.LISTEN): SocketState.LISTENING,
    (SocketState.LISTENING, Operation.ACCEPT): SocketState.LISTENING,
    (SocketState.CONNECTED, Operation.SEND): SocketState.CONNECTED,
    (SocketState.CONNECTED, Operation.RECEIVE): SocketState.CONNECTED,
    (SocketState.CONNECTED, Operation.REMOTE_ADDRESS): SocketState.CONNECTED,
    **{(state, Operation.SHUTDOWN): state for state in _OPEN_STATES},
    **{(state, Operation.SET_OPTIONS): state for state in _OPEN_STATES},
    **{
        (state, Operation.LOCAL_ADDRESS): state
        for state in (SocketState.BOUND, SocketState.LISTENING, SocketState.CONNECTED)
    },
}


@dataclass
class SocketOptions:
    """Socket options applied with ``Socket.set_options``.

    Attributes:
        reuse_addr: SO_REUSEADDR, rebind while old connections sit in TIME_WAIT
        reuse_port: SO_REUSEPORT where the platform has it
        keep_alive: SO_KEEPALIVE
        no_delay: TCP_NODELAY (TCP only)
        blocking: Blocking mode for all calls
        send_timeout: SO_SNDTIMEO in seconds, None leaves the OS default
        recv_timeout: SO_RCVTIMEO in seconds, None leaves the OS default
        send_buffer_size: SO_SNDBUF in bytes
        recv_buffer_size: SO_RCVBUF in bytes
    """

    reuse_addr: bool = True
    reuse_port: bool = False
    keep_alive: bool = False
    no_delay: bool = False
    blocking: bool = True
    send_timeout: float | None = None
    recv_timeout: float | None = None
    send_buffer_size: int | None = None
    recv_buffer_size: int | None = None


def _timeval(seconds: float) -> bytes:
    whole = int(seconds)
    return struct.pack("ll", whole, int((seconds - whole) * 1_000_000))


class Socket:
    """Blocking IPv4 socket with an explicit lifecycle."""

    def __init__(self, sock_type: SocketType = SocketType.TCP) -> None:
        """Allocate a new OS socket.

        Args:
            sock_type: Transport kind

        Raises:
            CreationError: If the OS cannot allocate the socket.
        """
        self._type = sock_type
        self._state = SocketState.CREATED
        self._last_error: int | None = None
        self._shut_read = False
        self._shut_write = False
        try:
            raw = socket.socket(socket.AF_INET, sock_type.value)
        except OSError as e:
            self._last_error = e.errno
            self._handle = Handle()
            self._state = SocketState.CLOSED
            raise CreationError("Unable to create socket", e.errno) from e
        self._handle = Handle(raw)

    @classmethod
    def create(cls, sock_type: SocketType = SocketType.TCP) -> "Socket":
        """Allocate a new socket in the CREATED state."""
        return cls(sock_type)

    @classmethod
    def create_bind(
        cls,
        endpoint: Endpoint,
        sock_type: SocketType = SocketType.TCP,
        options: SocketOptions | None = None,
    ) -> "Socket":
        """Allocate a socket, apply ``options`` and bind it to ``endpoint``."""
        sock = cls(sock_type)
        try:
            if options is not None:
                sock.set_options(options)
            sock.bind(endpoint)
        except Exception:
            sock.close()
            raise
        return sock

    @classmethod
    def create_connect(
        cls, endpoint: Endpoint, sock_type: SocketType = SocketType.TCP
    ) -> "Socket":
        """Allocate a socket and connect it to ``endpoint``."""
        sock = cls(sock_type)
        try:
            sock.connect(endpoint)
        except Exception:
            sock.close()
            raise
        return sock

    @classmethod
    def _adopt(cls, handle: Handle, sock_type: SocketType) -> "Socket":
        """Wrap an already connected handle (the result of accept)."""
        sock = cls.__new__(cls)
        sock._type = sock_type
        sock._state = SocketState.CONNECTED
        sock._last_error = None
        sock._shut_read = False
        sock._shut_write = False
        sock._handle = handle
        return sock

    # ------------------------------------------------------------------
    # State bookkeeping
    # ------------------------------------------------------------------

    @property
    def state(self) -> SocketState:
        return self._state

    @property
    def type(self) -> SocketType:
        return self._type

    @property
    def fileno(self) -> int:
        return self._handle.fileno()

    @property
    def last_error(self) -> int | None:
        """Errno of the most recent failure. Not cleared by later successes."""
        return self._last_error

    def is_valid(self) -> bool:
        return self._handle.is_valid()

    def _require(self, operation: Operation) -> SocketState:
        """Return the state ``operation`` leads to, or raise InvalidState."""
        try:
            return TRANSITIONS[(self._state, operation)]
        except KeyError:
            self._last_error = errno.EINVAL
            raise InvalidState(
                f"Cannot {operation.value} a socket in state {self._state.value}"
            ) from None

    def _failed(self, message: str, error: OSError) -> OperationFailed:
        self._last_error = error.errno
        logger.debug(f"{message}: {error}")
        return OperationFailed(message, error.errno)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def set_options(self, options: SocketOptions) -> None:
        """Apply socket options. The state is unchanged."""
        self._require(Operation.SET_OPTIONS)
        raw = self._handle.get()
        try:
            raw.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, int(options.reuse_addr))
            if options.reuse_port and hasattr(socket, "SO_REUSEPORT"):
                raw.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEPORT, 1)
            raw.setsockopt(socket.SOL_SOCKET, socket.SO_KEEPALIVE, int(options.keep_alive))
            if self._type is SocketType.TCP:
                raw.setsockopt(socket.IPPROTO_TCP, socket.TCP_NODELAY, int(options.no_delay))
            raw.setblocking(options.blocking)
            if options.send_timeout is not None:
                raw.setsockopt(socket.SOL_SOCKET, socket.SO_SNDTIMEO, _timeval(options.send_timeout))
            if options.recv_timeout is not None:
                raw.setsockopt(socket.SOL_SOCKET, socket.SO_RCVTIMEO, _timeval(options.recv_timeout))
            if options.send_buffer_size is not None:
                raw.setsockopt(socket.SOL_SOCKET, socket.SO_SNDBUF, options.send_buffer_size)
            if options.recv_buffer_size is not None:
                raw.setsockopt(socket.SOL_SOCKET, socket.SO_RCVBUF, options.recv_buffer_size)
        except OSError as e:
            raise self._failed("Unable to set socket options", e) from e

    def bind(self, endpoint: Endpoint) -> None:
        """Bind to ``endpoint``. CREATED -> BOUND."""
        next_state = self._require(Operation.BIND)
        try:
            self._handle.get().bind(endpoint.sockaddr)
        except OSError as e:
            raise self._failed(f"Unable to bind to {endpoint}", e) from e
        self._state = next_state

    def listen(self, backlog: int = DEFAULT_BACKLOG) -> None:
        """Start listening. BOUND -> LISTENING, TCP only."""
        if self._type is not SocketType.TCP:
            self._last_error = errno.EOPNOTSUPP
            raise UnsupportedOperation(f"listen() is not supported for {self._type.name} sockets")
        next_state = self._require(Operation.LISTEN)
        try:
            self._handle.get().listen(backlog)
        except OSError as e:
            raise self._failed("Unable to listen", e) from e
        self._state = next_state

    def accept(self) -> tuple["Socket", Endpoint]:
        """Block until a peer connects.

        Returns:
            tuple: New CONNECTED socket owning the client descriptor, and the
            peer's endpoint.

        Raises:
            InvalidState: If the socket is not listening.
            OperationFailed: If accept() fails or is interrupted.
        """
        self._require(Operation.ACCEPT)
        try:
            raw, address = self._handle.get().accept()
        except OSError as e:
            raise self._failed("Unable to accept connection", e) from e
        client = Socket._adopt(Handle(raw), self._type)
        return client, Endpoint.from_sockaddr(address)

    def connect(self, endpoint: Endpoint) -> None:
        """Connect to ``endpoint``, blocking until the handshake completes."""
        next_state = self._require(Operation.CONNECT)
        try:
            self._handle.get().connect(endpoint.sockaddr)
        except OSError as e:
            raise self._failed(f"Unable to connect to {endpoint}", e) from e
        self._state = next_state

    def shutdown(self, read: bool = True, write: bool = True) -> None:
        """Disable reads and/or writes. Directions already shut are skipped.

        Raises:
            OperationFailed: If there is no valid handle (including after
                close), no direction was requested, or the OS call fails.
        """
        if not self._handle.is_valid():
            self._last_error = errno.EBADF
            raise OperationFailed("Socket has no valid handle", errno.EBADF)
        self._require(Operation.SHUTDOWN)
        if not read and not write:
            self._last_error = errno.EINVAL
            raise OperationFailed("shutdown() needs at least one direction", errno.EINVAL)

        read = read and not self._shut_read
        write = write and not self._shut_write
        if not read and not write:
            return

        if read and write:
            how = socket.SHUT_RDWR
        elif read:
            how = socket.SHUT_RD
        else:
            how = socket.SHUT_WR

        try:
            self._handle.get().shutdown(how)
        except OSError as e:
            raise self._failed("Unable to shut down socket", e) from e
        self._shut_read = self._shut_read or read
        self._shut_write = self._shut_write or write

    def close(self) -> None:
        """Release the handle and move to CLOSED. Repeated calls do nothing."""
        if self._state is SocketState.CLOSED:
            return
        self._handle.close()
        self._state = SocketState.CLOSED

    def __enter__(self) -> "Socket":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Addresses
    # ------------------------------------------------------------------

    def local_address(self) -> Endpoint:
        """Endpoint the socket is bound to."""
        self._require(Operation.LOCAL_ADDRESS)
        try:
            return Endpoint.from_sockaddr(self._handle.get().getsockname())
        except OSError as e:
            raise self._failed("Unable to read local address", e) from e

    def remote_address(self) -> Endpoint:
        """Endpoint of the connected peer."""
        self._require(Operation.REMOTE_ADDRESS)
        try:
            return Endpoint.from_sockaddr(self._handle.get().getpeername())
        except OSError as e:
            raise self._failed("Unable to read peer address", e) from e

    # ------------------------------------------------------------------
    # Data transfer
    # ------------------------------------------------------------------

    def send(self, data: bytes) -> int:
        """Send once and return how many bytes the OS accepted."""
        self._require(Operation.SEND)
        try:
            return self._handle.get().send(data, SEND_FLAGS)
        except OSError as e:
            raise self._failed("Unable to send data", e) from e

    def send_all(self, data: bytes) -> int:
        """Send every byte of ``data`` and return its length."""
        self._require(Operation.SEND)
        try:
            self._handle.get().sendall(data, SEND_FLAGS)
        except OSError as e:
            raise self._failed("Unable to send data", e) from e
        return len(data)

    def receive(self, max_bytes: int = DEFAULT_MAX_LENGTH) -> bytes:
        """Receive up to ``max_bytes``. Empty bytes means the peer closed."""
        self._require(Operation.RECEIVE)
        try:
            return self._handle.get().recv(max_bytes)
        except OSError as e:
            raise self._failed("Unable to receive data", e) from e

    def receive_into(self, buffer: bytearray | memoryview) -> int:
        """Receive into ``buffer``. Zero means the peer closed."""
        self._require(Operation.RECEIVE)
        try:
            return self._handle.get().recv_into(buffer)
        except OSError as e:
            raise self._failed("Unable to receive data", e) from e

    def _receive_byte(self) -> bytes:
        try:
            return self._handle.get().recv(1)
        except OSError as e:
            raise self._failed("Unable to receive data", e) from e

    def receive_line(self, max_length: int = DEFAULT_MAX_LENGTH) -> bytes:
        """Read up to and including a line feed.

        Stops at the line feed, after ``max_length`` bytes, or at EOF,
        whichever comes first. A truncated line is returned as is.
        """
        self._require(Operation.RECEIVE)
        result = bytearray()
        while len(result) < max_length:
            byte = self._receive_byte()
            if not byte:
                break
            result += byte
            if byte == LINE_FEED:
                break
        return bytes(result)

    def receive_until(self, delimiter: bytes, max_length: int = DEFAULT_MAX_LENGTH) -> bytes:
        """Read until the received bytes end with ``delimiter``.

        Stops right after the delimiter, after ``max_length`` bytes, or at
        EOF. Bytes that follow the delimiter are left unread.
        """
        if not delimiter:
            raise ValueError("delimiter must not be empty")
        self._require(Operation.RECEIVE)
        result = bytearray()
        while len(result) < max_length:
            byte = self._receive_byte()
            if not byte:
                break
            result += byte
            if result.endswith(delimiter):
                break
        return bytes(result)

    def __repr__(self) -> str:
        return (
            f"Socket(type={self._type.name}, state={self._state.value}, fd={self.fileno})"
        )
