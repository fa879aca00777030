"""IPv4 endpoint value type.

An ``Endpoint`` is an immutable (family, address, port) triple. Addresses are
parsed from dotted-decimal text with ``inet_pton`` so that anything the OS
would not accept (``"999.1.1.1"``, ``"abc"``, ``""``) is rejected up front
with ``InvalidAddress``.

Example:
    endpoint = Endpoint("127.0.0.1", 8080)
    assert endpoint.ip == "127.0.0.1"
    assert endpoint.port == 8080
    assert str(endpoint) == "127.0.0.1:8080"
"""

import functools
import socket
import struct
from typing import Final

from minihttpd.core.exceptions import InvalidAddress

LOCALHOST: Final = "127.0.0.1"
ANY_ADDRESS: Final = "0.0.0.0"  # noqa: S104
MAX_PORT: Final = 65535


@functools.total_ordering
class Endpoint:
    """IPv4 address and port, compared by (family, address, port)."""

    __slots__ = ("_family", "_address", "_port")

    def __init__(self, address: str = ANY_ADDRESS, port: int = 0) -> None:
        """Build an endpoint from dotted-decimal text and a port.

        Args:
            address: IPv4 address such as ``"192.168.1.10"``
            port: Port number in host byte order (0-65535)

        Raises:
            InvalidAddress: If the address is not dotted-decimal IPv4 or the
                port does not fit in 16 bits.
        """
        try:
            packed = socket.inet_pton(socket.AF_INET, address)
        except (OSError, TypeError, ValueError) as e:
            raise InvalidAddress(f"Invalid IPv4 address supplied: {address!r}") from e

        if isinstance(port, bool) or not isinstance(port, int) or not 0 <= port <= MAX_PORT:
            raise InvalidAddress(f"Invalid port supplied: {port!r}")

        self._family = socket.AF_INET
        self._address: int = struct.unpack("!I", packed)[0]
        self._port = port

    @classmethod
    def from_sockaddr(cls, sockaddr: tuple[str, int]) -> "Endpoint":
        """Build an endpoint from a ``(host, port)`` tuple returned by the OS."""
        host, port = sockaddr[:2]
        return cls(host, port)

    @classmethod
    def localhost(cls, port: int = 0) -> "Endpoint":
        """Endpoint on the loopback address."""
        return cls(LOCALHOST, port)

    @property
    def family(self) -> socket.AddressFamily:
        return self._family

    @property
    def ip(self) -> str:
        """Dotted-decimal address text."""
        return socket.inet_ntop(socket.AF_INET, struct.pack("!I", self._address))

    @property
    def ip_value(self) -> int:
        """Numeric address in host byte order."""
        return self._address

    @property
    def port(self) -> int:
        return self._port

    @property
    def sockaddr(self) -> tuple[str, int]:
        """Address in the form the ``socket`` module expects."""
        return (self.ip, self._port)

    def _key(self) -> tuple[int, int, int]:
        return (int(self._family), self._address, self._port)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Endpoint):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other: "Endpoint") -> bool:
        if not isinstance(other, Endpoint):
            return NotImplemented
        return self._key() < other._key()

    def __hash__(self) -> int:
        return hash(self._key())

    def __str__(self) -> str:
        return f"{self.ip}:{self._port}"

    def __repr__(self) -> str:
        return f"Endpoint({self.ip!r}, {self._port})"
