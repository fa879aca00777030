"""Network interface lookup and port selection.

This module provides functionality for:
- Listing local IPv4 interfaces
- Checking that a bind address belongs to this machine
- Finding a free port when the requested one is taken

Ports are probed by actually binding a socket on the target address with the
same SO_REUSEADDR setting the listener uses, so ports holding only TIME_WAIT
connections count as free. The probe socket is closed straight away, so
another process can still grab the port before the server binds it.

Example:
    port = find_available_port(1701)
    if port is not None and is_local_address("127.0.0.1"):
        print(f"Serving on 127.0.0.1:{port}")
"""

import random
import socket
from dataclasses import dataclass
from typing import Final

import psutil
from loguru import logger

from minihttpd.core.exceptions import SocketError
from minihttpd.core.lib.endpoint import ANY_ADDRESS, LOCALHOST, MAX_PORT, Endpoint
from minihttpd.core.lib.tcp_socket import Socket, SocketOptions

MIN_UNPRIVILEGED_PORT: Final = 1024
DEFAULT_PORT_ATTEMPTS: Final = 100


@dataclass
class LocalInterface:
    """Local network interface with an IPv4 address.

    Attributes:
        name: Interface name (e.g., 'lo', 'eth0', 'en0')
        ip: IPv4 address assigned to the interface
        is_up: Whether the interface is up
    """

    name: str
    ip: str
    is_up: bool


def list_interfaces() -> list[LocalInterface]:
    """Return every interface that has an IPv4 address."""
    stats = psutil.net_if_stats()
    interfaces = []
    for name, addrs in psutil.net_if_addrs().items():
        iface_stats = stats.get(name)
        for addr in addrs:
            if addr.family == socket.AF_INET:
                interfaces.append(
                    LocalInterface(
                        name=name,
                        ip=addr.address,
                        is_up=bool(iface_stats and iface_stats.isup),
                    )
                )
    return interfaces


def is_local_address(ip: str) -> bool:
    """Check that ``ip`` is the wildcard address or assigned to this machine."""
    if ip == ANY_ADDRESS:
        return True
    return any(iface.ip == ip for iface in list_interfaces())


def _can_bind(host: str, port: int) -> bool:
    try:
        probe = Socket.create_bind(Endpoint(host, port), options=SocketOptions(reuse_addr=True))
    except SocketError as e:
        logger.debug(f"Port {port} unavailable: {e}")
        return False
    probe.close()
    return True


def find_available_port(
    start: int = MIN_UNPRIVILEGED_PORT,
    max_attempts: int = DEFAULT_PORT_ATTEMPTS,
    host: str = LOCALHOST,
) -> int | None:
    """Find a port that can be bound on ``host``.

    ``start`` is tried first, then up to ``max_attempts`` random ports in
    1024-65535.

    Args:
        start: Preferred port
        max_attempts: Number of random ports to try after ``start``
        host: Address to probe on

    Returns:
        int | None: A bindable port, or None if every attempt failed
    """
    if _can_bind(host, start):
        return start

    for _ in range(max_attempts):
        port = random.randint(MIN_UNPRIVILEGED_PORT, MAX_PORT)  # noqa: S311
        if _can_bind(host, port):
            logger.info(f"Port {start} is in use, picked {port} instead")
            return port

    return None
