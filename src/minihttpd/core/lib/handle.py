"""Exclusive ownership of an OS socket.

A ``Handle`` owns at most one ``socket.socket``. Ownership moves with
``take()``, which leaves the source empty, so two live handles never refer to
the same descriptor and the descriptor is closed exactly once: on ``reset()``,
``close()``, or when the owning handle is garbage collected.

An empty handle is the "closed" sentinel: ``get()`` on it raises
``InvalidState`` instead of handing out a dead socket.

Example:
    handle = Handle(socket.socket(socket.AF_INET, socket.SOCK_STREAM))
    moved = handle.take()
    assert not handle and moved.is_valid()
    moved.close()
"""

import socket

from minihttpd.core.exceptions import InvalidState


class Handle:
    """Move-only owner of a single OS socket."""

    __slots__ = ("_sock",)

    def __init__(self, sock: socket.socket | None = None) -> None:
        self._sock = sock

    def is_valid(self) -> bool:
        """Return True while a socket is owned."""
        return self._sock is not None

    def __bool__(self) -> bool:
        return self.is_valid()

    def get(self) -> socket.socket:
        """Return the owned socket, raising if the handle is empty."""
        if self._sock is None:
            raise InvalidState("handle does not own a socket")
        return self._sock

    def fileno(self) -> int:
        """Return the OS descriptor, or -1 for an empty handle."""
        if self._sock is None:
            return -1
        return self._sock.fileno()

    def take(self) -> "Handle":
        """Move ownership into a new handle; this handle becomes empty."""
        moved = Handle(self._sock)
        self._sock = None
        return moved

    def release(self) -> socket.socket | None:
        """Give up ownership without closing and return the socket."""
        sock, self._sock = self._sock, None
        return sock

    def reset(self, sock: socket.socket | None = None) -> None:
        """Close the owned socket (if any) and adopt ``sock``."""
        if sock is not None and sock is self._sock:
            return
        old, self._sock = self._sock, sock
        if old is not None:
            old.close()

    def close(self) -> None:
        """Close the owned socket. Safe to call repeatedly."""
        self.reset()

    def __enter__(self) -> "Handle":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __del__(self) -> None:
        # Attribute may be missing if __init__ never ran
        if getattr(self, "_sock", None) is not None:
            self.close()

    def __repr__(self) -> str:
        return f"Handle(fd={self.fileno()})"
