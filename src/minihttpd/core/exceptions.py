"""Custom exceptions for the file server.

This module defines the exceptions used throughout the server implementation.
They give more specific error handling for:
- Socket allocation and OS call failures
- Malformed IPv4 addresses
- Operations attempted in the wrong socket state
- Operations the transport does not support
- Malformed HTTP requests
- Invalid configuration

Socket-layer exceptions carry the OS ``errno`` of the failure (when there is
one) so callers can inspect it without consulting the socket afterwards.

Example:
    try:
        client, peer = listener.accept()
    except InvalidState:
        console.print("[red]Socket is not listening")
    except OperationFailed as e:
        console.print(f"[red]accept() failed: {e} (errno {e.errno})")
"""

import errno as errno_codes
import os


class ServerError(Exception):
    """Base exception for file server errors."""


class SocketError(ServerError):
    """Base exception for socket layer failures."""

    def __init__(self, message: str, errno: int | None = None) -> None:
        super().__init__(message)
        self.errno = errno


class _OSFailure(SocketError):
    """Socket error raised from a failing OS call; renders the errno text."""

    def __str__(self) -> str:
        message = super().__str__()
        if self.errno is None:
            return message
        return f"{message}: {os.strerror(self.errno)}"


class CreationError(_OSFailure):
    """Raised when the OS refuses to allocate a socket."""


class OperationFailed(_OSFailure):
    """Raised when an OS socket call fails."""


class InvalidAddress(SocketError):
    """Raised when an address string or port cannot form an IPv4 endpoint."""

    def __init__(self, message: str) -> None:
        super().__init__(message, errno_codes.EINVAL)


class InvalidState(SocketError):
    """Raised when an operation is not allowed in the socket's current state."""

    def __init__(self, message: str) -> None:
        super().__init__(message, errno_codes.EINVAL)


class UnsupportedOperation(SocketError):
    """Raised when an operation is not valid for the socket's transport."""

    def __init__(self, message: str) -> None:
        super().__init__(message, errno_codes.EOPNOTSUPP)


class RequestError(ServerError):
    """Base exception for HTTP request handling errors."""


class MalformedRequestError(RequestError):
    """Raised when a request line cannot be parsed."""


class ConfigError(ServerError):
    """Raised when server configuration values are invalid."""
