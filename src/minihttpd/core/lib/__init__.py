"""Core server library components."""

from .endpoint import LOCALHOST, Endpoint
from .file_server import FileServer, run_server
from .handle import Handle
from .http_handler import ConnectionHandler, Method, Request, is_valid_path, parse_request
from .response import ResponseWriter, content_type_for
from .server_stats import ServerStats, StatsSnapshot
from .tcp_socket import Socket, SocketOptions, SocketState, SocketType

__all__ = [
    "ConnectionHandler",
    "content_type_for",
    "Endpoint",
    "FileServer",
    "Handle",
    "is_valid_path",
    "LOCALHOST",
    "Method",
    "parse_request",
    "Request",
    "ResponseWriter",
    "run_server",
    "ServerStats",
    "Socket",
    "SocketOptions",
    "SocketState",
    "SocketType",
    "StatsSnapshot",
]
