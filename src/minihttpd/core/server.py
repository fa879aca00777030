"""Main entry point for the file server.

This module exposes the pieces the command line needs from the core library
while keeping the socket layer and HTTP handling details out of the way.

Example:
    from minihttpd.core.server import Endpoint, run_server

    # Serve ./data on localhost:1701 until Ctrl+C
    run_server(Endpoint("127.0.0.1", 1701))

Attributes:
    __all__ (list): List of public components exposed by this module
"""

from .lib import Endpoint, FileServer, run_server

__all__ = ["Endpoint", "FileServer", "run_server"]
