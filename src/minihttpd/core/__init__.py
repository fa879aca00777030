"""Core file server implementation.

This package contains the core components of the server:
- Socket layer (handle ownership, endpoints, the socket state machine)
- HTTP/1.0 request parsing and response writing
- The single-threaded accept loop
- Network interface helpers
- Exception handling

The command-line layer only wires these pieces together; everything with
behavior worth testing lives here.
"""
