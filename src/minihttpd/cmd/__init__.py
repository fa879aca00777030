"""Command line interface modules.

This package provides the command-line entry points for:
- Starting the file server
- Listing local interfaces to bind to
- Selecting the log level
"""
