"""Command-line interface for the file server.

This module provides the main command-line interface, handling:
- Command-line option parsing (on top of ``MINIHTTPD_*`` environment values)
- Log level selection
- Bind address validation
- Free port selection when the requested port is taken
- Server lifecycle and the shutdown summary

The CLI is built using Typer and provides commands for:
- Serving the data directory
- Listing local interfaces to bind to

Example:
    # Run from command line:
    $ minihttpd serve --port 1701 --data-dir data --debug
"""

from pathlib import Path

import typer
from loguru import logger

from minihttpd import __version__
from minihttpd.config import ServerConfig
from minihttpd.core.exceptions import ConfigError, SocketError
from minihttpd.core.network import find_available_port, is_local_address, list_interfaces
from minihttpd.core.server import run_server
from minihttpd.core.utils.log_config import configure_logging
from minihttpd.core.utils.prompt import console, render_interfaces, render_stats

app = typer.Typer(help="Minimal HTTP/1.0 file server")


@app.callback(invoke_without_command=True)
def version_callback():
    """Show version information."""
    console.print(f"[cyan]minihttpd v{__version__}[/cyan]")


@app.command(name="serve")
def serve(
    host: str | None = typer.Option(None, "--host", "-H", help="IPv4 address to listen on"),
    port: int | None = typer.Option(None, "--port", "-p", help="Port to listen on"),
    backlog: int | None = typer.Option(None, "--backlog", help="Listen queue depth"),
    data_dir: Path | None = typer.Option(
        None, "--data-dir", help="Directory to serve files from"
    ),
    log_level: str | None = typer.Option(None, "--log-level", help="Console log level"),
    debug: bool = typer.Option(default=False, help="Enable debug logging"),
    find_port: bool | None = typer.Option(
        None,
        "--find-port/--no-find-port",
        help="Pick a random free port if the requested one is taken",
    ),
):
    """Serve fileN.html and imageN.jpg from the data directory."""
    try:
        config = ServerConfig.from_env()
    except ConfigError as e:
        console.print(f"[red]Error: {e}")
        raise typer.Exit(code=1) from e

    if host is not None:
        config.host = host
    if port is not None:
        config.port = port
    if backlog is not None:
        config.backlog = backlog
    if data_dir is not None:
        config.data_dir = data_dir
    if log_level is not None:
        config.log_level = log_level.upper()
    if find_port is not None:
        config.find_free_port = find_port
    if debug:
        config.log_level = "DEBUG"

    try:
        config.validate()
    except ConfigError as e:
        console.print(f"[red]Error: {e}")
        raise typer.Exit(code=1) from e

    configure_logging(config.log_level)
    logger.info("Starting file server")

    if not is_local_address(config.host):
        logger.error(f"{config.host} is not assigned to any local interface")
        console.print(f"[red]{config.host} is not an address of this machine.")
        console.print("[yellow]Run 'minihttpd interfaces' to list usable addresses.")
        raise typer.Exit(code=1)

    if config.find_free_port and config.port != 0:
        available = find_available_port(config.port, host=config.host)
        if available is None:
            logger.critical("Could not find an available port to start the server")
            console.print("[red]No available port found")
            raise typer.Exit(code=1)
        config.port = available

    if not config.data_dir.is_dir():
        logger.warning(f"Data directory {config.data_dir} does not exist; every request will 404")

    console.print(
        f"[green]Serving {config.data_dir} on http://{config.host}:{config.port} (Ctrl+C to stop)"
    )
    try:
        server = run_server(
            config.endpoint,
            data_dir=config.data_dir,
            backlog=config.backlog,
            max_header_size=config.max_header_size,
        )
    except SocketError as e:
        logger.error(f"Failed to start server: {e}")
        console.print(f"[red]Error: {e}")
        raise typer.Exit(code=1) from e

    console.print(render_stats(server.stats.snapshot()))
    console.print("[yellow]Server stopped")


@app.command(name="interfaces")
def interfaces():
    """List local IPv4 addresses that can be passed to --host."""
    found = list_interfaces()
    if not found:
        console.print("[red]No IPv4 interfaces found")
        raise typer.Exit(code=1)
    console.print(render_interfaces(found))


if __name__ == "__main__":
    app()
