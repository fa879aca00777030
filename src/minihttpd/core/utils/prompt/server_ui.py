"""Rich tables for server statistics and local interfaces."""

from http import HTTPStatus

from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from minihttpd.core.lib.server_stats import StatsSnapshot
from minihttpd.core.network import LocalInterface
from minihttpd.core.utils.utils import format_bytes, format_duration


def _status_label(code: int) -> str:
    try:
        return f"{code} {HTTPStatus(code).phrase}"
    except ValueError:
        return str(code)


def render_stats(snapshot: StatsSnapshot) -> Panel:
    """Build the shutdown summary panel."""
    table = Table(show_header=False, box=None, padding=(0, 1))
    table.add_column("Property", style="cyan", no_wrap=True)
    table.add_column("Value", style="green", no_wrap=True)

    table.add_row("Uptime", format_duration(snapshot.uptime_seconds))
    table.add_row("Connections", str(snapshot.connections))
    for code in sorted(snapshot.responses):
        table.add_row(f"  {_status_label(code)}", str(snapshot.responses[code]))
    if snapshot.failed_connections:
        table.add_row("Failed", f"[red]{snapshot.failed_connections}[/red]")
    table.add_row("Bytes Sent", format_bytes(snapshot.bytes_sent))

    title = Text("Server Statistics", style="bold cyan")
    return Panel(table, title=title, border_style="blue", padding=(1, 2))


def render_interfaces(interfaces: list[LocalInterface]) -> Table:
    """Build a table of local IPv4 interfaces."""
    table = Table(title="Local IPv4 Interfaces")
    table.add_column("Interface", style="cyan")
    table.add_column("IP Address", style="green")
    table.add_column("Status")

    for iface in interfaces:
        status = "[green]up[/green]" if iface.is_up else "[red]down[/red]"
        table.add_row(iface.name, iface.ip, status)
    return table
