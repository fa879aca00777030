"""Terminal output helpers."""

from minihttpd.core.utils.prompt.prompt import console
from minihttpd.core.utils.prompt.server_ui import render_interfaces, render_stats

__all__ = ["console", "render_interfaces", "render_stats"]
