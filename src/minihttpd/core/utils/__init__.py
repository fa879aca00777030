"""Utility functions and helpers."""

from minihttpd.core.utils.prompt import console, render_interfaces, render_stats
from minihttpd.core.utils.utils import format_bytes, format_duration

__all__ = ["console", "format_bytes", "format_duration", "render_interfaces", "render_stats"]
