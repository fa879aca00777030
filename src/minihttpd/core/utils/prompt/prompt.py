"""Shared console for user-facing output."""

from rich.console import Console

console = Console()
