"""Rich console helpers for the labctl CLI."""

from __future__ import annotations

from rich.console import Console
from rich.markup import escape


def get_console(stderr: bool = False) -> Console:
    """Create a Rich Console that auto-detects TTY for graceful pipe degradation."""
    return Console(stderr=stderr, soft_wrap=True)


def format_error(message: str, console: Console) -> None:
    """Display an error message."""
    console.print(f"[red]Error:[/red] {escape(message)}", highlight=False)
