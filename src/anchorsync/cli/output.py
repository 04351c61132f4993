#!/usr/bin/env python
"""
Output formatting with Rich console.
"""

from __future__ import annotations

from rich.console import Console
from rich.table import Table
from rich.theme import Theme


custom_theme = Theme({
    "info": "cyan",
    "warning": "yellow",
    "error": "red",
    "success": "green",
})


class ConsoleOutput:
    """Console output with Rich formatting."""

    def __init__(self, console: Console | None = None):
        self.console = console or Console(theme=custom_theme)

    def print(self, text: str = "", **kwargs):
        """Print text to console."""
        self.console.print(text, **kwargs)

    def print_table(self, table: Table):
        self.console.print(table)

    def print_error(self, text: str):
        """Print error text."""
        self.console.print(f"[red]Error:[/red] {text}")

    def print_success(self, text: str):
        """Print success text."""
        self.console.print(f"[green]Success:[/green] {text}")

    def print_warning(self, text: str):
        """Print warning text."""
        self.console.print(f"[yellow]Warning:[/yellow] {text}")
