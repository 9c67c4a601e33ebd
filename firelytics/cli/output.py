"""Console output helpers for the firelytics CLI."""

from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

console = Console()
err_console = Console(stderr=True)


def print_error(message: str, hint: str | None = None) -> None:
    """Print an error message, with an optional hint."""
    err_console.print(f"[bold red]Error:[/] {escape(message)}")
    if hint:
        err_console.print(f"[dim]{escape(hint)}[/]")


def print_success(message: str) -> None:
    console.print(f"[green]{escape(message)}[/]")


def print_info(message: str) -> None:
    console.print(f"[dim]{escape(message)}[/]")


def print_config(config: dict[str, Any]) -> None:
    """Print configuration sections as a table."""
    table = Table(show_header=True, header_style="bold")
    table.add_column("Key")
    table.add_column("Value")
    for section, values in config.items():
        for key, value in values.items():
            table.add_row(f"{section}.{key}", "-" if value is None else escape(str(value)))
    console.print(table)
