"""Rich console formatting utilities.

Provides consistent formatting for CLI output using Rich.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

from devcrawl.core.theme import get_theme

if TYPE_CHECKING:
    from devcrawl.models.device import Device


def _detect_color_system() -> str | None:
    """Use truecolor on interactive terminals, let Rich auto-detect otherwise."""
    if sys.stdout.isatty():
        return "truecolor"
    return None


# Shared console instances (theme loaded once at import)
console = Console(theme=get_theme(), color_system=_detect_color_system())
err_console = Console(theme=get_theme(), stderr=True, color_system=_detect_color_system())


def create_device_table(title: str = "Devices") -> Table:
    """Create a pre-configured table for displaying devices.

    Args:
        title: Table title.

    Returns:
        Rich Table with identifier, subsystem, driver and node columns.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
        row_styles=["", "on grey7"],
    )
    table.add_column("Device", no_wrap=True)
    table.add_column("Subsystem")
    table.add_column("Driver")
    table.add_column("Node")
    return table


def format_device_row(device: Device) -> tuple[str, str, str, str]:
    """Format a device as a table row with Rich markup.

    Missing values are shown as a muted dash.

    Args:
        device: The device to format.

    Returns:
        Tuple of (identifier, subsystem, driver, device node).
    """
    dash = "[muted]-[/]"
    identifier = f"[device_path]{device.identifier}[/]"
    subsystem = f"[subsystem]{device.subsystem}[/]" if device.subsystem else dash
    driver = f"[driver]{device.driver}[/]" if device.driver else dash
    devname = f"[devname]/dev/{device.devname}[/]" if device.devname else dash
    return (identifier, subsystem, driver, devname)


def print_info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]{message}[/]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[warning]Warning:[/] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[error]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{message}[/]")
