"""Utility modules for devcrawl.

This module exports commonly used console helpers.
"""

from devcrawl.utils.formatting import (
    console,
    create_device_table,
    err_console,
    format_device_row,
    print_error,
    print_info,
    print_success,
    print_warning,
)

__all__ = [
    "console",
    "create_device_table",
    "err_console",
    "format_device_row",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
]
