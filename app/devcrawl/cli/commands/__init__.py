"""CLI commands for devcrawl.

This package contains all subcommand implementations.
"""

from devcrawl.cli.commands import config, scan

__all__ = ["config", "scan"]
