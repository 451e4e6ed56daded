"""CLI package for devcrawl.

This package contains the Typer application and all subcommands.
"""

from devcrawl.cli.main import app

__all__ = ["app"]
