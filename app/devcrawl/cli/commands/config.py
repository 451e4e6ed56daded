"""Config commands.

Shows, locates and initializes the devcrawl configuration file.
"""

from pathlib import Path
from typing import Annotated

import typer

from devcrawl.core.paths import get_config_path
from devcrawl.core.settings import (
    DevcrawlSettings,
    SettingsError,
    dump_settings,
    load_settings_or_default,
    save_settings,
)
from devcrawl.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Manage the devcrawl configuration file.",
    no_args_is_help=True,
)


@app.command()
def path() -> None:
    """Print the configuration file location."""
    console.print(str(get_config_path()), markup=False, highlight=False, soft_wrap=True)


@app.command()
def show(
    config_path: Annotated[
        Path | None,
        typer.Option("--config", help="Show this file instead of the default."),
    ] = None,
) -> None:
    """Show the effective settings (defaults merged with the config file)."""
    try:
        settings = load_settings_or_default(config_path)
    except SettingsError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    console.print(dump_settings(settings), markup=False, highlight=False, soft_wrap=True)


@app.command()
def init(
    force: Annotated[
        bool,
        typer.Option("--force", help="Overwrite an existing config file."),
    ] = False,
    config_path: Annotated[
        Path | None,
        typer.Option("--config", help="Write to this file instead of the default."),
    ] = None,
) -> None:
    """Write a config file with the default settings."""
    target = config_path or get_config_path()
    if target.exists() and not force:
        print_info(f"Config file already exists: {target} (use --force to overwrite)")
        raise typer.Exit(code=1)

    try:
        written = save_settings(DevcrawlSettings(), target)
    except SettingsError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    print_success(f"Config written to {written}")
