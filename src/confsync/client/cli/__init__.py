"""Command-line interface for confsync.

This module provides the main CLI entry point and assembles all commands.

Commands:
- import: Import the stored configuration
- check: Check the storage repository for updates
- export: Export the current configuration
- restore: Re-apply the last imported configuration
- status: Compare the three configuration locations
- set-storage: Choose the storage directory
- open-storage: Open the storage directory
- watch: Check for updates periodically
"""

from __future__ import annotations

import click

from confsync.client.config import (
    get_config_dir,
    get_config_file,
    get_state_file,
    load_config,
    save_config,
)
from confsync.client.cli.runner import setup_logging
from confsync.client.cli.storage import open_storage, set_storage
from confsync.client.cli.sync import check, export, import_cmd, restore, status
from confsync.client.cli.watch import watch


@click.group()
@click.version_option(package_name="confsync")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
def cli(verbose: bool) -> None:
    """confsync - Keep editor configuration in sync through a Git repository."""
    setup_logging(verbose)


# Sync commands
cli.add_command(import_cmd)
cli.add_command(check)
cli.add_command(export)
cli.add_command(restore)
cli.add_command(status)

# Storage commands
cli.add_command(set_storage)
cli.add_command(open_storage)

# Background checks
cli.add_command(watch)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    # Main entry points
    "cli",
    "main",
    # Config utilities
    "get_config_dir",
    "get_config_file",
    "get_state_file",
    "load_config",
    "save_config",
]
