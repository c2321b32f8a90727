"""Storage directory commands for the confsync CLI.

Commands:
- set-storage: Choose the directory holding the shared configuration
- open-storage: Open the storage directory in the file browser
"""

from __future__ import annotations

from pathlib import Path

import click

from confsync.client.actions import Actions
from confsync.client.cli.runner import run_user_flow


@click.command("set-storage")
@click.argument(
    "directory",
    required=False,
    type=click.Path(exists=True, file_okay=False, path_type=Path),
)
def set_storage(directory: Path | None) -> None:
    """Use DIRECTORY (inside a Git working tree) as storage.

    Without DIRECTORY, asks for one.
    """
    run_user_flow(lambda actions: actions.set_storage_directory(directory))


@click.command("open-storage")
def open_storage() -> None:
    """Open the storage directory in the file browser."""
    run_user_flow(Actions.open_storage_directory)
