"""Synchronization commands for the confsync CLI.

Commands:
- import: Import the stored configuration (pulling first by default)
- check: Check the storage repository for updates
- export: Export the current configuration to a directory
- restore: Re-apply the last imported configuration
- status: Compare the current, last imported and stored configuration
"""

from __future__ import annotations

from pathlib import Path

import click

from confsync.client.actions import Actions, StatusReport
from confsync.client.cli.runner import run_user_flow


@click.command("import")
@click.option("--no-pull", is_flag=True, help="Import without pulling; only warn when fetching fails.")
def import_cmd(no_pull: bool) -> None:
    """Import the stored configuration into the editor.

    Fetches and fast-forwards the storage repository, then applies the
    stored configuration if it differs from the current one.
    """
    if no_pull:
        run_user_flow(Actions.import_data_without_pull)
    else:
        run_user_flow(Actions.import_data)


@click.command()
def check() -> None:
    """Check the storage repository for updates."""
    run_user_flow(Actions.check_for_updates)


@click.command()
@click.argument("path", required=False, type=click.Path(file_okay=False, path_type=Path))
def export(path: Path | None) -> None:
    """Export the current configuration to PATH.

    Without PATH, asks for a directory (defaulting to the storage directory).
    """
    run_user_flow(lambda actions: actions.export_current_data(path))


@click.command()
def restore() -> None:
    """Re-apply the last imported configuration, discarding local edits."""
    run_user_flow(Actions.reimport_last_imported)


def _category_state(key: str, report: StatusReport) -> str:
    states = []
    if key in report.locally_modified:
        states.append("modified locally")
    if key in report.pending_import:
        states.append("differs from storage")
    return ", ".join(states) or "in sync"


@click.command()
def status() -> None:
    """Show where the configuration lives and which categories differ."""
    report = run_user_flow(Actions.status)

    for name in ("current", "lastImported", "stored"):
        location = report.locations.get(name)
        click.echo(f"{name + ':':<14}{location if location is not None else '(not set)'}")
    click.echo("")
    for partial in report.current:
        click.echo(f"  {partial.key:<18}{_category_state(partial.key, report)}")
