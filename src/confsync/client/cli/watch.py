"""Background update checks for the confsync CLI.

Commands:
- watch: Check for configuration updates periodically until interrupted
"""

from __future__ import annotations

import logging

import click

from confsync.client.actions import Actions
from confsync.client.cli.runner import run_flow
from confsync.client.notifications import (
    APP_NAME,
    DesktopPresenter,
    MessageKind,
    Notification,
    send_notification,
)
from confsync.client.scheduler import PeriodicJob
from confsync.client.settings import Configuration

logger = logging.getLogger(__name__)


def background_check() -> None:
    """One background update check; failures raise after a desktop notification."""
    try:
        run_flow(Actions.check_for_updates, called_by_user=False, presenter=DesktopPresenter())
    except Exception as e:
        send_notification(Notification(APP_NAME, f"confsync failed: {e}.", MessageKind.ERROR))
        raise


def _interval() -> float:
    return Configuration().updates_check_interval


@click.command()
@click.option("--once", is_flag=True, help="Stop after the first successful check.")
def watch(once: bool) -> None:
    """Check for configuration updates periodically.

    Runs until interrupted with Ctrl+C. Results are shown as desktop
    notifications; identical consecutive messages are shown once.
    """
    config = Configuration()
    job = PeriodicJob(
        interval=_interval,
        callback=background_check,
        single=once or config.single_updates_check,
        name="Background update check",
    )

    click.echo(f"Checking for updates every {config.updates_check_interval:g}s. Press Ctrl+C to stop.")
    job.start(immediate_run=True)
    try:
        while not job.stopped.wait(1):
            pass
    except KeyboardInterrupt:
        click.echo("\nStopping...")
    finally:
        job.stop()
