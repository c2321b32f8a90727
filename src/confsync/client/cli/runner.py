"""Shared plumbing for CLI commands: logging setup and running flows."""

from __future__ import annotations

import asyncio
import logging
import sys
from collections.abc import Awaitable, Callable
from typing import NoReturn, TypeVar

import click

from confsync.client.actions import Actions, action_lock
from confsync.client.notifications import ConsolePresenter, MessagePresenter
from confsync.client.settings import Configuration
from confsync.core.process import OperationalError

logger = logging.getLogger(__name__)

T = TypeVar("T")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(verbose: bool = False) -> None:
    """Configure the confsync logger to write to stderr.

    Args:
        verbose: Log at DEBUG instead of INFO.
    """
    root_logger = logging.getLogger("confsync")
    root_logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    if not root_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root_logger.addHandler(handler)


def report_failure(err: BaseException) -> NoReturn:
    """Print an unexpected failure and exit."""
    logger.debug("Command failed", exc_info=err)
    click.echo(f"confsync failed: {err}.", err=True)
    sys.exit(1)


def run_flow(
    flow: Callable[[Actions], Awaitable[T]],
    called_by_user: bool = True,
    presenter: MessagePresenter | None = None,
) -> T:
    """Run one Actions flow to completion.

    Only one flow runs at a time in this process.
    """
    if not action_lock.acquire(blocking=False):
        raise RuntimeError("another confsync action is already running")
    try:
        actions = Actions(Configuration(), called_by_user, presenter or ConsolePresenter())
        return asyncio.run(flow(actions))
    finally:
        action_lock.release()


def run_user_flow(flow: Callable[[Actions], Awaitable[T]]) -> T:
    """Run a user-triggered flow, reporting unexpected failures."""
    try:
        return run_flow(flow)
    except (OperationalError, OSError, RuntimeError, ValueError) as e:
        report_failure(e)
