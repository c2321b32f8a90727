"""User-visible messages and confirmations.

This module provides:
- Native OS notifications (Windows toast, macOS notification center, Linux notify-send)
- Presenters: console output for user-triggered commands, desktop
  notifications for background checks
- Notifications: every message an action can report, with its follow-up actions
- Confirmations: yes/no questions asked before destructive steps
"""

from __future__ import annotations

import asyncio
import logging
import platform
import subprocess
import sys
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Protocol

import click

if TYPE_CHECKING:
    from confsync.client.settings import Configuration
    from confsync.core.process import OperationalError

logger = logging.getLogger(__name__)

APP_NAME = "confsync"

# Commands a notification action can trigger
IMPORT_DATA_COMMAND = "import"
SET_STORAGE_DIRECTORY_COMMAND = "set-storage"


class MessageKind(str, Enum):
    """Severity of a message."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class Notification:
    """Represents a desktop notification to display."""

    title: str
    message: str
    kind: MessageKind = MessageKind.INFO


def _notify_windows(notification: Notification) -> bool:
    """Send notification on Windows using PowerShell toast.

    Args:
        notification: The notification to send.

    Returns:
        True if notification was sent successfully.
    """
    try:
        ps_script = f'''
        [Windows.UI.Notifications.ToastNotificationManager, Windows.UI.Notifications, ContentType = WindowsRuntime] | Out-Null
        [Windows.Data.Xml.Dom.XmlDocument, Windows.Data.Xml.Dom.XmlDocument, ContentType = WindowsRuntime] | Out-Null

        $template = @"
        <toast>
            <visual>
                <binding template="ToastText02">
                    <text id="1">{notification.title}</text>
                    <text id="2">{notification.message}</text>
                </binding>
            </visual>
        </toast>
"@

        $xml = New-Object Windows.Data.Xml.Dom.XmlDocument
        $xml.LoadXml($template)
        $toast = New-Object Windows.UI.Notifications.ToastNotification $xml
        [Windows.UI.Notifications.ToastNotificationManager]::CreateToastNotifier("{APP_NAME}").Show($toast)
        '''

        subprocess.run(
            ["powershell", "-ExecutionPolicy", "Bypass", "-Command", ps_script],
            capture_output=True,
            check=False,
            creationflags=getattr(subprocess, "CREATE_NO_WINDOW", 0),
        )
        return True
    except OSError as e:
        logger.debug("Windows notification failed: %s", e)
        return False


def _notify_macos(notification: Notification) -> bool:
    """Send notification on macOS using osascript."""
    try:
        title = notification.title.replace('"', '\\"')
        message = notification.message.replace('"', '\\"')

        script = f'display notification "{message}" with title "{title}"'
        subprocess.run(["osascript", "-e", script], capture_output=True, check=True)
        return True
    except (OSError, subprocess.CalledProcessError) as e:
        logger.debug("macOS notification failed: %s", e)
        return False


def _notify_linux(notification: Notification) -> bool:
    """Send notification on Linux using notify-send."""
    urgency = "critical" if notification.kind == MessageKind.ERROR else "normal"
    try:
        subprocess.run(
            [
                "notify-send",
                "--urgency", urgency,
                "--app-name", APP_NAME,
                notification.title,
                notification.message,
            ],
            capture_output=True,
            check=True,
        )
        return True
    except FileNotFoundError:
        logger.debug("notify-send not found")
        return False
    except (OSError, subprocess.CalledProcessError) as e:
        logger.debug("Linux notification failed: %s", e)
        return False


def send_notification(notification: Notification) -> bool:
    """Send a system notification.

    Returns:
        True if notification was sent, False if failed or unavailable.
    """
    system = platform.system()

    if system == "Windows":
        return _notify_windows(notification)
    elif system == "Darwin":
        return _notify_macos(notification)
    elif system == "Linux":
        return _notify_linux(notification)
    else:
        logger.warning("Notifications not supported on %s", system)
        return False


# =============================================================================
# Presenters
# =============================================================================


class MessagePresenter(Protocol):
    """Shows messages and collects the user's answers."""

    async def show(self, kind: MessageKind, message: str, choices: list[str]) -> str | None:
        """Show *message* and return the chosen entry of *choices*, if any."""
        ...

    async def ask_directory(self, title: str, default: str = "") -> str | None:
        """Ask for a directory; None when the user cancels or cannot answer."""
        ...


_KIND_COLORS = {
    MessageKind.INFO: "green",
    MessageKind.WARNING: "yellow",
    MessageKind.ERROR: "red",
}


class ConsolePresenter:
    """Presenter for commands run from a terminal.

    Choices are offered as a numbered menu when stdin is a terminal;
    otherwise no choice is made.
    """

    def __init__(self, interactive: bool | None = None) -> None:
        self.interactive = sys.stdin.isatty() if interactive is None else interactive

    async def show(self, kind: MessageKind, message: str, choices: list[str]) -> str | None:
        click.secho(message, fg=_KIND_COLORS[kind], err=kind == MessageKind.ERROR)
        if not choices or not self.interactive:
            return None

        for index, choice in enumerate(choices, start=1):
            click.echo(f"  {index}) {choice}")
        click.echo("  0) Dismiss")
        answer = click.prompt("Choose", type=click.IntRange(0, len(choices)), default=0)
        if answer == 0:
            return None
        return choices[answer - 1]

    async def ask_directory(self, title: str, default: str = "") -> str | None:
        if not self.interactive:
            return None
        answer = click.prompt(
            title,
            type=click.Path(file_okay=False),
            default=default or None,
        )
        return str(answer) if answer else None


class DesktopPresenter:
    """Presenter for background checks: native notifications, no answers."""

    async def show(self, kind: MessageKind, message: str, choices: list[str]) -> str | None:
        logger.info("%s: %s", kind.value, message)
        await asyncio.to_thread(send_notification, Notification(APP_NAME, message, kind))
        return None

    async def ask_directory(self, title: str, default: str = "") -> str | None:
        return None


# =============================================================================
# Domain messages
# =============================================================================

Action = Callable[[], Awaitable[None]]
DirectoryOpener = Callable[[Path], Awaitable[None]]
CommandRunner = Callable[[str], Awaitable[None]]


async def _no_command(command: str) -> None:
    logger.debug("No runner for command %s", command)


class Notifications:
    """Renders every message an action reports.

    Background runs suppress a message identical to the previous one;
    user-triggered runs always show it.
    """

    _last_message: str = ""

    def __init__(
        self,
        called_by_user: bool,
        config: Configuration,
        presenter: MessagePresenter,
        opener: DirectoryOpener,
        run_command: CommandRunner = _no_command,
    ) -> None:
        self.called_by_user = called_by_user
        self.config = config
        self.presenter = presenter
        self.opener = opener
        self.run_command = run_command

    @classmethod
    def reset_last_message(cls) -> None:
        cls._last_message = ""

    def _open(self, path: Path | str) -> Action:
        async def _action() -> None:
            await self.opener(Path(path))

        return _action

    def _command(self, command: str) -> Action:
        async def _action() -> None:
            await self.run_command(command)

        return _action

    def _repository_actions(self, root: Path | str) -> dict[str, Action]:
        actions: dict[str, Action] = {}
        if str(root) != self.config.storage_directory:
            actions["Open root of the repository"] = self._open(root)
        actions["Open storage directory"] = self._open(self.config.storage_directory)
        return actions

    async def operation_error(self, err: OperationalError) -> None:
        if not self.called_by_user and self.config.silent_git_failures:
            return
        await self.show_message(MessageKind.ERROR, str(err))

    async def operation_warning(self, err: OperationalError) -> None:
        if not self.called_by_user and self.config.silent_git_failures:
            return
        await self.show_message(MessageKind.WARNING, str(err))

    async def missing_storage_directory(self) -> None:
        actions = {"Set storage directory": self._command(SET_STORAGE_DIRECTORY_COMMAND)}
        await self.show_message(MessageKind.ERROR, "Storage directory is not set.", actions)

    async def dirty_working_tree(self, root: Path | str) -> None:
        await self.show_message(
            MessageKind.ERROR,
            f"Repository {root} is dirty.",
            self._repository_actions(root),
        )

    async def ahead_or_behind(self, ahead: int, behind: int, root: Path | str) -> None:
        kind = MessageKind.INFO
        if ahead != 0:
            if behind != 0:
                kind = MessageKind.WARNING
                msg = f"Current branch is behind by {behind} and ahead by {ahead} commits in repository {root}."
            else:
                msg = (
                    f"Current branch is ahead by {ahead} commits in repository {root}. "
                    "Remember to publish your changes."
                )
            actions = self._repository_actions(root)
        elif behind != 0:
            msg = f"Current branch is behind by {behind} commits in repository {root}. Do you want to import data?"
            actions = {"Yes, fast forward and import": self._command(IMPORT_DATA_COMMAND)}
            if str(root) != self.config.storage_directory:
                actions["No, open root of the repository"] = self._open(root)
            actions["No, open storage directory"] = self._open(self.config.storage_directory)
        else:
            return

        await self.show_message(kind, msg, actions)

    async def behind_after_fast_forward(self, ahead: int, behind: int, root: Path | str) -> None:
        if ahead != 0:
            msg = (
                f"After fast forward current branch is still behind by {behind} "
                f"and ahead by {ahead} commits in repository {root}."
            )
        else:
            msg = f"After fast forward current branch is still behind by {behind} commits in repository {root}."
        await self.show_message(MessageKind.ERROR, msg, self._repository_actions(root))

    async def up_to_date(self) -> None:
        await self.show_message(MessageKind.INFO, "Your configuration is up to date!")

    async def successful_export(self, path: Path | str) -> None:
        actions = {"Open export directory": self._open(path)}
        await self.show_message(MessageKind.INFO, f"Current configuration exported to {path}.", actions)

    async def successful_import(self, root: Path | str) -> None:
        await self.show_message(MessageKind.INFO, f"Configuration imported successfully (repository {root})!")

    async def successful_import_ahead(self, ahead: int, root: Path | str) -> None:
        msg = (
            f"Configuration imported successfully! However current branch is ahead by {ahead} "
            f"commits in repository {root}. Remember to publish your changes."
        )
        await self.show_message(MessageKind.INFO, msg, self._repository_actions(root))

    async def nothing_imported_yet(self) -> None:
        await self.show_message(MessageKind.ERROR, "No configuration has been imported yet.")

    async def successful_restore(self, path: Path | str) -> None:
        await self.show_message(MessageKind.INFO, f"Last imported configuration restored from {path}.")

    async def storage_directory_set(self, path: Path | str) -> None:
        await self.show_message(MessageKind.INFO, f"Storage directory set to {path}.")

    async def show_message(
        self,
        kind: MessageKind,
        msg: str,
        actions: dict[str, Action] | None = None,
    ) -> None:
        if not self.called_by_user and Notifications._last_message == msg:
            logger.debug("Skipping repeated message: %s", msg)
            return
        Notifications._last_message = msg

        choice = await self.presenter.show(kind, msg, list(actions or {}))
        if choice is None or actions is None:
            return
        action = actions.get(choice)
        if action is not None:
            await action()


class Confirmations:
    """Yes/no questions; anything but the affirmative answer means no."""

    def __init__(self, presenter: MessagePresenter) -> None:
        self.presenter = presenter

    async def current_data_overwrite(self) -> bool:
        return await self._confirm(
            MessageKind.WARNING,
            "Last applied configuration differs from the current one. Override your current configuration?",
            "Yes, overwrite",
            "No, don't do anything",
        )

    async def continue_with_dirty_working_tree(self, root: Path | str) -> bool:
        return await self._confirm(
            MessageKind.WARNING,
            f"Working tree is dirty in repository {root}. Continue?",
            "Yes, continue with dirty working tree",
            "No, don't do anything",
        )

    async def continue_behind(self, ahead: int, behind: int, root: Path | str) -> bool:
        if ahead != 0:
            msg = (
                f"Current branch is behind by {behind} and ahead by {ahead} commits in repository {root}. "
                "Do you want to continue import?"
            )
        else:
            msg = f"Current branch is behind by {behind} commits in repository {root}. Do you want to continue import?"
        return await self._confirm(MessageKind.WARNING, msg, "Yes, continue", "No, don't do anything")

    async def _confirm(self, kind: MessageKind, msg: str, ok: str, cancel: str) -> bool:
        return await self.presenter.show(kind, msg, [ok, cancel]) == ok
