"""Orchestration of the user-facing flows.

Every public method of Actions is one flow: check for updates, import (with
or without pulling), export, choose or open the storage directory, restore
the last imported configuration and report status. Flows talk to the user
only through Notifications and Confirmations.

OperationalError raised inside a flow is shown as an error message; any
other exception propagates to the caller.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from pathlib import Path

from confsync.client.editor import CodeEditor, open_in_file_browser
from confsync.client.git import GitOperations
from confsync.client.notifications import (
    IMPORT_DATA_COMMAND,
    SET_STORAGE_DIRECTORY_COMMAND,
    Confirmations,
    DirectoryOpener,
    MessagePresenter,
    Notifications,
)
from confsync.client.settings import Configuration, HostLocations
from confsync.core.process import OperationalError
from confsync.core.types import LocationKind
from confsync.sync.fingerprint import Fingerprint
from confsync.sync.warehouse import Warehouse

logger = logging.getLogger(__name__)

# Serializes flows within this process
action_lock = threading.Lock()


@dataclass
class StatusReport:
    """Fingerprint comparison of the three locations."""

    current: Fingerprint
    last_imported: Fingerprint
    stored: Fingerprint | None = None
    storage_directory: str = ""
    locations: dict[str, Path] = field(default_factory=dict)

    @property
    def locally_modified(self) -> list[str]:
        """Categories edited since the last import."""
        return self.current.differing_keys(self.last_imported)

    @property
    def pending_import(self) -> list[str]:
        """Categories whose stored version differs from the current one."""
        if self.stored is None:
            return []
        return self.current.differing_keys(self.stored)


class Actions:
    """Runs one flow with a given configuration and presenter."""

    def __init__(
        self,
        config: Configuration,
        called_by_user: bool,
        presenter: MessagePresenter,
        warehouse: Warehouse | None = None,
        git_factory: Callable[[], GitOperations] = GitOperations,
        opener: DirectoryOpener = open_in_file_browser,
    ) -> None:
        """Initialize the flows.

        Args:
            config: Configuration of this run.
            called_by_user: False for background checks.
            presenter: Where messages and questions go.
            warehouse: Reconciler; built from *config* when omitted.
            git_factory: Creates the git wrapper for one flow.
            opener: Opens a directory in the file browser.
        """
        self.config = config
        self.called_by_user = called_by_user
        self.presenter = presenter
        self.git_factory = git_factory
        self.opener = opener
        self._warehouse = warehouse
        self.notifications = Notifications(called_by_user, config, presenter, opener, self.run_command)
        self.confirmations = Confirmations(presenter)

    @property
    def data(self) -> Warehouse:
        if self._warehouse is None:
            self._warehouse = Warehouse(
                self.config.static,
                HostLocations(self.config),
                CodeEditor(self.config.editor_command),
            )
        return self._warehouse

    async def run_command(self, command: str) -> None:
        """Run the flow behind a notification action.

        The command runs nested in the flow that offered it and is awaited
        there, so the action lock stays held until both finish.
        """
        if command == IMPORT_DATA_COMMAND:
            await self.import_data()
        elif command == SET_STORAGE_DIRECTORY_COMMAND:
            await self.set_storage_directory()
        else:
            logger.warning("Unknown command %s", command)

    async def wrap_action(self, action: Awaitable[None]) -> None:
        try:
            await action
        except OperationalError as err:
            logger.debug("Action failed: %s", err)
            await self.notifications.operation_error(err)

    async def warn_on_failure(self, operation: Awaitable[None]) -> None:
        try:
            await operation
        except OperationalError as err:
            logger.debug("Operation failed, continuing: %s", err)
            await self.notifications.operation_warning(err)

    async def _overwrite_confirmed(self, current: Fingerprint, last_imported: Fingerprint) -> bool:
        if current == last_imported:
            return True
        return await self.confirmations.current_data_overwrite()

    # ------------------------------------------------------------------
    # Check for updates
    # ------------------------------------------------------------------

    async def check_for_updates(self) -> None:
        await self.wrap_action(self._check_for_updates())

    async def _check_for_updates(self) -> None:
        storage = self.config.storage_directory
        if storage == "":
            await self.notifications.missing_storage_directory()
            return

        ops = self.git_factory()
        root = ops.find_root(storage)
        await ops.fetch()
        if not await ops.is_working_tree_clean():
            await self.notifications.dirty_working_tree(root)
            return
        ahead = await ops.ahead_count()
        behind = await ops.behind_count()
        if ahead != 0 or behind != 0:
            await self.notifications.ahead_or_behind(ahead, behind, root)
            return
        if self.called_by_user:
            await self.notifications.up_to_date()

    # ------------------------------------------------------------------
    # Import
    # ------------------------------------------------------------------

    async def import_data_without_pull(self) -> None:
        await self.wrap_action(self._import_data_without_pull())

    async def _import_data_without_pull(self) -> None:
        storage = self.config.storage_directory
        if storage == "":
            await self.notifications.missing_storage_directory()
            return

        current_sum, last_imported_sum = await asyncio.gather(
            self.data.sum_of_current(),
            self.data.sum_of_last_imported(),
        )
        if not await self._overwrite_confirmed(current_sum, last_imported_sum):
            return

        ops = self.git_factory()
        root = ops.find_root(storage)
        await self.warn_on_failure(ops.fetch())
        if not await ops.is_working_tree_clean():
            if not await self.confirmations.continue_with_dirty_working_tree(root):
                return

        ahead = await ops.ahead_count()
        behind = await ops.behind_count()
        if behind != 0:
            if not await self.confirmations.continue_behind(ahead, behind, root):
                return

        await self.data.import_stored()
        await self._report_import(ahead, root)

    async def import_data(self) -> None:
        await self.wrap_action(self._import_data())

    async def _import_data(self) -> None:
        storage = self.config.storage_directory
        if storage == "":
            await self.notifications.missing_storage_directory()
            return

        current_sum, last_imported_sum = await asyncio.gather(
            self.data.sum_of_current(),
            self.data.sum_of_last_imported(),
        )
        if not await self._overwrite_confirmed(current_sum, last_imported_sum):
            return

        ops = self.git_factory()
        root = ops.find_root(storage)
        await ops.fetch()
        if not await ops.is_working_tree_clean():
            await self.notifications.dirty_working_tree(root)
            return

        await ops.pull_fast_forward()
        ahead = await ops.ahead_count()
        behind = await ops.behind_count()
        if behind != 0:
            await self.notifications.behind_after_fast_forward(ahead, behind, root)
            return

        stored_sum = await self.data.sum_of_stored()
        if current_sum == stored_sum:
            # Nothing to apply; only the baseline may be stale
            if stored_sum != last_imported_sum:
                await self.data.refresh_last_imported()
        else:
            await self.data.import_stored()
        await self._report_import(ahead, root)

    async def _report_import(self, ahead: int, root: Path) -> None:
        if ahead != 0:
            await self.notifications.successful_import_ahead(ahead, root)
        else:
            await self.notifications.successful_import(root)

    async def reimport_last_imported(self) -> None:
        await self.wrap_action(self._reimport_last_imported())

    async def _reimport_last_imported(self) -> None:
        last_imported = self.data.location(LocationKind.LAST_IMPORTED)
        if not last_imported.exists():
            await self.notifications.nothing_imported_yet()
            return

        current_sum = await self.data.sum_of_current()
        last_imported_sum = await self.data.sum_of_last_imported()
        if current_sum == last_imported_sum:
            await self.notifications.up_to_date()
            return
        if not await self.confirmations.current_data_overwrite():
            return

        await self.data.reimport_last_imported()
        await self.notifications.successful_restore(last_imported)

    # ------------------------------------------------------------------
    # Export and storage directory
    # ------------------------------------------------------------------

    async def export_current_data(self, path: Path | str | None = None) -> None:
        await self.wrap_action(self._export_current_data(path))

    async def _export_current_data(self, path: Path | str | None) -> None:
        if path is None:
            path = await self.presenter.ask_directory(
                "Select folder to store exported data",
                self.config.storage_directory,
            )
            if not path:
                return
        await self.data.export_current(path)
        await self.notifications.successful_export(path)

    async def set_storage_directory(self, path: Path | str | None = None) -> None:
        await self.wrap_action(self._set_storage_directory(path))

    async def _set_storage_directory(self, path: Path | str | None) -> None:
        if path is None:
            path = await self.presenter.ask_directory("Select folder to use as storage")
            if not path:
                return
        resolved = str(Path(path).expanduser().resolve())
        self.config.storage_directory = resolved
        if self.called_by_user:
            await self.notifications.storage_directory_set(resolved)

    async def open_storage_directory(self) -> None:
        await self.wrap_action(self._open_storage_directory())

    async def _open_storage_directory(self) -> None:
        storage = self.config.storage_directory
        if storage == "":
            await self.notifications.missing_storage_directory()
            return
        await self.opener(Path(storage))

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    async def status(self) -> StatusReport:
        """Compare the fingerprints of all three locations."""
        report = StatusReport(
            current=await self.data.sum_of_current(),
            last_imported=await self.data.sum_of_last_imported(),
            storage_directory=self.config.storage_directory,
        )
        report.locations["current"] = self.data.location(LocationKind.CURRENT)
        report.locations["lastImported"] = self.data.location(LocationKind.LAST_IMPORTED)
        if report.storage_directory:
            report.stored = await self.data.sum_of_stored()
            report.locations["stored"] = self.data.location(LocationKind.STORED)
        return report
