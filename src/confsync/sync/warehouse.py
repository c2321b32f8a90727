"""Warehouse: the three-location reconciler.

The Warehouse owns the active category handlers, resolves location kinds to
root directories and runs category-wide fingerprint and copy operations.

Operations are not internally serialized: callers must not start a copy
while another one on the same Warehouse is still running.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Protocol

from confsync.core.config import SyncConfig
from confsync.core.types import Category, LocationKind
from confsync.sync.fingerprint import Fingerprint
from confsync.sync.handlers import (
    DIR_MODE,
    DirectorySyncHandler,
    ExtensionHost,
    ExtensionsHandler,
    FileSyncHandler,
    Handler,
    KindPaths,
)

logger = logging.getLogger(__name__)


class LocationResolver(Protocol):
    """Resolves each location kind to a root directory."""

    def current(self) -> Path: ...

    def last_imported(self) -> Path: ...

    def stored(self) -> Path: ...


def build_handlers(config: SyncConfig, host: ExtensionHost) -> list[Handler]:
    """Instantiate handlers for the enabled categories, in registration order."""
    handlers: list[Handler] = []
    for category in config.enabled_categories():
        if category == Category.SETTINGS:
            handlers.append(FileSyncHandler(category.value, KindPaths.nested("settings", "settings.json")))
        elif category == Category.KEYBOARD_SHORTCUTS:
            handlers.append(
                FileSyncHandler(category.value, KindPaths.nested("keyboardShortcuts", "keybindings.json"))
            )
        elif category == Category.SNIPPETS:
            handlers.append(DirectorySyncHandler(category.value, KindPaths.nested(None, "snippets")))
        elif category == Category.TASKS:
            handlers.append(FileSyncHandler(category.value, KindPaths.nested("tasks", "tasks.json")))
        elif category == Category.EXTENSIONS:
            handlers.append(
                ExtensionsHandler(category.value, KindPaths.nested("extensions", "extensions.json"), host)
            )
    return handlers


class Warehouse:
    """Fingerprints and copies configuration between location kinds."""

    def __init__(
        self,
        config: SyncConfig,
        locations: LocationResolver,
        host: ExtensionHost,
    ) -> None:
        """Initialize the warehouse.

        Args:
            config: Static configuration; decides which handlers exist.
            locations: Resolver for the three location roots.
            host: Editor services used by the extensions handler.
        """
        self._locations = locations
        self._handlers: list[Handler] = build_handlers(config, host)

    @property
    def handlers(self) -> list[Handler]:
        return list(self._handlers)

    def location(self, kind: LocationKind) -> Path:
        """Resolve *kind* to its root directory."""
        if kind == LocationKind.CURRENT:
            return self._locations.current()
        if kind == LocationKind.LAST_IMPORTED:
            return self._locations.last_imported()
        return self._locations.stored()

    # ------------------------------------------------------------------
    # Fingerprints
    # ------------------------------------------------------------------

    async def fingerprint_of(self, kind: LocationKind) -> Fingerprint:
        """Fingerprint every active category at *kind*.

        Handlers run concurrently; partials keep registration order.
        """
        return await self._fingerprint(kind, self.location(kind))

    async def sum_of_current(self) -> Fingerprint:
        return await self.fingerprint_of(LocationKind.CURRENT)

    async def sum_of_last_imported(self) -> Fingerprint:
        return await self.fingerprint_of(LocationKind.LAST_IMPORTED)

    async def sum_of_stored(self) -> Fingerprint:
        return await self.fingerprint_of(LocationKind.STORED)

    async def _fingerprint(self, kind: LocationKind, root: Path) -> Fingerprint:
        partials = await asyncio.gather(*(h.fingerprint(kind, root) for h in self._handlers))
        return Fingerprint(*partials)

    # ------------------------------------------------------------------
    # Copies
    # ------------------------------------------------------------------

    async def import_stored(self) -> None:
        """Apply the stored configuration, then refresh the baseline."""
        await self.copy_all(LocationKind.STORED, LocationKind.CURRENT)
        await self.refresh_last_imported()

    async def reimport_last_imported(self) -> None:
        """Re-apply the last imported configuration; the baseline is untouched."""
        await self.copy_all(LocationKind.LAST_IMPORTED, LocationKind.CURRENT)

    async def refresh_last_imported(self) -> None:
        """Snapshot the current configuration as the new baseline."""
        last_imported = self.location(LocationKind.LAST_IMPORTED)
        await asyncio.to_thread(last_imported.mkdir, DIR_MODE, True, True)
        await self._copy(
            LocationKind.CURRENT,
            self.location(LocationKind.CURRENT),
            LocationKind.LAST_IMPORTED,
            last_imported,
        )

    async def export_current(self, destination: Path | str) -> None:
        """Export the current configuration to an arbitrary directory."""
        destination = Path(destination)
        await asyncio.to_thread(destination.mkdir, DIR_MODE, True, True)
        await self._copy(
            LocationKind.CURRENT,
            self.location(LocationKind.CURRENT),
            LocationKind.STORED,
            destination,
        )

    async def copy_all(self, from_kind: LocationKind, to_kind: LocationKind) -> None:
        """Copy every active category from *from_kind* to *to_kind*."""
        await self._copy(from_kind, self.location(from_kind), to_kind, self.location(to_kind))

    async def _copy(
        self,
        from_kind: LocationKind,
        from_root: Path,
        to_kind: LocationKind,
        to_root: Path,
    ) -> None:
        logger.info("Copying %s (%s) -> %s (%s)", from_kind.value, from_root, to_kind.value, to_root)
        # The first failure propagates; categories already copied stay copied
        await asyncio.gather(*(h.copy(from_kind, from_root, to_kind, to_root) for h in self._handlers))
