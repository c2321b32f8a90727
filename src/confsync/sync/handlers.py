"""Category handlers.

Each handler knows where one configuration category lives under each
location kind, how to fingerprint it and how to copy it between locations.

Variants:
- FileSyncHandler: a single file (settings, keybindings, tasks)
- DirectorySyncHandler: a free-form tree (snippets)
- ExtensionsHandler: the installed-extension list, reconciled through the
  editor rather than copied

Filesystem work runs in worker threads via asyncio.to_thread so that all
handlers of a Warehouse operation progress concurrently on one event loop.
Handlers share no mutable state; each one touches only its own category.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import shutil
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from confsync.core.hashing import EMPTY_DIRECTORY_DIGEST, MARKER_NAMES, hash_bytes, hash_directory, hash_file
from confsync.core.types import LocationKind
from confsync.sync.fingerprint import PartialFingerprint

logger = logging.getLogger(__name__)

MARKER_FILE = ".gitkeep"
DIR_MODE = 0o755
FILE_MODE = 0o644


class Marker:
    """Empty sentinel that marks a directory as synced even without payload."""

    @staticmethod
    def location(parent_dir: Path) -> Path:
        return parent_dir / MARKER_FILE

    @staticmethod
    def create(parent_dir: Path) -> None:
        path = Marker.location(parent_dir)
        path.write_text("\n")
        os.chmod(path, FILE_MODE)

    @staticmethod
    def exists(parent_dir: Path) -> bool:
        return Marker.location(parent_dir).exists()

    @staticmethod
    def remove(parent_dir: Path) -> None:
        Marker.location(parent_dir).unlink(missing_ok=True)


@dataclass(frozen=True)
class KindPaths:
    """Sub-path of a category under the root of each location kind."""

    current: str
    last_imported: str
    stored: str

    @classmethod
    def nested(cls, subdir: str | None, final: str) -> KindPaths:
        """Flat under CURRENT, nested under *subdir* for the other kinds."""
        if subdir is None:
            return cls(current=final, last_imported=final, stored=final)
        nested = os.path.join(subdir, final)
        return cls(current=final, last_imported=nested, stored=nested)

    def resolve(self, kind: LocationKind, root: Path) -> Path:
        if kind == LocationKind.CURRENT:
            return root / self.current
        if kind == LocationKind.LAST_IMPORTED:
            return root / self.last_imported
        return root / self.stored


class Handler(ABC):
    """Common contract of every category handler."""

    def __init__(self, key: str, paths: KindPaths) -> None:
        self.key = key
        self.paths = paths

    def path(self, kind: LocationKind, root: Path) -> Path:
        return self.paths.resolve(kind, root)

    @abstractmethod
    async def fingerprint(self, kind: LocationKind, root: Path) -> PartialFingerprint:
        """Digest of the category at *root*, empty if it has no data there."""

    @abstractmethod
    async def exists(self, kind: LocationKind, root: Path) -> bool:
        """Whether the category is present at *root* (CURRENT always is)."""

    @abstractmethod
    async def copy(
        self,
        from_kind: LocationKind,
        from_root: Path,
        to_kind: LocationKind,
        to_root: Path,
    ) -> None:
        """Copy the category between locations; no-op if the source lacks it."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.key!r})"


class FileSyncHandler(Handler):
    """Handler for a category stored as one file."""

    async def fingerprint(self, kind: LocationKind, root: Path) -> PartialFingerprint:
        return await asyncio.to_thread(self._fingerprint, kind, root)

    def _fingerprint(self, kind: LocationKind, root: Path) -> PartialFingerprint:
        path = self.path(kind, root)
        if not path.exists():
            return PartialFingerprint(self.key)
        return PartialFingerprint(self.key, hash_file(path))

    async def exists(self, kind: LocationKind, root: Path) -> bool:
        return await asyncio.to_thread(self._exists, kind, root)

    def _exists(self, kind: LocationKind, root: Path) -> bool:
        if kind == LocationKind.CURRENT:
            return True
        path = self.path(kind, root)
        return path.exists() or Marker.exists(path.parent)

    async def copy(
        self,
        from_kind: LocationKind,
        from_root: Path,
        to_kind: LocationKind,
        to_root: Path,
    ) -> None:
        await asyncio.to_thread(self._copy, from_kind, from_root, to_kind, to_root)

    def _copy(
        self,
        from_kind: LocationKind,
        from_root: Path,
        to_kind: LocationKind,
        to_root: Path,
    ) -> None:
        if not self._exists(from_kind, from_root):
            logger.debug("%s: nothing to copy from %s", self.key, from_kind.value)
            return

        from_path = self.path(from_kind, from_root)
        to_path = self.path(to_kind, to_root)
        to_path.parent.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)

        # Copy of an absent source must still clear a stale destination
        to_path.unlink(missing_ok=True)
        copied = False
        if from_path.exists():
            shutil.copyfile(from_path, to_path)
            copied = True

        if to_kind != LocationKind.CURRENT:
            if copied:
                Marker.remove(to_path.parent)
            else:
                Marker.create(to_path.parent)
        logger.debug("%s: copied %s -> %s", self.key, from_kind.value, to_kind.value)


class DirectorySyncHandler(Handler):
    """Handler for a category stored as a directory tree."""

    async def fingerprint(self, kind: LocationKind, root: Path) -> PartialFingerprint:
        return await asyncio.to_thread(self._fingerprint, kind, root)

    def _fingerprint(self, kind: LocationKind, root: Path) -> PartialFingerprint:
        path = self.path(kind, root)
        if not path.exists():
            # Absent and marker-only directories hash alike at every kind
            return PartialFingerprint(self.key, EMPTY_DIRECTORY_DIGEST)
        return PartialFingerprint(self.key, hash_directory(path, skip_marker=True))

    async def exists(self, kind: LocationKind, root: Path) -> bool:
        if kind == LocationKind.CURRENT:
            return True
        return await asyncio.to_thread(self.path(kind, root).exists)

    async def copy(
        self,
        from_kind: LocationKind,
        from_root: Path,
        to_kind: LocationKind,
        to_root: Path,
    ) -> None:
        if not await self.exists(from_kind, from_root):
            logger.debug("%s: nothing to copy from %s", self.key, from_kind.value)
            return
        await asyncio.to_thread(self._copy, from_kind, from_root, to_kind, to_root)

    def _copy(
        self,
        from_kind: LocationKind,
        from_root: Path,
        to_kind: LocationKind,
        to_root: Path,
    ) -> None:
        from_path = self.path(from_kind, from_root)
        to_path = self.path(to_kind, to_root)

        if to_path.exists():
            shutil.rmtree(to_path)

        to_current = to_kind == LocationKind.CURRENT
        if from_path.is_dir():
            to_path.parent.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
            shutil.copytree(from_path, to_path, ignore=_root_marker_filter(from_path, to_current))
        elif not to_current:
            to_path.mkdir(mode=DIR_MODE, parents=True)

        if not to_current:
            Marker.create(to_path)
        logger.debug("%s: copied %s -> %s", self.key, from_kind.value, to_kind.value)


def _root_marker_filter(root: Path, skip: bool) -> Callable[[str, list[str]], Iterable[str]]:
    """copytree ignore callback dropping marker files directly under *root*."""

    def _ignore(directory: str, names: list[str]) -> Iterable[str]:
        if skip and Path(directory) == root:
            return [n for n in names if n in MARKER_NAMES]
        return []

    return _ignore


# =============================================================================
# Installed extensions
# =============================================================================


@dataclass
class ExtensionData:
    """One installed extension.

    ``enabled`` is always normalized to True: only the set of installed
    names is synchronized, never the enabled/disabled state.
    """

    name: str = ""
    enabled: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {"enabled": self.enabled, "name": self.name}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ExtensionData:
        return cls(name=str(data.get("name", "")), enabled=bool(data.get("enabled", False)))


def normalize_extensions(records: Iterable[ExtensionData]) -> list[ExtensionData]:
    """Force ``enabled`` to True and sort by name (ordinal)."""
    normalized = [ExtensionData(name=r.name, enabled=True) for r in records]
    return sorted(normalized, key=lambda r: r.name)


def stable_dumps(records: list[ExtensionData], indent: int | None = None) -> str:
    """Serialize records with stable key order."""
    data = [r.to_dict() for r in records]
    if indent is None:
        return json.dumps(data, sort_keys=True, separators=(",", ":"))
    return json.dumps(data, sort_keys=True, indent=indent)


class ExtensionHost(Protocol):
    """Editor services the extensions handler depends on."""

    async def list_extensions(self, cwd: Path) -> list[str]: ...

    async def builtin_extensions(self) -> set[str]: ...

    async def install_extension(self, name: str) -> None: ...

    async def uninstall_extension(self, name: str) -> None: ...


class ExtensionsHandler(Handler):
    """Handler reconciling the set of installed extensions.

    CURRENT data is enumerated live through the editor; the other kinds are
    a serialized ExtensionData list.
    """

    def __init__(self, key: str, paths: KindPaths, host: ExtensionHost) -> None:
        super().__init__(key, paths)
        self.host = host

    async def fingerprint(self, kind: LocationKind, root: Path) -> PartialFingerprint:
        if not await self.exists(kind, root):
            return PartialFingerprint(self.key)
        records = await self.data(kind, root)
        return PartialFingerprint(self.key, hash_bytes(stable_dumps(records)))

    async def exists(self, kind: LocationKind, root: Path) -> bool:
        if kind == LocationKind.CURRENT:
            return True
        path = self.path(kind, root)
        return await asyncio.to_thread(lambda: path.exists() or Marker.exists(path.parent))

    async def copy(
        self,
        from_kind: LocationKind,
        from_root: Path,
        to_kind: LocationKind,
        to_root: Path,
    ) -> None:
        if not await self.exists(from_kind, from_root):
            logger.debug("%s: nothing to copy from %s", self.key, from_kind.value)
            return

        from_data = await self.data(from_kind, from_root)
        if to_kind == LocationKind.CURRENT:
            to_data = await self.data(to_kind, to_root)
            await self._converge(from_data, to_data)
            return

        await asyncio.to_thread(self._write, from_data, self.path(to_kind, to_root))

    async def data(self, kind: LocationKind, root: Path) -> list[ExtensionData]:
        """Read the normalized, sorted extension list at *root*.

        A marker-only location yields an empty list.
        """
        if kind == LocationKind.CURRENT:
            names, builtin = await asyncio.gather(
                self.host.list_extensions(root),
                self.host.builtin_extensions(),
            )
            records = [ExtensionData(n, True) for n in names if n not in builtin]
        else:
            records = await asyncio.to_thread(self._read, self.path(kind, root))
        return normalize_extensions(records)

    @staticmethod
    def _read(path: Path) -> list[ExtensionData]:
        if not path.exists():
            return []
        raw = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(raw, list) or not all(isinstance(item, dict) for item in raw):
            raise ValueError(f"Malformed extension list {path}: expected a list of objects.")
        return [ExtensionData.from_dict(item) for item in raw]

    @staticmethod
    def _write(records: list[ExtensionData], path: Path) -> None:
        path.parent.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
        path.write_text(stable_dumps(records, indent=3), encoding="utf-8")
        os.chmod(path, FILE_MODE)
        Marker.remove(path.parent)

    async def _converge(self, source: list[ExtensionData], target: list[ExtensionData]) -> None:
        """Install and uninstall extensions until *target* matches *source*.

        There is no atomic primitive: a failure leaves the set partially
        converged and already-issued commands are not undone.
        """
        source_names = [r.name for r in source]
        target_names = {r.name for r in target}
        to_install = [n for n in source_names if n not in target_names]
        to_uninstall = [n for n in sorted(target_names) if n not in set(source_names)]

        for name in to_install:
            logger.info("Installing extension %s", name)
            await self.host.install_extension(name)
        for name in to_uninstall:
            logger.info("Uninstalling extension %s", name)
            await self.host.uninstall_extension(name)
