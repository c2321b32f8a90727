"""Host editor services.

This module provides:
- ExtensionRegistry: reads extension manifests to tell built-in extensions apart
- CodeEditor: lists, installs and uninstalls extensions through the editor CLI
- open_in_file_browser: reveals a folder in the OS file browser
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from confsync.core.platform import Platform, platform_id
from confsync.core.process import OperationalError, Process

logger = logging.getLogger(__name__)

MANIFEST_FILE = "package.json"


class HostToolError(OperationalError):
    """The editor CLI or the file browser failed."""


@dataclass
class ExtensionManifest:
    """Identity of one extension found on disk."""

    id: str
    path: Path
    builtin: bool = False


def default_extension_dirs() -> list[Path]:
    """Directories holding user-installed extensions."""
    home = Path.home()
    if platform_id() == Platform.WSL:
        return [home / ".vscode-server" / "extensions"]
    return [home / ".vscode" / "extensions"]


def _read_manifest(manifest: Path, builtin: bool) -> ExtensionManifest | None:
    try:
        data = json.loads(manifest.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.debug("Skipping unreadable manifest %s: %s", manifest, e)
        return None
    publisher = data.get("publisher")
    name = data.get("name")
    if not publisher or not name:
        return None
    return ExtensionManifest(
        id=f"{publisher}.{name}",
        path=manifest.parent,
        builtin=builtin or bool(data.get("isBuiltin", False)),
    )


@dataclass
class ExtensionRegistry:
    """Extension manifests found under the configured directories.

    Every immediate subdirectory holding a ``package.json`` counts as one
    extension. Manifests under *builtin_dirs*, or carrying
    ``"isBuiltin": true``, are built-in.
    """

    extension_dirs: list[Path] = field(default_factory=default_extension_dirs)
    builtin_dirs: list[Path] = field(default_factory=list)

    def scan(self) -> list[ExtensionManifest]:
        found: list[ExtensionManifest] = []
        for directory, builtin in [(d, False) for d in self.extension_dirs] + [
            (d, True) for d in self.builtin_dirs
        ]:
            if not directory.is_dir():
                continue
            for entry in sorted(directory.iterdir()):
                manifest = entry / MANIFEST_FILE
                if not manifest.is_file():
                    continue
                ext = _read_manifest(manifest, builtin)
                if ext is not None:
                    found.append(ext)
        return found

    def builtin_ids(self) -> set[str]:
        return {ext.id for ext in self.scan() if ext.builtin}


class CodeEditor:
    """Extension services backed by the editor's command-line launcher."""

    def __init__(self, command: str, registry: ExtensionRegistry | None = None) -> None:
        """Initialize the editor wrapper.

        Args:
            command: Launcher executable (``code`` or ``code.cmd``).
            registry: Manifest registry used to detect built-in extensions.
        """
        self.command = command
        self.registry = registry or ExtensionRegistry()

    async def _stdout(self, args: list[str], cwd: Path | None = None) -> str:
        process = Process([self.command, *args])
        if cwd is not None:
            process.cwd(cwd)
        result = await process.run()
        result.check(HostToolError)
        return result.stdout

    async def list_extensions(self, cwd: Path) -> list[str]:
        """Return ids of the installed extensions."""
        stdout = await self._stdout(["--list-extensions"], cwd)
        return [line.strip() for line in stdout.split("\n") if line.strip()]

    async def builtin_extensions(self) -> set[str]:
        return await asyncio.to_thread(self.registry.builtin_ids)

    async def install_extension(self, name: str) -> None:
        await self._stdout(["--install-extension", name])

    async def uninstall_extension(self, name: str) -> None:
        await self._stdout(["--uninstall-extension", name])


def file_browser_command(path: Path) -> list[str]:
    """Command line that opens *path* in the platform's file browser."""
    platform = platform_id()
    if platform == Platform.WINDOWS:
        return ["explorer", os.fspath(path)]
    if platform == Platform.DARWIN:
        return ["open", os.fspath(path)]
    return ["xdg-open", os.fspath(path)]


async def open_in_file_browser(path: Path) -> None:
    """Open a folder with the system's file browser.

    Args:
        path: Folder to open

    Raises:
        FileNotFoundError: If the folder doesn't exist
        HostToolError: If the file browser could not be started
    """
    if not path.exists():
        raise FileNotFoundError(f"Directory not found: {path}")

    result = await Process(file_browser_command(path)).run()
    # explorer.exe exits with 1 even on success
    if platform_id() == Platform.WINDOWS and not isinstance(result.error, OSError):
        return
    result.check(HostToolError)
