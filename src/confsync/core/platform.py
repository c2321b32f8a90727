"""Platform detection and the editor's default configuration root.

Both lookups are memoized: the OS family and the home directory do not
change while the process runs.
"""

from __future__ import annotations

import functools
import os
import sys
from enum import Enum
from pathlib import Path

WSL_PROBE_FILES = ("/proc/sys/kernel/osrelease", "/proc/version")


class Platform(str, Enum):
    """OS family."""

    DARWIN = "darwin"
    LINUX = "linux"
    WINDOWS = "windows"
    WSL = "wsl"


def _file_mentions_wsl(path: str) -> bool:
    try:
        data = Path(path).read_text(errors="replace").lower()
    except OSError:
        return False
    return "wsl" in data or "microsoft" in data


def is_wsl_detected() -> bool:
    """Check kernel release/version strings for a WSL signature."""
    return any(_file_mentions_wsl(p) for p in WSL_PROBE_FILES)


@functools.lru_cache(maxsize=1)
def platform_id() -> Platform:
    """Return the OS family this process runs on."""
    if sys.platform == "win32":
        return Platform.WINDOWS
    if sys.platform == "darwin":
        return Platform.DARWIN
    if is_wsl_detected():
        return Platform.WSL
    # Otherwise assume linux
    return Platform.LINUX


@functools.lru_cache(maxsize=1)
def configuration_path() -> Path:
    """Return the editor's user configuration root for this platform."""
    platform = platform_id()
    home = os.environ.get("HOME", "")
    if platform == Platform.WINDOWS:
        return Path(os.environ.get("APPDATA", "")) / "Code" / "User"
    if platform == Platform.DARWIN:
        return Path(home) / "Library" / "Application Support" / "Code" / "User"
    if platform == Platform.WSL:
        return Path(home) / ".vscode-server" / "data" / "User"
    return Path(home) / ".config" / "Code" / "User"


def editor_command() -> str:
    """Return the name of the editor's command-line launcher."""
    if platform_id() == Platform.WINDOWS:
        return "code.cmd"
    return "code"
