"""Shared fixtures for confsync tests."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path

import pytest

from confsync.client.notifications import Notifications


class FakeExtensionHost:
    """In-memory editor: installed extensions are a set of names."""

    def __init__(self, installed: list[str] | None = None, builtin: set[str] | None = None) -> None:
        self.installed: set[str] = set(installed or [])
        self.builtin: set[str] = set(builtin or [])
        self.calls: list[tuple[str, str]] = []

    async def list_extensions(self, cwd: Path) -> list[str]:
        return sorted(self.installed | self.builtin)

    async def builtin_extensions(self) -> set[str]:
        return set(self.builtin)

    async def install_extension(self, name: str) -> None:
        self.calls.append(("install", name))
        self.installed.add(name)

    async def uninstall_extension(self, name: str) -> None:
        self.calls.append(("uninstall", name))
        self.installed.discard(name)


class FakeLocations:
    """Location resolver rooted in a temporary directory."""

    def __init__(self, root: Path) -> None:
        self.current_root = root / "current"
        self.last_imported_root = root / "state" / "last-imported"
        self.stored_root = root / "repo" / "storage"
        self.current_root.mkdir(parents=True)

    def current(self) -> Path:
        return self.current_root

    def last_imported(self) -> Path:
        return self.last_imported_root

    def stored(self) -> Path:
        return self.stored_root


@pytest.fixture
def host() -> FakeExtensionHost:
    """Fake editor with nothing installed."""
    return FakeExtensionHost()


@pytest.fixture
def locations(tmp_path: Path) -> FakeLocations:
    """Temporary current / last-imported / stored roots."""
    return FakeLocations(tmp_path)


@pytest.fixture(autouse=True)
def reset_last_message() -> Iterator[None]:
    """Background message deduplication is process-wide state."""
    Notifications.reset_last_message()
    yield
    Notifications.reset_last_message()


@pytest.fixture(autouse=True)
def confsync_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the config directory at a temporary location."""
    home = tmp_path / "confsync-home"
    monkeypatch.setenv("CONFSYNC_HOME", str(home))
    return home
