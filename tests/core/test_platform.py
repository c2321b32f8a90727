"""Tests for platform detection."""

from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest

from confsync.core import platform as platform_module
from confsync.core.platform import (
    Platform,
    configuration_path,
    editor_command,
    is_wsl_detected,
    platform_id,
)


@pytest.fixture(autouse=True)
def clear_caches() -> Iterator[None]:
    """Reset memoized lookups around each test."""
    platform_id.cache_clear()
    configuration_path.cache_clear()
    yield
    platform_id.cache_clear()
    configuration_path.cache_clear()


class TestPlatformId:
    """Tests for platform_id."""

    def test_windows(self) -> None:
        with patch.object(platform_module.sys, "platform", "win32"):
            assert platform_id() == Platform.WINDOWS

    def test_darwin(self) -> None:
        with patch.object(platform_module.sys, "platform", "darwin"):
            assert platform_id() == Platform.DARWIN

    def test_wsl(self) -> None:
        with (
            patch.object(platform_module.sys, "platform", "linux"),
            patch("confsync.core.platform.is_wsl_detected", return_value=True),
        ):
            assert platform_id() == Platform.WSL

    def test_linux(self) -> None:
        with (
            patch.object(platform_module.sys, "platform", "linux"),
            patch("confsync.core.platform.is_wsl_detected", return_value=False),
        ):
            assert platform_id() == Platform.LINUX

    def test_memoized(self) -> None:
        """The platform is resolved once per process."""
        with patch.object(platform_module.sys, "platform", "darwin"):
            first = platform_id()
        with patch.object(platform_module.sys, "platform", "win32"):
            assert platform_id() == first


class TestWslDetection:
    """Tests for is_wsl_detected."""

    def test_detects_microsoft_kernel(self, tmp_path: Path) -> None:
        release = tmp_path / "osrelease"
        release.write_text("5.15.90.1-Microsoft-standard-WSL2\n")
        with patch.object(platform_module, "WSL_PROBE_FILES", (str(release),)):
            assert is_wsl_detected()

    def test_plain_kernel(self, tmp_path: Path) -> None:
        release = tmp_path / "osrelease"
        release.write_text("6.5.0-generic\n")
        with patch.object(platform_module, "WSL_PROBE_FILES", (str(release), str(tmp_path / "missing"))):
            assert not is_wsl_detected()


class TestConfigurationPath:
    """Tests for configuration_path and editor_command."""

    def test_linux(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HOME", "/home/user")
        with patch("confsync.core.platform.platform_id", return_value=Platform.LINUX):
            assert configuration_path() == Path("/home/user/.config/Code/User")

    def test_darwin(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HOME", "/Users/user")
        with patch("confsync.core.platform.platform_id", return_value=Platform.DARWIN):
            assert configuration_path() == Path("/Users/user/Library/Application Support/Code/User")

    def test_wsl(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HOME", "/home/user")
        with patch("confsync.core.platform.platform_id", return_value=Platform.WSL):
            assert configuration_path() == Path("/home/user/.vscode-server/data/User")

    def test_windows(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("APPDATA", "/appdata")
        with patch("confsync.core.platform.platform_id", return_value=Platform.WINDOWS):
            assert configuration_path() == Path("/appdata/Code/User")

    def test_editor_command(self) -> None:
        with patch("confsync.core.platform.platform_id", return_value=Platform.WINDOWS):
            assert editor_command() == "code.cmd"
        with patch("confsync.core.platform.platform_id", return_value=Platform.LINUX):
            assert editor_command() == "code"
