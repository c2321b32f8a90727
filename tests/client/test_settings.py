"""Tests for configuration files and location resolution."""

import json
import os
import subprocess
import sys
from pathlib import Path
from unittest.mock import patch

import pytest

import confsync
from confsync.client.config import (
    get_config_dir,
    get_storage_directory,
    load_config,
    load_state,
    save_config,
    set_storage_directory,
)
from confsync.client.settings import Configuration, HostLocations, global_storage_path
from confsync.core.config import SyncConfig
from confsync.core.platform import Platform


class TestConfigFiles:
    """Tests for the JSON config and state files."""

    def test_config_dir_from_env(self, confsync_home: Path) -> None:
        assert get_config_dir() == confsync_home

    def test_config_dir_default(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("CONFSYNC_HOME")
        assert get_config_dir() == Path.home() / ".confsync"

    def test_missing_files_are_empty(self) -> None:
        assert load_config() == {}
        assert load_state() == {}
        assert get_storage_directory() == ""

    def test_save_and_load_config(self, confsync_home: Path) -> None:
        save_config({"base": {"silentGitFailures": True}})
        assert json.loads((confsync_home / "config.json").read_text()) == {
            "base": {"silentGitFailures": True}
        }
        assert load_config() == {"base": {"silentGitFailures": True}}

    def test_storage_directory_roundtrip(self, confsync_home: Path) -> None:
        set_storage_directory("/repo/storage")
        assert get_storage_directory() == "/repo/storage"
        assert load_state() == {"storageDirectory": "/repo/storage"}


class TestConfiguration:
    """Tests for Configuration."""

    def test_static_values_read_once(self) -> None:
        """Static values are memoized per instance."""
        save_config({"base": {"updatesCheckInterval": 2}})
        config = Configuration()
        assert config.updates_check_interval == 120.0

        save_config({"base": {"updatesCheckInterval": 10}})
        assert config.updates_check_interval == 120.0
        assert Configuration().updates_check_interval == 600.0

    def test_storage_directory_never_cached(self) -> None:
        config = Configuration()
        assert config.storage_directory == ""

        set_storage_directory("/elsewhere")
        assert config.storage_directory == "/elsewhere"

        config.storage_directory = "/again"
        assert get_storage_directory() == "/again"

    def test_overrides(self, tmp_path: Path) -> None:
        config = Configuration(SyncConfig(configuration_path=tmp_path, editor_command="codium"))
        assert config.configuration_path == tmp_path
        assert config.editor_command == "codium"

    def test_platform_defaults(self) -> None:
        with (
            patch("confsync.client.settings.configuration_path", return_value=Path("/cfg")),
            patch("confsync.client.settings.editor_command", return_value="code"),
        ):
            config = Configuration(SyncConfig())
            assert config.configuration_path == Path("/cfg")
            assert config.editor_command == "code"


class TestGlobalStoragePath:
    """Tests for global_storage_path."""

    def test_is_config_dir(self, confsync_home: Path) -> None:
        assert global_storage_path() == confsync_home

    def test_strips_leading_separator_on_windows(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("CONFSYNC_HOME", "/C:/Users/me/confsync")
        with patch("confsync.client.settings.platform_id", return_value=Platform.WINDOWS):
            assert str(global_storage_path()).startswith("C:")


class TestHostLocations:
    """Tests for HostLocations."""

    def test_locations(self, tmp_path: Path, confsync_home: Path) -> None:
        set_storage_directory(str(tmp_path / "repo"))
        locations = HostLocations(Configuration(SyncConfig(configuration_path=tmp_path / "code")))

        assert locations.current() == tmp_path / "code"
        assert locations.last_imported() == confsync_home / "last-imported"
        assert locations.stored() == tmp_path / "repo"

    def test_stored_requires_storage_directory(self, tmp_path: Path) -> None:
        locations = HostLocations(Configuration(SyncConfig(configuration_path=tmp_path)))
        with pytest.raises(ValueError, match="Storage directory is not set"):
            locations.stored()


class TestImportOrder:
    """The client modules import cleanly in a fresh interpreter."""

    @pytest.mark.parametrize(
        "modules",
        [
            ["confsync.client.settings", "confsync.client.actions"],
            ["confsync.client.actions", "confsync.client.settings"],
            ["confsync.client.notifications", "confsync.client.cli"],
        ],
    )
    def test_fresh_import(self, modules: list[str]) -> None:
        src = str(Path(confsync.__file__).resolve().parents[1])
        env = {**os.environ, "PYTHONPATH": os.pathsep.join(filter(None, [src, os.environ.get("PYTHONPATH")]))}
        code = "; ".join(f"import {m}" for m in modules)

        result = subprocess.run([sys.executable, "-c", code], capture_output=True, text=True, env=env)

        assert result.returncode == 0, result.stderr
