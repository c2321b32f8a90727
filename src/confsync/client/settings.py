"""Runtime configuration and location resolution.

This module provides:
- Configuration: static values (read once) plus the storage directory
  (read and written through the durable store on every access)
- HostLocations: resolves the three location kinds to directories
"""

from __future__ import annotations

import logging
from pathlib import Path

from confsync.client.config import (
    get_config_dir,
    get_storage_directory,
    load_config,
    set_storage_directory,
)
from confsync.core.config import SyncConfig
from confsync.core.platform import Platform, configuration_path, editor_command, platform_id

logger = logging.getLogger(__name__)

LAST_IMPORTED_DIR = "last-imported"


class Configuration:
    """Configuration view used by one action run."""

    def __init__(self, static: SyncConfig | None = None) -> None:
        self._static = static

    @property
    def static(self) -> SyncConfig:
        if self._static is None:
            self._static = SyncConfig.from_dict(load_config())
        return self._static

    @property
    def storage_directory(self) -> str:
        return get_storage_directory()

    @storage_directory.setter
    def storage_directory(self, value: str) -> None:
        set_storage_directory(value)
        logger.info("Storage directory set to %s", value)

    @property
    def silent_git_failures(self) -> bool:
        return self.static.silent_git_failures

    @property
    def single_updates_check(self) -> bool:
        return self.static.single_updates_check

    @property
    def updates_check_interval(self) -> float:
        return self.static.updates_check_interval

    @property
    def configuration_path(self) -> Path:
        return self.static.configuration_path or configuration_path()

    @property
    def editor_command(self) -> str:
        return self.static.editor_command or editor_command()


def global_storage_path() -> Path:
    """Private durable storage area of confsync."""
    storage = str(get_config_dir())
    if platform_id() == Platform.WINDOWS and storage.startswith(("/", "\\")):
        storage = storage[1:]
    return Path(storage)


class HostLocations:
    """Resolve location kinds for the running host."""

    def __init__(self, config: Configuration) -> None:
        self._config = config

    def current(self) -> Path:
        return self._config.configuration_path

    def last_imported(self) -> Path:
        return global_storage_path() / LAST_IMPORTED_DIR

    def stored(self) -> Path:
        storage = self._config.storage_directory
        if not storage:
            raise ValueError("Storage directory is not set.")
        return Path(storage)
