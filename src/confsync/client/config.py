"""Configuration files for confsync.

This module provides the JSON helpers shared by the CLI and the client:
- config.json: static configuration, edited by the user
- state.json: durable key-value store written by confsync itself
"""

from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any

CONFIG_DIR_ENV = "CONFSYNC_HOME"
STORAGE_DIRECTORY_KEY = "storageDirectory"


def get_config_dir() -> Path:
    """Get the configuration directory for confsync.

    Returns:
        Path from CONFSYNC_HOME, or ~/.confsync.
    """
    override = os.environ.get(CONFIG_DIR_ENV)
    if override:
        return Path(override).expanduser()
    return Path.home() / ".confsync"


def get_config_file() -> Path:
    """Get the path to the config file."""
    return get_config_dir() / "config.json"


def get_state_file() -> Path:
    """Get the path to the durable state file."""
    return get_config_dir() / "state.json"


def load_config() -> dict[str, Any]:
    """Load configuration from config file."""
    config_file = get_config_file()
    if config_file.exists():
        return dict(json.loads(config_file.read_text()))
    return {}


def save_config(config: dict[str, Any]) -> None:
    """Save configuration to config file."""
    config_file = get_config_file()
    config_file.parent.mkdir(parents=True, exist_ok=True)
    config_file.write_text(json.dumps(config, indent=2))


def load_state() -> dict[str, str]:
    """Load the durable key-value store."""
    state_file = get_state_file()
    if state_file.exists():
        return dict(json.loads(state_file.read_text()))
    return {}


def save_state(state: dict[str, str]) -> None:
    """Save the durable key-value store."""
    state_file = get_state_file()
    state_file.parent.mkdir(parents=True, exist_ok=True)
    state_file.write_text(json.dumps(state, indent=2))


def get_storage_directory() -> str:
    """Get the storage directory, or an empty string when unset."""
    return load_state().get(STORAGE_DIRECTORY_KEY, "")


def set_storage_directory(path: str) -> None:
    """Persist the storage directory."""
    state = load_state()
    state[STORAGE_DIRECTORY_KEY] = path
    save_state(state)
