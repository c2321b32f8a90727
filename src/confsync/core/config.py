"""Static configuration for confsync.

This module defines the configuration values read once per operation:
background-check behaviour and which categories are synchronized.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

from confsync.core.types import Category


@dataclass
class SyncConfig:
    """Static configuration values.

    Attributes:
        silent_git_failures: Do not report git failures of background checks.
        single_updates_check: Stop the background check after its first run.
        updates_check_interval_minutes: Minutes between background checks.
        synchronize_settings: Synchronize settings.json.
        synchronize_keyboard_shortcuts: Synchronize keybindings.json.
        synchronize_user_snippets: Synchronize the snippets directory.
        synchronize_user_tasks: Synchronize tasks.json.
        synchronize_extensions: Synchronize the installed-extension list.
        configuration_path: Editor config root (default: platform specific).
        editor_command: Editor CLI launcher (default: platform specific).
    """

    silent_git_failures: bool = False
    single_updates_check: bool = False
    updates_check_interval_minutes: float = 60.0
    synchronize_settings: bool = True
    synchronize_keyboard_shortcuts: bool = True
    synchronize_user_snippets: bool = True
    synchronize_user_tasks: bool = True
    synchronize_extensions: bool = True
    configuration_path: Path | None = None
    editor_command: str | None = None

    def __post_init__(self) -> None:
        """Normalize paths."""
        if self.configuration_path is not None:
            self.configuration_path = Path(self.configuration_path).expanduser()

    @property
    def updates_check_interval(self) -> float:
        """Interval between background checks, in seconds."""
        return float(self.updates_check_interval_minutes) * 60

    def is_enabled(self, category: Category) -> bool:
        """Check whether *category* takes part in synchronization."""
        return {
            Category.SETTINGS: self.synchronize_settings,
            Category.KEYBOARD_SHORTCUTS: self.synchronize_keyboard_shortcuts,
            Category.SNIPPETS: self.synchronize_user_snippets,
            Category.TASKS: self.synchronize_user_tasks,
            Category.EXTENSIONS: self.synchronize_extensions,
        }[category]

    def enabled_categories(self) -> list[Category]:
        """Return enabled categories in registration order."""
        return [c for c in Category if self.is_enabled(c)]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SyncConfig:
        """Build a SyncConfig from the config.json layout.

        Layout::

            {
              "base": {"silentGitFailures": false, "singleUpdatesCheck": false,
                       "updatesCheckInterval": 60},
              "synchronize": {"settings": true, "keyboardShortcuts": true,
                              "userSnippets": true, "userTasks": true,
                              "extensions": true},
              "editor": {"configurationPath": "...", "command": "code"}
            }

        Missing keys keep their defaults, unknown keys are ignored.
        """
        base = data.get("base") or {}
        sync = data.get("synchronize") or {}
        editor = data.get("editor") or {}

        kwargs: dict[str, Any] = {}
        for key, attr in (
            ("silentGitFailures", "silent_git_failures"),
            ("singleUpdatesCheck", "single_updates_check"),
        ):
            if key in base:
                kwargs[attr] = bool(base[key])
        if "updatesCheckInterval" in base:
            kwargs["updates_check_interval_minutes"] = float(base["updatesCheckInterval"])

        for key, attr in (
            ("settings", "synchronize_settings"),
            ("keyboardShortcuts", "synchronize_keyboard_shortcuts"),
            ("userSnippets", "synchronize_user_snippets"),
            ("userTasks", "synchronize_user_tasks"),
            ("extensions", "synchronize_extensions"),
        ):
            if key in sync:
                kwargs[attr] = bool(sync[key])

        if editor.get("configurationPath"):
            kwargs["configuration_path"] = Path(editor["configurationPath"])
        if editor.get("command"):
            kwargs["editor_command"] = str(editor["command"])

        return cls(**kwargs)
