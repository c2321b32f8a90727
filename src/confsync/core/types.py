"""Shared types for confsync.

This module defines the enums used by the reconciliation core and by the
client layer.
"""

from __future__ import annotations

from enum import Enum


class LocationKind(str, Enum):
    """Logical role a configuration lives in.

    - CURRENT: the live configuration of the editor on this machine.
    - LAST_IMPORTED: snapshot of CURRENT taken at the last successful import,
      used as a local change-detection baseline (never committed).
    - STORED: the copy living in the version-controlled storage directory.
    """

    CURRENT = "current"
    LAST_IMPORTED = "lastImported"
    STORED = "stored"


class Category(str, Enum):
    """Configuration category that can be synchronized.

    Declaration order is the handler registration order.
    """

    SETTINGS = "settings"
    KEYBOARD_SHORTCUTS = "keyboardShortcuts"
    SNIPPETS = "snippets"
    TASKS = "tasks"
    EXTENSIONS = "extensions"
