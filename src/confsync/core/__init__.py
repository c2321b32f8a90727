"""Core module - Shared hashing, configuration, platform and process helpers."""

from confsync.core.config import SyncConfig
from confsync.core.hashing import (
    MARKER_NAMES,
    hash_bytes,
    hash_directory,
    hash_file,
    hash_named_bytes,
    trim_name,
)
from confsync.core.platform import Platform, configuration_path, editor_command, platform_id
from confsync.core.process import (
    ExitError,
    OperationalError,
    Process,
    ProcessResult,
)
from confsync.core.types import Category, LocationKind

__all__ = [
    # Config
    "SyncConfig",
    # Hashing
    "MARKER_NAMES",
    "hash_bytes",
    "hash_directory",
    "hash_file",
    "hash_named_bytes",
    "trim_name",
    # Platform
    "Platform",
    "configuration_path",
    "editor_command",
    "platform_id",
    # Process
    "ExitError",
    "OperationalError",
    "Process",
    "ProcessResult",
    # Types
    "Category",
    "LocationKind",
]
