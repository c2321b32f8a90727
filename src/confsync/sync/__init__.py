"""Three-location synchronization core.

Architecture:
    Warehouse → Handlers → ContentHash

Components:
- **Warehouse**: resolves location kinds and runs category-wide operations
- **Handlers**: FileSyncHandler, DirectorySyncHandler, ExtensionsHandler
- **Fingerprint**: ordered per-category digests used for equality checks
"""

from confsync.sync.fingerprint import Fingerprint, PartialFingerprint
from confsync.sync.handlers import (
    MARKER_FILE,
    DirectorySyncHandler,
    ExtensionData,
    ExtensionHost,
    ExtensionsHandler,
    FileSyncHandler,
    Handler,
    KindPaths,
    Marker,
    normalize_extensions,
)
from confsync.sync.warehouse import LocationResolver, Warehouse, build_handlers

__all__ = [
    "MARKER_FILE",
    "DirectorySyncHandler",
    "ExtensionData",
    "ExtensionHost",
    "ExtensionsHandler",
    "FileSyncHandler",
    "Fingerprint",
    "Handler",
    "KindPaths",
    "LocationResolver",
    "Marker",
    "PartialFingerprint",
    "Warehouse",
    "build_handlers",
    "normalize_extensions",
]
