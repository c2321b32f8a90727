"""Content hashing for change detection (SHA-256).

This module provides:
- hash_file: streamed digest of a single file
- hash_directory: order-independent digest of a directory tree
- hash_bytes / hash_named_bytes: digests of in-memory content

Every digest that involves a path mixes in the path *relative to a base*,
so identical trees rooted at different absolute locations hash identically.
"""

from __future__ import annotations

import hashlib
import os
from pathlib import Path

# Sentinel files that keep otherwise-empty directories in version control
MARKER_NAMES = frozenset({".gitkeep", ".keep"})

# Read block size for streamed hashing
READ_BLOCK_SIZE = 64 * 1024

# Digest of a directory without entries, relative to itself
EMPTY_DIRECTORY_DIGEST = hashlib.sha256(b"\n").hexdigest()


def trim_name(location: str, base: str) -> str:
    """Strip *base* from *location*, then one leading path separator.

    Args:
        location: Absolute path being hashed.
        base: Base path the digest should be relative to.

    Returns:
        Path of *location* relative to *base*.
    """
    if location.startswith(base):
        location = location[len(base):]
    if location.startswith("/"):
        location = location[1:]
    if location.startswith("\\"):
        location = location[1:]
    return location


def hash_file(path: Path | str, base: Path | str | None = None) -> str:
    """Compute the digest of a file.

    The digest covers the relative file name, a newline and the raw bytes.
    The file is streamed so arbitrarily large files are supported.

    Args:
        path: File to hash.
        base: Base directory for the name token (default: the file's parent).

    Returns:
        Hex-encoded SHA-256 digest.

    Raises:
        OSError: If the file cannot be opened or read.
    """
    file_path = os.path.abspath(path)
    base_path = os.path.dirname(file_path) if base is None else os.path.abspath(base)

    hasher = hashlib.sha256()
    hasher.update(trim_name(file_path, base_path).encode("utf-8"))
    hasher.update(b"\n")
    with open(file_path, "rb") as f:
        for block in iter(lambda: f.read(READ_BLOCK_SIZE), b""):
            hasher.update(block)
    return hasher.hexdigest()


def hash_directory(
    path: Path | str,
    base: Path | str | None = None,
    skip_marker: bool = False,
) -> str:
    """Compute the digest of a directory tree.

    Child digests are sorted before being combined, so the result does not
    depend on the order the filesystem lists entries in.

    Only the top-level call honours *skip_marker*: marker files found in
    nested directories are hashed like any other file.

    Args:
        path: Directory to hash.
        base: Base directory for name tokens (default: *path* itself).
        skip_marker: Ignore marker files directly inside *path*.

    Returns:
        Hex-encoded SHA-256 digest.

    Raises:
        OSError: If the tree cannot be listed or a file cannot be read.
    """
    dir_path = os.path.abspath(path)
    base_path = dir_path if base is None else os.path.abspath(base)

    digests: list[str] = []
    with os.scandir(dir_path) as entries:
        for entry in entries:
            full_path = os.path.join(dir_path, entry.name)
            if skip_marker and entry.name in MARKER_NAMES:
                digests.append("")
            elif entry.is_dir(follow_symlinks=False):
                digests.append(hash_directory(full_path, base_path, False))
            elif entry.is_file(follow_symlinks=False):
                digests.append(hash_file(full_path, base_path))
            else:
                digests.append("")

    hasher = hashlib.sha256()
    hasher.update(trim_name(dir_path, base_path).encode("utf-8"))
    hasher.update(b"\n")
    for digest in sorted(digests):
        hasher.update(digest.encode("ascii"))
    return hasher.hexdigest()


def hash_bytes(content: bytes | str) -> str:
    """Compute the digest of raw content (no name token).

    Args:
        content: Bytes, or text which is encoded as UTF-8.

    Returns:
        Hex-encoded SHA-256 digest.
    """
    if isinstance(content, str):
        content = content.encode("utf-8")
    return hashlib.sha256(content).hexdigest()


def hash_named_bytes(
    content: bytes | str,
    path: Path | str,
    base: Path | str | None = None,
) -> str:
    """Compute the digest of in-memory content as if it lived at *path*.

    Used for structured data whose canonical location is known but whose
    content is produced in memory rather than read from disk.

    Args:
        content: Bytes, or text which is encoded as UTF-8.
        path: Canonical path of the content.
        base: Base directory for the name token (default: parent of *path*).

    Returns:
        Hex-encoded SHA-256 digest.
    """
    if isinstance(content, str):
        content = content.encode("utf-8")
    file_path = os.path.abspath(path)
    base_path = os.path.dirname(file_path) if base is None else os.path.abspath(base)

    hasher = hashlib.sha256()
    hasher.update(trim_name(file_path, base_path).encode("utf-8"))
    hasher.update(b"\n")
    hasher.update(content)
    return hasher.hexdigest()
