"""Git operations on the repository that holds the storage directory."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from confsync.core.process import OperationalError, Process

logger = logging.getLogger(__name__)


class NotAGitRepoError(OperationalError):
    """The storage directory is not inside a Git working tree."""

    def __init__(self, inner_path: Path | str) -> None:
        super().__init__(
            None,
            f"Directory {inner_path} is not part of a Git repository. Did you forget to run git init?",
        )
        self.inner_path = inner_path


class GitOperations:
    """Runs git commands at the repository root.

    find_root() must succeed before any other operation is used.
    """

    def __init__(self) -> None:
        self.root: Path | None = None

    def find_root(self, inner_path: Path | str) -> Path:
        """Walk upward from *inner_path* to the directory holding ``.git``.

        Raises:
            NotAGitRepoError: If the filesystem root is reached first.
        """
        check = Path(os.path.abspath(inner_path))
        while check != check.parent:
            if (check / ".git").exists():
                self.root = check
                logger.debug("Repository root of %s is %s", inner_path, check)
                return check
            check = check.parent
        raise NotAGitRepoError(inner_path)

    async def _git(self, *args: str) -> str:
        if self.root is None:
            raise OperationalError(None, "Repository root is unknown.")
        result = await Process(["git", *args]).cwd(self.root).run()
        result.check()
        return result.stdout

    async def fetch(self) -> None:
        await self._git("fetch")

    async def pull_fast_forward(self) -> None:
        await self._git("pull", "--ff-only")

    async def is_working_tree_clean(self) -> bool:
        return (await self._git("status", "--short")).strip() == ""

    async def ahead_count(self) -> int:
        """Commits on HEAD that are not on the upstream branch."""
        return _count(await self._git("rev-list", "--count", "@{u}..HEAD"))

    async def behind_count(self) -> int:
        """Commits on the upstream branch that are not on HEAD."""
        return _count(await self._git("rev-list", "--count", "HEAD..@{u}"))

    async def last_commit_id(self) -> str:
        return (await self._git("log", "--format=%H", "-n", "1")).strip()


def _count(stdout: str) -> int:
    try:
        return int(stdout.strip() or "0")
    except ValueError as e:
        raise OperationalError(e, f"Unexpected git output: {stdout.strip()!r}.") from e
