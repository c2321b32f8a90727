"""Subprocess runner for external tools (git, the editor CLI, file browsers).

This module provides:
- Process: builder for a single command invocation
- ProcessResult: captured stdout/stderr and the failure cause, if any
- OperationalError: raised by callers when an external tool fails

Process.run() never raises for a failed command. A non-zero exit, a spawn
failure and a timeout are all recorded on the result so callers decide how
to surface them.
"""

from __future__ import annotations

import asyncio
import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 60.0  # seconds


class OperationalError(Exception):
    """An external tool invocation failed.

    Attributes:
        cause: Underlying error (ExitError, OSError, TimeoutError) or None.
        cmd_line: Rendered command line of the failed invocation.
    """

    def __init__(self, cause: BaseException | None, message: str, cmd_line: str = "") -> None:
        super().__init__(message)
        self.cause = cause
        self.cmd_line = cmd_line

    def unwrap(self) -> BaseException | None:
        """Return the underlying error."""
        return self.cause


class ExitError(Exception):
    """A process exited with a non-zero status."""

    def __init__(self, code: int) -> None:
        super().__init__(f"process exited with {code}")
        self.code = code


@dataclass
class ProcessResult:
    """Outcome of a process run."""

    cmd: list[str]
    error: BaseException | None
    stdout: str
    stderr: str

    @property
    def cmd_line(self) -> str:
        return " ".join(self.cmd)

    @property
    def error_message(self) -> str:
        return str(self.error) if self.error is not None else ""

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def check(self, error_cls: type[OperationalError] = OperationalError) -> ProcessResult:
        """Raise *error_cls* if the run failed, otherwise return self."""
        if self.error is not None:
            raise error_cls(
                self.error,
                f"Command {self.cmd_line} failed: {self.error_message}.",
                self.cmd_line,
            )
        return self


class Process:
    """A single command invocation.

    Example:
        result = await Process(["git", "fetch"]).cwd(root).run()
        result.check()
    """

    def __init__(self, cmd: list[str]) -> None:
        self.cmd = list(cmd)
        self._cwd: str = os.getcwd()
        self._timeout: float = DEFAULT_TIMEOUT

    def cwd(self, path: os.PathLike[str] | str) -> Process:
        self._cwd = os.fspath(path)
        return self

    def timeout(self, seconds: float) -> Process:
        self._timeout = seconds
        return self

    async def run(self) -> ProcessResult:
        """Run the command and capture its output.

        Returns:
            ProcessResult with ``error`` set on non-zero exit, spawn failure
            or timeout.
        """
        logger.debug("Running %s (cwd=%s)", " ".join(self.cmd), self._cwd)
        try:
            proc = await asyncio.create_subprocess_exec(
                *self.cmd,
                cwd=self._cwd,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            return ProcessResult(self.cmd, e, "", "")

        try:
            out, err = await asyncio.wait_for(proc.communicate(), timeout=self._timeout)
        except TimeoutError:
            proc.kill()
            await proc.wait()
            return ProcessResult(
                self.cmd,
                TimeoutError(f"timed out after {self._timeout:g}s"),
                "",
                "",
            )

        stdout = out.decode("utf-8", errors="replace")
        stderr = err.decode("utf-8", errors="replace")
        error: BaseException | None = None
        if proc.returncode != 0:
            error = ExitError(proc.returncode if proc.returncode is not None else -1)
            logger.debug("%s exited with %s: %s", self.cmd[0], proc.returncode, stderr.strip())
        return ProcessResult(self.cmd, error, stdout, stderr)
