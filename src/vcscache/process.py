"""Module to run version-control commands."""

from __future__ import annotations

import logging
import shlex
import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from .errors import CheckoutError

log = logging.getLogger("process")


@dataclass(frozen=True, kw_only=True)
class CommandResult:
    """Result of running a command."""

    args: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def success(self) -> bool:
        return self.returncode == 0


class CommandRunner(Protocol):
    """Abstraction over running a subprocess, so that tests can replace it."""

    def run(self, args: Sequence[str], *, cwd: Path | None = None) -> CommandResult: ...


class SubprocessRunner:
    """CommandRunner using the subprocess module."""

    def run(self, args: Sequence[str], *, cwd: Path | None = None) -> CommandResult:
        log.debug("running %s (cwd=%s)", shlex.join(args), cwd)
        try:
            completed = subprocess.run(
                list(args),
                cwd=None if cwd is None else str(cwd),
                capture_output=True,
                text=True,
                check=False,
            )
        except OSError as exc:
            # Typically the executable is not installed
            return CommandResult(args=tuple(args), returncode=127, stderr=str(exc))
        return CommandResult(
            args=tuple(args),
            returncode=completed.returncode,
            stdout=completed.stdout,
            stderr=completed.stderr,
        )


def run_checked(
    runner: CommandRunner,
    args: Sequence[str],
    *,
    cwd: Path | None = None,
) -> CommandResult:
    """
    Run the command and return its result.

    Raises:
        CheckoutError: if the command exits with a nonzero code.
    """
    result = runner.run(args, cwd=cwd)
    if not result.success:
        raise CheckoutError(
            f"{shlex.join(args)} failed (rc={result.returncode}): {result.stderr.strip()}",
            stderr=result.stderr,
        )
    return result
