"""Version-control backends used by the single-repo checkout."""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from ..process import CommandRunner, SubprocessRunner, run_checked


class VCSBackend(Protocol):
    """
    Minimal set of version-control primitives.

    Attributes:
        name: the backend name (e.g., "git").
        marker: the metadata directory identifying a working copy.
    """

    name: str
    marker: str

    def clone(self, url: str, dest: Path) -> None: ...

    def remote_url(self, dest: Path) -> str | None: ...

    def fetch(self, dest: Path, url: str, ref: str | None) -> None: ...

    def pin(self, dest: Path, rev: str | None) -> None: ...

    def revision(self, dest: Path) -> str: ...


class GitBackend:
    """Backend driving the git command line."""

    name = "git"
    marker = ".git"

    def __init__(self, runner: CommandRunner | None = None) -> None:
        self.runner = runner if runner is not None else SubprocessRunner()

    def clone(self, url: str, dest: Path) -> None:
        run_checked(self.runner, ["git", "clone", url, str(dest)])

    def remote_url(self, dest: Path) -> str | None:
        result = self.runner.run(["git", "config", "--get", "remote.origin.url"], cwd=dest)
        if not result.success:
            return None
        return result.stdout.strip() or None

    def fetch(self, dest: Path, url: str, ref: str | None) -> None:
        args = ["git", "fetch", url]
        if ref:
            args.append(ref)
        run_checked(self.runner, args, cwd=dest)

    def pin(self, dest: Path, rev: str | None) -> None:
        # Git cannot fetch arbitrary revisions, so when we are not given
        # one we check out whatever the previous fetch resolved to.
        run_checked(self.runner, ["git", "checkout", "-f", rev or "FETCH_HEAD"], cwd=dest)

    def revision(self, dest: Path) -> str:
        return run_checked(self.runner, ["git", "rev-parse", "HEAD"], cwd=dest).stdout.strip()


class HgBackend:
    """Backend driving the mercurial command line."""

    name = "hg"
    marker = ".hg"

    def __init__(self, runner: CommandRunner | None = None) -> None:
        self.runner = runner if runner is not None else SubprocessRunner()

    def clone(self, url: str, dest: Path) -> None:
        run_checked(self.runner, ["hg", "clone", "--noupdate", url, str(dest)])

    def remote_url(self, dest: Path) -> str | None:
        result = self.runner.run(["hg", "paths", "default"], cwd=dest)
        if not result.success:
            return None
        return result.stdout.strip() or None

    def fetch(self, dest: Path, url: str, ref: str | None) -> None:
        args = ["hg", "pull", url]
        if ref:
            args.extend(["-r", ref])
        run_checked(self.runner, args, cwd=dest)

    def pin(self, dest: Path, rev: str | None) -> None:
        run_checked(self.runner, ["hg", "update", "-C", rev or "tip"], cwd=dest)

    def revision(self, dest: Path) -> str:
        args = ["hg", "log", "-r", ".", "--template", "{node}"]
        return run_checked(self.runner, args, cwd=dest).stdout.strip()


def make_backends(runner: CommandRunner | None = None) -> dict[str, VCSBackend]:
    """Return all the known backends indexed by name."""
    return {"git": GitBackend(runner), "hg": HgBackend(runner)}


def detect_backend(dest: Path, backends: dict[str, VCSBackend]) -> VCSBackend | None:
    """Return the backend owning the working copy at dest, if any."""
    for backend in backends.values():
        if (dest / backend.marker).is_dir():
            return backend
    return None
