"""Module implementing ManifestWorkspace using the `repo` tool."""

from __future__ import annotations

import logging
from pathlib import Path

from ..process import CommandRunner, SubprocessRunner, run_checked
from .models import Project
from .parser import parse_manifest

log = logging.getLogger("manifest/repo")


class RepoToolWorkspace:
    """
    Workspace managed by the `repo` command line tool.

    This class implements the manifest.ManifestWorkspace protocol.
    """

    def __init__(
        self,
        *,
        runner: CommandRunner | None = None,
        command: str = "repo",
        manifest_name: str | None = None,
    ) -> None:
        """
        Initialize the workspace.

        Parameters:
            runner: optional CommandRunner (default: SubprocessRunner).
            command: name or path of the repo executable.
            manifest_name: optional manifest file name passed to `repo init -m`.
        """
        self.runner = runner if runner is not None else SubprocessRunner()
        self.command = command
        self.manifest_name = manifest_name

    def init(
        self,
        directory: Path,
        manifest: str,
        *,
        branch: str,
        repo_url: str | None = None,
        repo_revision: str | None = None,
    ) -> None:
        args = [self.command, "init", "-u", manifest, "-b", branch]
        if self.manifest_name:
            args.extend(["-m", self.manifest_name])
        if repo_url:
            args.extend(["--repo-url", repo_url])
        if repo_revision:
            args.extend(["--repo-rev", repo_revision])
        log.info("repo init %s (branch=%s)... start", manifest, branch)
        run_checked(self.runner, args, cwd=directory)
        log.info("repo init %s (branch=%s)... ok", manifest, branch)

    def list_projects(self, directory: Path) -> list[Project]:
        metadata_dir = directory / ".repo"
        projects = parse_manifest(
            metadata_dir / "manifest.xml",
            include_dir=metadata_dir / "manifests",
            manifest_url=self._manifest_url(metadata_dir),
        )
        log.info("manifest declares %d project(s)", len(projects))
        return projects

    def sync(self, directory: Path, *, concurrency: int = 1) -> None:
        if concurrency < 1:
            raise ValueError(f"concurrency must be >= 1, got {concurrency}")
        log.info("repo sync -j %d... start", concurrency)
        run_checked(self.runner, [self.command, "sync", "-j", str(concurrency)], cwd=directory)
        log.info("repo sync -j %d... ok", concurrency)

    def _manifest_url(self, metadata_dir: Path) -> str:
        config = metadata_dir / "manifests.git" / "config"
        if not config.exists():
            return ""
        result = self.runner.run(
            ["git", "config", "--file", str(config), "--get", "remote.origin.url"]
        )
        return result.stdout.strip() if result.success else ""
