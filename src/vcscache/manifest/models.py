"""Types shared by the manifest workspace implementations."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol


@dataclass(frozen=True, kw_only=True)
class Project:
    """
    Repository declared by the manifest.

    Attributes:
        name: the project name (e.g., "platform/build").
        path: the checkout path relative to the workspace root.
        remote: the URL from which to fetch the project.
    """

    name: str
    path: str
    remote: str

    def object_store_path(self, directory: Path) -> Path:
        """Return the path where the manifest tool keeps the project objects."""
        return directory / ".repo" / "projects" / f"{self.path}.git"


class ManifestWorkspace(Protocol):
    """
    Manifest-driven multi-project workspace.

    Methods:
        init: initialize the workspace inside directory.
        list_projects: list the projects declared by the manifest.
        sync: synchronize all projects using the given concurrency.
    """

    def init(
        self,
        directory: Path,
        manifest: str,
        *,
        branch: str,
        repo_url: str | None = None,
        repo_revision: str | None = None,
    ) -> None: ...

    def list_projects(self, directory: Path) -> list[Project]: ...

    def sync(self, directory: Path, *, concurrency: int = 1) -> None: ...
