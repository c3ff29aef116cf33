"""Module containing the ArchiveCacheClient implementation."""

from __future__ import annotations

import logging
import os
import tarfile
from pathlib import Path
from tempfile import TemporaryDirectory
from typing import Final

from filelock import FileLock

from ..errors import ArchiveExtractError, CacheTransportError
from ..identity import RepositoryIdentity
from .index import ArtifactIndex

log = logging.getLogger("artifacts/client")

ARCHIVE_SUFFIX: Final[str] = ".tar.gz"


def archive_path_for(dest_dir: Path, namespace: str) -> Path:
    """Return where the archive for the given namespace is stored under dest_dir."""
    return dest_dir / ".repo" / "cache" / f"{namespace}{ARCHIVE_SUFFIX}"


class ArchiveCacheClient:
    """
    Client fetching and unpacking cached archives.

    Fetching is safe to run concurrently for distinct namespaces, since each
    download goes into its own temporary directory and is then atomically
    moved into place. Extracting is not, and callers must serialize it.
    """

    def __init__(self, index: ArtifactIndex) -> None:
        self.index = index

    def fetch_if_available(
        self,
        identity: RepositoryIdentity | str,
        namespace: str,
        dest_dir: Path,
    ) -> Path | None:
        """
        Download the archive for namespace under dest_dir.

        Returns the path of the downloaded archive or None when the index
        does not contain the namespace, which is a regular cache miss.

        Raises:
            CacheTransportError: on network or storage failures.
        """
        log.info("probing %s (%s)... start", identity, namespace)
        if not self.index.probe(namespace):
            log.info("probing %s (%s)... miss", identity, namespace)
            return None
        log.info("probing %s (%s)... hit", identity, namespace)

        archive_path = archive_path_for(dest_dir, namespace)
        try:
            archive_path.parent.mkdir(parents=True, exist_ok=True)
            with FileLock(archive_path.parent / f"{namespace}.lock"):
                # Operate inside a temporary directory in the destination
                # directory so `os.replace()` is atomic.
                with TemporaryDirectory(dir=archive_path.parent) as tmp_dir:
                    tmp_file = Path(tmp_dir) / archive_path.name
                    self.index.download(namespace, tmp_file)
                    os.replace(tmp_file, archive_path)
        except OSError as exc:
            raise CacheTransportError(f"cannot store archive {archive_path}: {exc}") from exc

        return archive_path

    def extract(self, archive_path: Path, dest_dir: Path) -> None:
        """
        Unpack the archive into dest_dir and remove it.

        Must be called at most once per archive and never concurrently
        with another extraction into the same tree.

        Raises:
            ArchiveExtractError: if the archive is corrupt or cannot be written.
        """
        log.info("extracting %s... start", archive_path.name)
        try:
            dest_dir.mkdir(parents=True, exist_ok=True)
            with tarfile.open(archive_path, "r:*") as tf:
                tf.extractall(path=dest_dir, filter="data")
        except (OSError, tarfile.TarError) as exc:
            log.warning("extracting %s... failure: %s", archive_path.name, exc)
            raise ArchiveExtractError(f"cannot extract {archive_path}: {exc}") from exc
        archive_path.unlink(missing_ok=True)
        log.info("extracting %s... ok", archive_path.name)
