"""Tests for the vcscache.artifacts.client module."""

import io
import tarfile
from pathlib import Path

import pytest

from vcscache.artifacts.client import ArchiveCacheClient, archive_path_for
from vcscache.errors import ArchiveExtractError, CacheTransportError

_NS = "vcscache.v1.repo-project.abc123"


class _FakeIndex:
    """ArtifactIndex serving archives from memory."""

    def __init__(self, archives: dict[str, bytes] | None = None, fail: bool = False):
        self.archives = archives or {}
        self.fail = fail
        self.downloads: list[str] = []

    def probe(self, namespace: str) -> bool:
        return namespace in self.archives

    def download(self, namespace: str, dest: Path) -> None:
        self.downloads.append(namespace)
        if self.fail:
            dest.write_bytes(b"partial")
            raise CacheTransportError("connection reset")
        dest.write_bytes(self.archives[namespace])


def _make_tarball(members: dict[str, bytes]) -> bytes:
    """Create a gzip tarball containing the given members."""
    buffer = io.BytesIO()
    with tarfile.open(fileobj=buffer, mode="w:gz") as tf:
        for name, content in members.items():
            info = tarfile.TarInfo(name)
            info.size = len(content)
            tf.addfile(info, io.BytesIO(content))
    return buffer.getvalue()


class TestFetchIfAvailable:
    """Tests for ArchiveCacheClient.fetch_if_available."""

    def test_miss(self, tmp_path):
        """Verify a missing namespace is a miss and not an error."""
        index = _FakeIndex()
        client = ArchiveCacheClient(index)
        assert client.fetch_if_available("github.com/a/b", _NS, tmp_path) is None
        assert index.downloads == []
        assert not (tmp_path / ".repo").exists()

    def test_hit(self, tmp_path):
        index = _FakeIndex({_NS: b"archive bytes"})
        client = ArchiveCacheClient(index)

        result = client.fetch_if_available("github.com/a/b", _NS, tmp_path)

        assert result == archive_path_for(tmp_path, _NS)
        assert result == tmp_path / ".repo" / "cache" / f"{_NS}.tar.gz"
        assert result.read_bytes() == b"archive bytes"
        # The temporary download directory is gone
        assert not [p for p in result.parent.iterdir() if p.is_dir()]

    def test_transport_error_is_surfaced(self, tmp_path):
        """Verify transport failures are raised and leave no partial archive."""
        index = _FakeIndex({_NS: b"archive bytes"}, fail=True)
        client = ArchiveCacheClient(index)

        with pytest.raises(CacheTransportError, match="connection reset"):
            client.fetch_if_available("github.com/a/b", _NS, tmp_path)

        assert not archive_path_for(tmp_path, _NS).exists()


class TestExtract:
    """Tests for ArchiveCacheClient.extract."""

    def test_extract(self, tmp_path):
        archive = tmp_path / "a.tar.gz"
        archive.write_bytes(
            _make_tarball(
                {
                    ".repo/projects/gaia.git/HEAD": b"ref: refs/heads/master\n",
                    ".repo/projects/gaia.git/config": b"[core]\n",
                }
            )
        )
        dest = tmp_path / "checkout"

        ArchiveCacheClient(_FakeIndex()).extract(archive, dest)

        head = dest / ".repo" / "projects" / "gaia.git" / "HEAD"
        assert head.read_bytes() == b"ref: refs/heads/master\n"
        assert not archive.exists()

    def test_corrupt_archive(self, tmp_path):
        archive = tmp_path / "a.tar.gz"
        archive.write_bytes(b"this is not a tarball")
        with pytest.raises(ArchiveExtractError, match="cannot extract"):
            ArchiveCacheClient(_FakeIndex()).extract(archive, tmp_path / "checkout")
        # Keep the archive around for inspection
        assert archive.exists()

    def test_refuses_path_traversal(self, tmp_path):
        """Verify members outside the destination are rejected."""
        archive = tmp_path / "a.tar.gz"
        archive.write_bytes(_make_tarball({"../escaped": b"evil"}))
        dest = tmp_path / "checkout"

        with pytest.raises(ArchiveExtractError):
            ArchiveCacheClient(_FakeIndex()).extract(archive, dest)
        assert not (tmp_path / "escaped").exists()

    def test_full_round_trip(self, tmp_path):
        """Verify fetch followed by extract populates the checkout."""
        index = _FakeIndex({_NS: _make_tarball({".repo/projects/b.git/HEAD": b"x"})})
        client = ArchiveCacheClient(index)
        dest = tmp_path / "checkout"

        archive = client.fetch_if_available("github.com/a/b", _NS, dest)
        assert archive is not None
        client.extract(archive, dest)

        assert (dest / ".repo" / "projects" / "b.git" / "HEAD").read_bytes() == b"x"
