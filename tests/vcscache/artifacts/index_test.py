"""Tests for the vcscache.artifacts.index module."""

import hashlib
import json
from pathlib import Path
from unittest.mock import MagicMock

import pytest
import requests

from vcscache.artifacts.index import (
    ArtifactEntry,
    IndexDocument,
    JSONArtifactIndex,
    NullArtifactIndex,
)
from vcscache.errors import CacheTransportError

_NS = "vcscache.v1.repo-project.abc123"


def _sha256(content: bytes) -> str:
    """Compute SHA256 hex digest for test data."""
    return hashlib.sha256(content).hexdigest()


def _write_index(path: Path, artifacts: dict[str, dict[str, str]], v: int = 0) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps({"v": v, "artifacts": artifacts}))
    return path


def _fake_response(*, status_code=200, json_data=None, content=b"") -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = json_data
    resp.headers = {"Content-Length": str(len(content))}
    resp.iter_content = MagicMock(return_value=iter([content]))
    if status_code >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status_code} error")
    return resp


class TestIndexDocument:
    """Tests for the IndexDocument dataclass."""

    def test_unsupported_version(self):
        with pytest.raises(ValueError, match="Unsupported index version"):
            IndexDocument(v=1)


class TestJSONArtifactIndexLoadFile:
    """Tests for loading an index from the local disk."""

    def test_missing_file_is_empty(self, tmp_path):
        index = JSONArtifactIndex(tmp_path / "index.json")
        assert index.document == IndexDocument(v=0)
        assert index.probe(_NS) is False

    def test_load_success(self, tmp_path):
        path = _write_index(
            tmp_path / "index.json",
            {_NS: {"url": "archives/a.tar.gz", "sha256": "abc"}},
        )
        index = JSONArtifactIndex(path)
        assert index.document.artifacts == {
            _NS: ArtifactEntry(url="archives/a.tar.gz", sha256="abc")
        }
        assert index.probe(_NS) is True
        assert index.probe("vcscache.v1.repo-project.other") is False

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "index.json"
        path.write_text("{ invalid json }")
        with pytest.raises(json.JSONDecodeError):
            JSONArtifactIndex(path)

    def test_invalid_version(self, tmp_path):
        path = _write_index(tmp_path / "index.json", {}, v=1)
        with pytest.raises(ValueError, match="Unsupported index version"):
            JSONArtifactIndex(path)

    def test_invalid_field_types(self, tmp_path):
        path = tmp_path / "index.json"
        path.write_text('{"v": 0, "artifacts": {"x": {"url": 17}}}')
        with pytest.raises(ValueError, match="Invalid index document"):
            JSONArtifactIndex(path)


class TestJSONArtifactIndexDownloadFile:
    """Tests for downloading archives referenced by a local index."""

    def test_relative_url(self, tmp_path):
        """Verify relative URLs are resolved against the index directory."""
        content = b"archive content"
        archive = tmp_path / "archives" / "a.tar.gz"
        archive.parent.mkdir()
        archive.write_bytes(content)
        path = _write_index(
            tmp_path / "index.json",
            {_NS: {"url": "archives/a.tar.gz", "sha256": _sha256(content)}},
        )

        dest = tmp_path / "out.tar.gz"
        JSONArtifactIndex(path).download(_NS, dest)
        assert dest.read_bytes() == content

    def test_absolute_url_without_checksum(self, tmp_path):
        archive = tmp_path / "a.tar.gz"
        archive.write_bytes(b"xyz")
        path = _write_index(tmp_path / "index" / "index.json", {_NS: {"url": str(archive)}})

        dest = tmp_path / "out.tar.gz"
        JSONArtifactIndex(path).download(_NS, dest)
        assert dest.read_bytes() == b"xyz"

    def test_checksum_mismatch(self, tmp_path):
        archive = tmp_path / "a.tar.gz"
        archive.write_bytes(b"tampered")
        path = _write_index(
            tmp_path / "index.json",
            {_NS: {"url": "a.tar.gz", "sha256": _sha256(b"original")}},
        )
        with pytest.raises(CacheTransportError, match="SHA256 mismatch"):
            JSONArtifactIndex(path).download(_NS, tmp_path / "out.tar.gz")

    def test_missing_archive_file(self, tmp_path):
        """Verify a dangling index entry is a transport error, not a miss."""
        path = _write_index(tmp_path / "index.json", {_NS: {"url": "nonexistent.tar.gz"}})
        with pytest.raises(CacheTransportError):
            JSONArtifactIndex(path).download(_NS, tmp_path / "out.tar.gz")

    def test_unknown_namespace(self, tmp_path):
        path = _write_index(tmp_path / "index.json", {})
        with pytest.raises(CacheTransportError, match="no archive indexed"):
            JSONArtifactIndex(path).download(_NS, tmp_path / "out.tar.gz")


class TestJSONArtifactIndexHTTP:
    """Tests for an index served over HTTP."""

    _INDEX_URL = "https://example.com/vcscache/index.json"

    def test_not_found_is_empty(self):
        session = MagicMock()
        session.get.return_value = _fake_response(status_code=404)
        index = JSONArtifactIndex(self._INDEX_URL, session=session)
        assert index.probe(_NS) is False

    def test_server_error(self):
        session = MagicMock()
        session.get.return_value = _fake_response(status_code=500)
        with pytest.raises(CacheTransportError, match="cannot load index"):
            JSONArtifactIndex(self._INDEX_URL, session=session)

    def test_connection_error(self):
        session = MagicMock()
        session.get.side_effect = requests.ConnectionError("connection refused")
        with pytest.raises(CacheTransportError, match="connection refused"):
            JSONArtifactIndex(self._INDEX_URL, session=session)

    def test_download_relative_url(self, tmp_path):
        """Verify we resolve the archive URL and stream it to disk."""
        content = b"remote archive"
        index_data = {
            "v": 0,
            "artifacts": {_NS: {"url": "archives/a.tar.gz", "sha256": _sha256(content)}},
        }
        responses = {
            self._INDEX_URL: _fake_response(json_data=index_data),
            "https://example.com/vcscache/archives/a.tar.gz": _fake_response(content=content),
        }
        session = MagicMock()
        session.get.side_effect = lambda url, **kwargs: responses[url]

        dest = tmp_path / "out.tar.gz"
        JSONArtifactIndex(self._INDEX_URL, session=session).download(_NS, dest)

        assert dest.read_bytes() == content
        session.get.assert_called_with(
            "https://example.com/vcscache/archives/a.tar.gz", stream=True, timeout=60
        )

    def test_download_http_error(self, tmp_path):
        index_data = {"v": 0, "artifacts": {_NS: {"url": "https://cdn.example.com/a.tar.gz"}}}
        responses = {
            self._INDEX_URL: _fake_response(json_data=index_data),
            "https://cdn.example.com/a.tar.gz": _fake_response(status_code=503),
        }
        session = MagicMock()
        session.get.side_effect = lambda url, **kwargs: responses[url]

        index = JSONArtifactIndex(self._INDEX_URL, session=session)
        with pytest.raises(CacheTransportError, match="cannot download"):
            index.download(_NS, tmp_path / "out.tar.gz")


class TestNullArtifactIndex:
    def test_always_misses(self, tmp_path):
        index = NullArtifactIndex()
        assert index.probe(_NS) is False
        with pytest.raises(CacheTransportError):
            index.download(_NS, tmp_path / "out.tar.gz")
