"""Module containing the artifact index implementations."""

from __future__ import annotations

import hashlib
import json
import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final, Protocol
from urllib.parse import urljoin

import requests
from dacite import DaciteError, from_dict
from tqdm import tqdm

from ..errors import CacheTransportError

log = logging.getLogger("artifacts/index")

_CHUNK_SIZE: Final[int] = 8192


class ArtifactIndex(Protocol):
    """
    Remote service indexing archives by namespace.

    Methods:
        probe: return whether an archive exists for the namespace.
        download: write the archive for the namespace to dest.
    """

    def probe(self, namespace: str) -> bool: ...

    def download(self, namespace: str, dest: Path) -> None: ...


@dataclass(frozen=True, kw_only=True)
class ArtifactEntry:
    """Entry in the index for a single archive."""

    url: str
    sha256: str | None = None


@dataclass(frozen=True, kw_only=True)
class IndexDocument:
    """Document listing all the archives known to the index."""

    v: int
    artifacts: dict[str, ArtifactEntry] = field(default_factory=dict)

    def __post_init__(self):
        if self.v != 0:
            raise ValueError(f"Unsupported index version: {self.v} (only v=0 supported)")


class NullArtifactIndex:
    """Index that contains nothing, used when no index is configured."""

    def probe(self, namespace: str) -> bool:
        return False

    def download(self, namespace: str, dest: Path) -> None:
        raise CacheTransportError(f"no artifact index configured for {namespace}")


class JSONArtifactIndex:
    """
    Artifact index backed by a JSON document.

    The document lives either on the local disk or at an http(s) URL and
    archive URLs inside it may be relative to the document location.
    """

    def __init__(
        self,
        location: str | Path,
        *,
        session: requests.Session | None = None,
        timeout: float = 60,
    ) -> None:
        self.location = str(location)
        self.session = session if session is not None else requests.Session()
        self.timeout = timeout
        self.document = self._load()

    def probe(self, namespace: str) -> bool:
        return namespace in self.document.artifacts

    def download(self, namespace: str, dest: Path) -> None:
        try:
            entry = self.document.artifacts[namespace]
        except KeyError as exc:
            raise CacheTransportError(f"no archive indexed for {namespace}") from exc

        url = self._resolve(entry.url)
        log.info("downloading %s... start", url)
        try:
            if _is_http(url):
                self._download_http(url, dest)
            else:
                shutil.copyfile(url, dest)
        except requests.RequestException as exc:
            log.warning("downloading %s... failure: %s", url, exc)
            raise CacheTransportError(f"cannot download {url}: {exc}") from exc
        except OSError as exc:
            log.warning("downloading %s... failure: %s", url, exc)
            raise CacheTransportError(f"cannot write {dest}: {exc}") from exc
        log.info("downloading %s... ok", url)

        if entry.sha256 is not None:
            sha256 = _compute_sha256(dest)
            if sha256 != entry.sha256:
                raise CacheTransportError(
                    f"SHA256 mismatch for {namespace}: expected {entry.sha256}, got {sha256}"
                )

    def _download_http(self, url: str, dest: Path) -> None:
        resp = self.session.get(url, stream=True, timeout=self.timeout)
        resp.raise_for_status()
        total = resp.headers.get("Content-Length")
        with (
            open(dest, "wb") as filep,
            tqdm(
                total=int(total) if total is not None else None,
                unit="B",
                unit_scale=True,
                unit_divisor=1024,
                desc=dest.name,
                disable=None,
            ) as pbar,
        ):
            for chunk in resp.iter_content(chunk_size=_CHUNK_SIZE):
                filep.write(chunk)
                pbar.update(len(chunk))

    def _resolve(self, url: str) -> str:
        if _is_http(url) or Path(url).is_absolute():
            return url
        if _is_http(self.location):
            return urljoin(self.location, url)
        return str(Path(self.location).parent / url)

    def _load(self) -> IndexDocument:
        log.info("loading index %s... start", self.location)
        data = self._load_http() if _is_http(self.location) else self._load_file()
        if data is None:
            log.info("loading index %s... empty", self.location)
            return IndexDocument(v=0)
        try:
            document = from_dict(IndexDocument, data)
        except DaciteError as exc:
            raise ValueError(f"Invalid index document {self.location}: {exc}") from exc
        log.info("loading index %s... ok", self.location)
        return document

    def _load_http(self) -> dict | None:
        try:
            resp = self.session.get(self.location, timeout=self.timeout)
            if resp.status_code == 404:
                return None
            resp.raise_for_status()
            return resp.json()
        except requests.RequestException as exc:
            raise CacheTransportError(f"cannot load index {self.location}: {exc}") from exc

    def _load_file(self) -> dict | None:
        path = Path(self.location)
        if not path.exists():
            return None
        with open(path) as filep:
            return json.load(filep)


def _is_http(url: str) -> bool:
    return url.startswith(("http://", "https://"))


def _compute_sha256(path: Path) -> str:
    """Compute SHA256 hash of a file."""
    sha256 = hashlib.sha256()
    with open(path, "rb") as fp:
        while chunk := fp.read(_CHUNK_SIZE):
            sha256.update(chunk)
    return sha256.hexdigest()
