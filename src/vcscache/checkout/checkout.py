"""Module implementing the checkout of a single repository."""

from __future__ import annotations

import logging
from pathlib import Path
from tempfile import TemporaryDirectory

from ..artifacts import ArchiveCacheClient
from ..cachekey import DEFAULT_CLONE_NAMESPACE_PREFIX, derive_key
from ..errors import CacheMissWithoutForce, CheckoutError, InvalidIdentity
from ..identity import normalize
from ..process import CommandRunner
from .backends import VCSBackend, detect_backend, make_backends

log = logging.getLogger("checkout")


class RepoCheckout:
    """
    Clones or updates a single repository and pins it to a revision.

    When a cache client is configured, fresh clones are first looked up in
    the archive cache and only performed for real with force_clone.
    """

    def __init__(
        self,
        *,
        vcs: str = "git",
        runner: CommandRunner | None = None,
        cache: ArchiveCacheClient | None = None,
        branch: str = "master",
        namespace_prefix: str = DEFAULT_CLONE_NAMESPACE_PREFIX,
    ) -> None:
        """
        Initialize the checkout.

        Parameters:
            vcs: backend to use for fresh clones ("git" or "hg").
            runner: optional CommandRunner used by the backends.
            cache: optional archive cache client to seed fresh clones.
            branch: branch used to derive the cache key.
            namespace_prefix: prefix used to derive the cache key.
        """
        self.backends = make_backends(runner)
        if vcs not in self.backends:
            raise ValueError(f"Unsupported vcs: {vcs}")
        self.vcs = vcs
        self.cache = cache
        self.branch = branch
        self.namespace_prefix = namespace_prefix

    def checkout(
        self,
        dest_dir: str | Path,
        base_url: str,
        head_url: str | None = None,
        head_rev: str | None = None,
        head_ref: str | None = None,
        *,
        force_clone: bool = False,
    ) -> None:
        """
        Make sure dest_dir contains base_url pinned to head_rev.

        Args:
            dest_dir: directory containing (or that will contain) the working copy.
            base_url: repository to clone.
            head_url: repository to fetch changes from (default: base_url).
            head_rev: revision to check out after fetching (default: the fetched tip).
            head_ref: reference to fetch (default: head_rev).
            force_clone: perform a full clone even if a cached copy could be used.

        Raises:
            CheckoutError: if any version-control operation fails.
            CacheMissWithoutForce: if the cache has no copy and force_clone is false.
        """
        dest_dir = Path(dest_dir)
        head_url = head_url or base_url
        head_ref = head_ref or head_rev

        backend = detect_backend(dest_dir, self.backends)
        if backend is None:
            if dest_dir.exists() and any(dest_dir.iterdir()):
                raise CheckoutError(f"{dest_dir} exists and is not a working copy")
            backend = self._materialize(dest_dir, base_url, force_clone=force_clone)
        else:
            self._check_origin(backend, dest_dir, base_url)

        log.info("updating %s from %s (ref=%s)... start", dest_dir, head_url, head_ref)
        backend.fetch(dest_dir, head_url, head_ref)
        backend.pin(dest_dir, head_rev)
        log.info("updating %s from %s (rev=%s)... ok", dest_dir, head_url, head_rev)

    def revision(self, dest_dir: str | Path) -> str:
        """
        Return the revision currently checked out in dest_dir.

        Raises:
            CheckoutError: if dest_dir is not a working copy or the command fails.
        """
        dest_dir = Path(dest_dir)
        backend = detect_backend(dest_dir, self.backends)
        if backend is None:
            raise CheckoutError(f"{dest_dir} is not a working copy")
        return backend.revision(dest_dir)

    def _materialize(self, dest_dir: Path, base_url: str, *, force_clone: bool) -> VCSBackend:
        if self.cache is not None and not force_clone:
            return self._extract_cached_copy(self.cache, dest_dir, base_url)

        backend = self.backends[self.vcs]
        log.info("cloning %s into %s... start", base_url, dest_dir)
        dest_dir.parent.mkdir(parents=True, exist_ok=True)
        backend.clone(base_url, dest_dir)
        log.info("cloning %s into %s... ok", base_url, dest_dir)
        return backend

    def _extract_cached_copy(
        self, cache: ArchiveCacheClient, dest_dir: Path, base_url: str
    ) -> VCSBackend:
        identity = normalize(base_url)
        key = derive_key(identity, self.branch, self.namespace_prefix)
        with TemporaryDirectory() as tmp_dir:
            archive_path = cache.fetch_if_available(identity, key.namespace, Path(tmp_dir))
            if archive_path is None:
                raise CacheMissWithoutForce([str(identity)])
            cache.extract(archive_path, dest_dir)

        backend = detect_backend(dest_dir, self.backends)
        if backend is None:
            raise CheckoutError(f"cached copy of {identity} does not contain a working copy")
        return backend

    @staticmethod
    def _check_origin(backend: VCSBackend, dest_dir: Path, base_url: str) -> None:
        origin = backend.remote_url(dest_dir)
        if origin is None:
            raise CheckoutError(f"{dest_dir} has no default remote")
        try:
            same = normalize(origin) == normalize(base_url)
        except InvalidIdentity:
            same = origin == base_url
        if not same:
            raise CheckoutError(f"{dest_dir} is a working copy of {origin}, not {base_url}")
