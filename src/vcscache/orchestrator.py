"""
Module implementing the multi-project checkout state machine.

A run goes through the following states:

    SEED_CHECKOUT -> MANIFEST_INIT -> ENUMERATE -> DOWNLOAD -> EXTRACT
        -> FALLBACK_SYNC -> PERSIST -> DONE

and ends in ABORTED when EXTRACT finds cache misses without force-clone.

Downloads run in parallel on a thread pool, since each one writes into
its own temporary directory. Extractions run one at a time in project
order, since nested projects share parent directories.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Protocol

from .cachekey import derive_key
from .config import CheckoutConfig
from .errors import CacheMissWithoutForce, StructuralOutputMissing
from .identity import RepositoryIdentity, normalize
from .manifest import ManifestWorkspace, Project
from .stats import CheckoutStats, elapsed_ms, save_stats, stats_path_for_dir

log = logging.getLogger("orchestrator")


class CheckoutState(str, Enum):
    """State of a CheckoutOrchestrator run."""

    SEED_CHECKOUT = "seed_checkout"
    MANIFEST_INIT = "manifest_init"
    ENUMERATE = "enumerate"
    DOWNLOAD = "download"
    EXTRACT = "extract"
    FALLBACK_SYNC = "fallback_sync"
    PERSIST = "persist"
    DONE = "done"
    ABORTED = "aborted"


@dataclass(frozen=True)
class Present:
    """The project object store already exists locally."""

    project: Project


@dataclass(frozen=True)
class Miss:
    """The cache does not contain an archive for the project."""

    project: Project


@dataclass(frozen=True)
class Fetched:
    """We downloaded the archive for the project."""

    project: Project
    archive_path: Path


ArchiveOutcome = Present | Miss | Fetched


class ArchiveFetcher(Protocol):
    """The subset of ArchiveCacheClient used by the orchestrator."""

    def fetch_if_available(
        self,
        identity: RepositoryIdentity | str,
        namespace: str,
        dest_dir: Path,
    ) -> Path | None: ...

    def extract(self, archive_path: Path, dest_dir: Path) -> None: ...


class SeedCheckout(Protocol):
    """The subset of RepoCheckout used by the orchestrator."""

    def checkout(
        self,
        dest_dir: str | Path,
        base_url: str,
        head_url: str | None = None,
        head_rev: str | None = None,
        head_ref: str | None = None,
        *,
        force_clone: bool = False,
    ) -> None: ...


@dataclass(frozen=True, kw_only=True)
class CheckoutRequest:
    """
    What to check out.

    Attributes:
        directory: target directory.
        base_url: seed repository to clone.
        manifest: manifest path or URL used to initialize the workspace.
        head_url: seed repository to fetch changes from.
        head_rev: seed revision to check out.
        head_ref: seed reference to fetch.
    """

    directory: Path
    base_url: str
    manifest: str
    head_url: str | None = None
    head_rev: str | None = None
    head_ref: str | None = None


class CheckoutOrchestrator:
    """Component driving a cached multi-project checkout."""

    def __init__(
        self,
        *,
        config: CheckoutConfig,
        seed: SeedCheckout,
        workspace: ManifestWorkspace,
        cache: ArchiveFetcher,
        on_state: Callable[[CheckoutState], None] | None = None,
    ) -> None:
        """
        Initialize the orchestrator.

        Parameters:
            config: the checkout configuration.
            seed: used to check out the seed repository.
            workspace: the manifest workspace collaborator.
            cache: the archive cache client.
            on_state: optional callback invoked on every state transition.
        """
        self.config = config
        self.seed = seed
        self.workspace = workspace
        self.cache = cache
        self.on_state = on_state
        self.state = CheckoutState.SEED_CHECKOUT

    def run(self, request: CheckoutRequest) -> CheckoutStats:
        """
        Run the checkout and return the stats written to disk.

        Raises:
            CheckoutError: if the seed checkout or a sync operation fails.
            CacheTransportError: if downloading an archive fails.
            ArchiveExtractError: if extracting an archive fails.
            CacheMissWithoutForce: if archives are missing and force_clone is false.
            StructuralOutputMissing: if the run did not produce the metadata dir.
        """
        directory = request.directory

        self._enter(CheckoutState.SEED_CHECKOUT)
        self.seed.checkout(
            directory,
            request.base_url,
            request.head_url,
            request.head_rev,
            request.head_ref,
            force_clone=self.config.force_clone,
        )

        self._enter(CheckoutState.MANIFEST_INIT)
        self.workspace.init(
            directory,
            request.manifest,
            branch=self.config.branch,
            repo_url=self.config.repo_url,
            repo_revision=self.config.repo_revision,
        )

        self._enter(CheckoutState.ENUMERATE)
        projects = self.workspace.list_projects(directory)
        t0 = time.monotonic()
        stats = CheckoutStats.begin()
        stats.merge({project.name: 0 for project in projects})

        self._enter(CheckoutState.DOWNLOAD)
        outcomes, durations = self._download(directory, projects)
        stats.merge(durations)

        self._enter(CheckoutState.EXTRACT)
        durations, missing = self._extract(directory, outcomes)
        stats.merge(durations)
        if missing and not self.config.force_clone:
            self._enter(CheckoutState.ABORTED)
            raise CacheMissWithoutForce(list(dict.fromkeys(missing)))

        self._enter(CheckoutState.FALLBACK_SYNC)
        self.workspace.sync(directory, concurrency=self.config.jobs)

        self._enter(CheckoutState.PERSIST)
        stats.finish(elapsed_ms(t0, time.monotonic()))
        metadata_dir = directory / ".repo"
        if metadata_dir.is_dir():
            save_stats(stats, stats_path_for_dir(directory))

        self._enter(CheckoutState.DONE)
        if not metadata_dir.is_dir():
            raise StructuralOutputMissing(metadata_dir)
        return stats

    def _enter(self, state: CheckoutState) -> None:
        log.debug("state %s -> %s", self.state.value, state.value)
        self.state = state
        if self.on_state is not None:
            self.on_state(state)

    def _download(
        self,
        directory: Path,
        projects: Sequence[Project],
    ) -> tuple[list[ArchiveOutcome], dict[str, int]]:
        """Fetch the archives of all the projects missing locally, in parallel."""
        outcomes: list[ArchiveOutcome | None] = [None] * len(projects)
        durations: dict[str, int] = {}

        # Projects checked out from the same remote share one archive,
        # which we fetch only once.
        groups: dict[str, list[tuple[int, Project, RepositoryIdentity]]] = {}
        for idx, project in enumerate(projects):
            if project.object_store_path(directory).exists():
                log.info("downloading %s... skipped (present)", project.name)
                outcomes[idx] = Present(project)
                continue
            identity = normalize(project.remote)
            key = derive_key(identity, self.config.branch, self.config.namespace)
            groups.setdefault(key.namespace, []).append((idx, project, identity))

        if groups:
            workers = self.config.download_workers or len(groups)
            with ThreadPoolExecutor(max_workers=workers) as pool:
                futures = [
                    (members, pool.submit(self._download_one, directory, members[0][2], namespace))
                    for namespace, members in groups.items()
                ]
            # Leaving the with block waits for every task, so we only
            # surface failures once all the downloads have resolved.
            failure: Exception | None = None
            for members, future in futures:
                try:
                    archive_path, duration = future.result()
                except Exception as exc:
                    if failure is None:
                        failure = exc
                    continue
                for idx, project, _ in members:
                    if archive_path is None:
                        outcomes[idx] = Miss(project)
                    else:
                        outcomes[idx] = Fetched(project, archive_path)
                name = members[0][1].name
                durations[name] = durations.get(name, 0) + duration
            if failure is not None:
                _discard_archives(
                    outcome.archive_path for outcome in outcomes if isinstance(outcome, Fetched)
                )
                raise failure

        return [outcome for outcome in outcomes if outcome is not None], durations

    def _download_one(
        self,
        directory: Path,
        identity: RepositoryIdentity,
        namespace: str,
    ) -> tuple[Path | None, int]:
        t0 = time.monotonic()
        archive_path = self.cache.fetch_if_available(identity, namespace, directory)
        return archive_path, elapsed_ms(t0, time.monotonic())

    def _extract(
        self,
        directory: Path,
        outcomes: Sequence[ArchiveOutcome],
    ) -> tuple[dict[str, int], list[str]]:
        """
        Extract the fetched archives one at a time, in project order.

        A project whose object store is still missing after extraction
        counts as a miss, so that `repo sync` never clones it silently.
        """
        durations: dict[str, int] = {}
        missing: list[str] = []
        extracted: set[Path] = set()
        try:
            for outcome in outcomes:
                match outcome:
                    case Present():
                        continue
                    case Miss(project=project):
                        log.warning("cached copy of %s not found", project.name)
                        missing.append(project.name)
                    case Fetched(project=project, archive_path=archive_path):
                        if archive_path not in extracted:
                            extracted.add(archive_path)
                            t0 = time.monotonic()
                            self.cache.extract(archive_path, directory)
                            duration = elapsed_ms(t0, time.monotonic())
                            durations[project.name] = durations.get(project.name, 0) + duration
                        if not project.object_store_path(directory).exists():
                            log.warning(
                                "cached copy of %s does not contain %s", project.name, project.path
                            )
                            missing.append(project.name)
        finally:
            _discard_archives(
                outcome.archive_path
                for outcome in outcomes
                if isinstance(outcome, Fetched) and outcome.archive_path not in extracted
            )
        return durations, missing


def _discard_archives(paths: Iterable[Path]) -> None:
    for path in paths:
        if path.exists():
            log.info("removing unused archive %s", path.name)
            path.unlink(missing_ok=True)
