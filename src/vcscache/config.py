"""
Configuration of a cached checkout.

The configuration may be loaded from a YAML file like:

    version: 0
    checkout:
      index: https://example.com/vcscache/index.json
      branch: master
      jobs: 4
      repo_url: https://gerrit.googlesource.com/git-repo
      repo_revision: stable

Every field of the `checkout` section is optional and command line
flags override the values read from the file.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Final

import dacite
import yaml

from .cachekey import DEFAULT_CLONE_NAMESPACE_PREFIX, DEFAULT_NAMESPACE_PREFIX

CONFIG_ENV_VAR: Final[str] = "VCSCACHE_CONFIG"
INDEX_ENV_VAR: Final[str] = "VCSCACHE_INDEX"

SUPPORTED_VCS: Final[tuple[str, ...]] = ("git", "hg")


@dataclass(frozen=True, kw_only=True)
class CheckoutConfig:
    """
    Settings shared by all the phases of a checkout.

    Attributes:
        namespace: index namespace prefix for project archives.
        clone_namespace: index namespace prefix for single-repo archives.
        branch: manifest branch, also used to derive cache keys.
        jobs: number of projects to sync in parallel (>= 1).
        force_clone: clone from the remote when no cached copy is available.
        repo_url: URL of the repo tool passed to `repo init`.
        repo_revision: revision of the repo tool passed to `repo init`.
        manifest_name: manifest file name passed to `repo init -m`.
        index: path or URL of the artifact index (None disables the cache).
        vcs: backend used to clone the seed repository.
        download_workers: concurrent downloads (None: one per project).
    """

    namespace: str = DEFAULT_NAMESPACE_PREFIX
    clone_namespace: str = DEFAULT_CLONE_NAMESPACE_PREFIX
    branch: str = "master"
    jobs: int = 1
    force_clone: bool = False
    repo_url: str | None = None
    repo_revision: str | None = None
    manifest_name: str | None = None
    index: str | None = None
    vcs: str = "git"
    download_workers: int | None = None

    def __post_init__(self):
        if self.jobs < 1:
            raise ValueError(f"jobs must be >= 1, got {self.jobs}")
        if self.download_workers is not None and self.download_workers < 1:
            raise ValueError(f"download_workers must be >= 1, got {self.download_workers}")
        if self.vcs not in SUPPORTED_VCS:
            raise ValueError(f"Unsupported vcs: {self.vcs} (expected one of {SUPPORTED_VCS})")
        if not self.branch:
            raise ValueError("branch must not be empty")

    def with_overrides(self, **overrides: Any) -> CheckoutConfig:
        """Return a copy replacing the fields whose override is not None."""
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


@dataclass(frozen=True, kw_only=True)
class ConfigFile:
    version: int
    checkout: CheckoutConfig = field(default_factory=CheckoutConfig)


def load_config(config_path: str | Path | None) -> CheckoutConfig:
    """
    Load the configuration from the given YAML file.

    Returns the default configuration when config_path is None.

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the file content is not a valid configuration.
    """
    if config_path is None:
        return CheckoutConfig()

    config_path = Path(config_path)
    content = config_path.read_text()

    try:
        data = yaml.safe_load(content) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"Config {config_path} must be a mapping.")

    try:
        config = dacite.from_dict(
            ConfigFile,
            data,
            config=dacite.Config(strict=True),
        )
    except dacite.DaciteError as exc:
        raise ValueError(f"Invalid config {config_path}: {exc}") from exc

    if config.version != 0:
        raise ValueError(f"Unsupported config version: {config.version}")

    return config.checkout

