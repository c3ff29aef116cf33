"""Errors raised by the vcscache library."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path


class VCSCacheError(Exception):
    """Base class for all the errors raised by this package."""


class InvalidIdentity(VCSCacheError, ValueError):
    """The remote URL cannot be turned into a repository identity."""


class InvalidNamespace(VCSCacheError, ValueError):
    """The derived namespace is not legal in the artifact index key space."""


class CacheTransportError(VCSCacheError):
    """
    Network or storage failure while talking to the artifact index.

    This is distinct from a cache miss, which is not an error.
    """


class ArchiveExtractError(VCSCacheError):
    """We could not unpack a downloaded archive."""


class CheckoutError(VCSCacheError):
    """
    A version-control operation failed.

    Attributes:
        stderr: the standard error of the failed command, unmodified.
    """

    def __init__(self, message: str, *, stderr: str = "") -> None:
        super().__init__(message)
        self.stderr = stderr


class CacheMissWithoutForce(VCSCacheError):
    """
    A cached archive was not found and force-clone was not requested.

    Attributes:
        projects: names of the projects without a cached archive.
    """

    def __init__(self, projects: Sequence[str]) -> None:
        self.projects = tuple(projects)
        names = ", ".join(f"'{name}'" for name in self.projects)
        super().__init__(
            f"Cached copy of {names} could not be found. "
            "Use '--force-clone' to perform a full clone"
        )


class StructuralOutputMissing(VCSCacheError):
    """
    The run completed but did not produce the expected output.

    Attributes:
        path: the path we expected to exist.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"checkout ran but did not generate {path}")
