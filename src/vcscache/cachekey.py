"""Module deriving cache keys from repository identities."""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass
from typing import Final

from .errors import InvalidNamespace
from .identity import RepositoryIdentity

# Version of the digest algorithm. Changing the algorithm is a breaking
# change of the cache format and requires bumping this value, which is
# embedded into the default namespace prefixes below.
DIGEST_VERSION: Final[str] = "v1"

DEFAULT_NAMESPACE_PREFIX: Final[str] = f"vcscache.{DIGEST_VERSION}.repo-project"
DEFAULT_CLONE_NAMESPACE_PREFIX: Final[str] = f"vcscache.{DIGEST_VERSION}.clones"

# Keys of the artifact index are dot-separated components.
_NAMESPACE_RE = re.compile(r"^[A-Za-z0-9_\-]+(\.[A-Za-z0-9_\-]+)*$")


@dataclass(frozen=True, kw_only=True)
class CacheKey:
    """Key under which an archive is indexed in the artifact index."""

    namespace: str
    digest: str

    def __str__(self) -> str:
        return self.namespace


def compute_digest(identity: RepositoryIdentity | str, branch: str) -> str:
    """Return the hex digest for the given identity and branch."""
    name = f"{identity}/{branch}"
    return hashlib.sha256(name.encode("utf-8")).hexdigest()


def derive_key(
    identity: RepositoryIdentity | str,
    branch: str,
    namespace_prefix: str = DEFAULT_NAMESPACE_PREFIX,
) -> CacheKey:
    """
    Derive the CacheKey for the given identity and branch.

    Raises:
        InvalidNamespace: if the branch is empty or the resulting namespace
            contains characters that are not legal in the index key space.
    """
    if not branch:
        raise InvalidNamespace(f"empty branch for {identity}")
    digest = compute_digest(identity, branch)
    namespace = f"{namespace_prefix}.{digest}"
    if not _NAMESPACE_RE.match(namespace):
        raise InvalidNamespace(f"invalid namespace: {namespace!r}")
    return CacheKey(namespace=namespace, digest=digest)
