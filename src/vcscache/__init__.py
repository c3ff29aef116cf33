"""vcscache library.

This library speeds up manifest-driven multi-project checkouts by
extracting cached archives of each project before letting the manifest
tool sync, and falls back to real clones only when asked to.
"""

from importlib.metadata import PackageNotFoundError, version

from .artifacts import ArchiveCacheClient, JSONArtifactIndex, NullArtifactIndex
from .cachekey import CacheKey, derive_key
from .checkout import RepoCheckout
from .config import CheckoutConfig, load_config
from .errors import (
    ArchiveExtractError,
    CacheMissWithoutForce,
    CacheTransportError,
    CheckoutError,
    InvalidIdentity,
    InvalidNamespace,
    StructuralOutputMissing,
    VCSCacheError,
)
from .identity import RepositoryIdentity, normalize
from .manifest import ManifestWorkspace, Project, RepoToolWorkspace
from .orchestrator import CheckoutOrchestrator, CheckoutRequest, CheckoutState
from .stats import CheckoutStats, load_stats, save_stats

try:
    __version__ = version("vcscache")
except PackageNotFoundError:  # pragma: no cover - not installed
    __version__ = "0.0.0"

__all__ = [
    "ArchiveCacheClient",
    "ArchiveExtractError",
    "CacheKey",
    "CacheMissWithoutForce",
    "CacheTransportError",
    "CheckoutConfig",
    "CheckoutError",
    "CheckoutOrchestrator",
    "CheckoutRequest",
    "CheckoutState",
    "CheckoutStats",
    "InvalidIdentity",
    "InvalidNamespace",
    "JSONArtifactIndex",
    "ManifestWorkspace",
    "NullArtifactIndex",
    "Project",
    "RepoCheckout",
    "RepoToolWorkspace",
    "RepositoryIdentity",
    "StructuralOutputMissing",
    "VCSCacheError",
    "derive_key",
    "load_config",
    "load_stats",
    "normalize",
    "save_stats",
    "__version__",
]
