"""
Archive cache for project checkouts.

Archives are gzip tarballs containing the version-control object store
of a project, with member names relative to the checkout directory, e.g.:

    .repo/projects/platform/build.git/HEAD
    .repo/projects/platform/build.git/objects/...

The index listing the archives is a JSON document:

{
  "v": 0,
  "artifacts": {
    "vcscache.v1.repo-project.3a421c62179a...": {
      "url": "https://example.com/archives/3a421c62179a....tar.gz",
      "sha256": "b5bb9d8014a0..."
    }
  }
}

The `url` may be relative to the location of the index document. The
`sha256` is optional and, when present, we verify downloads against it.
"""

from .client import ARCHIVE_SUFFIX, ArchiveCacheClient, archive_path_for
from .index import (
    ArtifactEntry,
    ArtifactIndex,
    IndexDocument,
    JSONArtifactIndex,
    NullArtifactIndex,
)

__all__ = [
    "ARCHIVE_SUFFIX",
    "ArchiveCacheClient",
    "ArtifactEntry",
    "ArtifactIndex",
    "IndexDocument",
    "JSONArtifactIndex",
    "NullArtifactIndex",
    "archive_path_for",
]
