"""
Package adapting manifest-driven multi-project workspaces.

The orchestrator only depends on the `ManifestWorkspace` protocol, which
`RepoToolWorkspace` implements on top of the `repo` command line tool.
"""

from .models import ManifestWorkspace, Project
from .parser import ManifestParseError, parse_manifest
from .repotool import RepoToolWorkspace

__all__ = [
    "ManifestParseError",
    "ManifestWorkspace",
    "Project",
    "RepoToolWorkspace",
    "parse_manifest",
]
