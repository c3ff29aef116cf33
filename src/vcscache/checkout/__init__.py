"""
Package implementing the checkout of a single repository.

The `RepoCheckout` class is used both to check out the seed repository
of a multi-project checkout and as a standalone command.
"""

from .backends import GitBackend, HgBackend, VCSBackend, detect_backend, make_backends
from .checkout import RepoCheckout

__all__ = [
    "GitBackend",
    "HgBackend",
    "RepoCheckout",
    "VCSBackend",
    "detect_backend",
    "make_backends",
]
