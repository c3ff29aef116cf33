"""
Module to compute the identity of a remote repository.

Hosts accept several spellings of the same repository URL, for example:

    https://github.com/mozilla-b2g/gaia
    https://github.com/mozilla-b2g/gaia.git/
    git://github.com/mozilla-b2g/gaia.git
    git@github.com:mozilla-b2g/gaia.git

All of them normalize to `github.com/mozilla-b2g/gaia`, which is the
string we hash when deriving cache keys.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Final
from urllib.parse import urlsplit

from .errors import InvalidIdentity

# Suffixes that version-control hosts treat as optional.
VCS_SUFFIXES: Final[tuple[str, ...]] = (".git", ".hg")

# Ports that are implied by one of the schemes we fold together.
_DEFAULT_PORTS: Final[frozenset[int]] = frozenset({22, 80, 443, 9418})

# scp-like syntax used by ssh remotes: [user@]host:path
_SCP_LIKE = re.compile(r"^(?:[^@/\s]+@)?(?P<host>[A-Za-z0-9.\-]+):(?P<path>[^/].*)$")


@dataclass(frozen=True)
class RepositoryIdentity:
    """Canonical, scheme-independent name of a remote repository."""

    value: str

    def __str__(self) -> str:
        return self.value


def normalize(remote_url: str | None) -> RepositoryIdentity:
    """
    Return the RepositoryIdentity of the given remote URL.

    Raises:
        InvalidIdentity: if the URL is empty or has no repository path.
    """
    if remote_url is None or not remote_url.strip():
        raise InvalidIdentity(f"invalid remote URL: {remote_url!r}")
    value = remote_url.strip()

    host, path = _split_host_and_path(value)

    # Collapse duplicate separators and remove the trailing ones before
    # and after dropping the optional suffix (e.g., `repo.git/`).
    path = re.sub(r"/+", "/", path).strip("/")
    for suffix in VCS_SUFFIXES:
        if path.endswith(suffix):
            path = path[: -len(suffix)].rstrip("/")
            break
    if not path:
        raise InvalidIdentity(f"remote URL without repository path: {remote_url!r}")

    return RepositoryIdentity(f"{host}/{path}" if host else path)


def _split_host_and_path(value: str) -> tuple[str, str]:
    if "://" in value:
        parsed = urlsplit(value)
        try:
            port = parsed.port
        except ValueError as exc:
            raise InvalidIdentity(f"invalid port in remote URL: {value!r}") from exc
        host = parsed.hostname or ""
        if port is not None and port not in _DEFAULT_PORTS:
            host = f"{host}:{port}"
        if not host and parsed.scheme != "file":
            raise InvalidIdentity(f"remote URL without host: {value!r}")
        return host, parsed.path

    match = _SCP_LIKE.match(value)
    if match is not None:
        return match.group("host").lower(), match.group("path")

    if value.startswith("/"):
        return "", value

    raise InvalidIdentity(f"unsupported remote URL: {value!r}")
