"""
Parser for the XML manifests used by the `repo` tool.

We only interpret the subset of the format needed to compute the
name, path and remote URL of each project:

    <manifest>
      <remote name="origin" fetch=".." />
      <default remote="origin" revision="master" />
      <include name="base.xml" />
      <project name="platform/build" path="build" />
      <remove-project name="platform/unused" />
    </manifest>

A relative `fetch` attribute is resolved against the manifest URL.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import urljoin

from ..errors import VCSCacheError
from .models import Project


class ManifestParseError(VCSCacheError, ValueError):
    """The manifest is malformed or references unknown remotes."""


@dataclass(kw_only=True)
class _State:
    manifest_url: str
    remotes: dict[str, str] = field(default_factory=dict)
    default_remote: str | None = None
    projects: list[tuple[str, str, str | None]] = field(default_factory=list)
    seen: set[Path] = field(default_factory=set)


def parse_manifest(
    manifest_file: Path,
    *,
    include_dir: Path | None = None,
    manifest_url: str = "",
) -> list[Project]:
    """
    Parse the given manifest and return its projects in document order.

    Args:
        manifest_file: the top-level manifest file.
        include_dir: directory containing included manifests
            (default: the directory containing manifest_file).
        manifest_url: URL of the manifest repository, used to
            resolve relative fetch URLs.

    Raises:
        ManifestParseError: if the manifest cannot be interpreted.
    """
    state = _State(manifest_url=manifest_url)
    _parse_file(manifest_file, include_dir or manifest_file.parent, state)

    result: list[Project] = []
    for name, path, remote_name in state.projects:
        remote_name = remote_name or state.default_remote
        if remote_name is None:
            raise ManifestParseError(f"project {name} has no remote")
        try:
            fetch = state.remotes[remote_name]
        except KeyError as exc:
            raise ManifestParseError(f"project {name} uses unknown remote {remote_name}") from exc
        result.append(Project(name=name, path=path, remote=f"{fetch}/{name}"))
    return result


def _parse_file(manifest_file: Path, include_dir: Path, state: _State) -> None:
    resolved = manifest_file.resolve()
    if resolved in state.seen:
        raise ManifestParseError(f"include loop detected at {manifest_file}")
    state.seen.add(resolved)

    try:
        root = ET.parse(manifest_file).getroot()
    except (OSError, ET.ParseError) as exc:
        raise ManifestParseError(f"cannot parse {manifest_file}: {exc}") from exc
    if root.tag != "manifest":
        raise ManifestParseError(f"{manifest_file}: expected <manifest>, got <{root.tag}>")

    for node in root:
        if node.tag == "remote":
            name = _required(node, "name", manifest_file)
            fetch = _required(node, "fetch", manifest_file)
            state.remotes[name] = _resolve_fetch(fetch, state.manifest_url)
        elif node.tag == "default":
            state.default_remote = node.get("remote", state.default_remote)
        elif node.tag == "include":
            name = _required(node, "name", manifest_file)
            _parse_file(include_dir / name, include_dir, state)
        elif node.tag == "project":
            name = _required(node, "name", manifest_file)
            path = node.get("path") or name
            state.projects.append((name, path, node.get("remote")))
        elif node.tag == "remove-project":
            name = _required(node, "name", manifest_file)
            state.projects = [entry for entry in state.projects if entry[0] != name]


def _required(node: ET.Element, attribute: str, manifest_file: Path) -> str:
    value = node.get(attribute)
    if not value:
        raise ManifestParseError(f"{manifest_file}: <{node.tag}> without {attribute}")
    return value


def _resolve_fetch(fetch: str, manifest_url: str) -> str:
    fetch = fetch.rstrip("/")
    if ":" in fetch or not manifest_url:
        return fetch
    base = manifest_url.rstrip("/")
    return urljoin(base, fetch).rstrip("/")
