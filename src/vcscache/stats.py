"""
Module to record how long a checkout took.

The stats file is written at the end of a successful run to:

    $dir/.repo/.vcs-cache-stats.json

and has the following format:

    {
      "start": "2025-01-01T10:00:00.000000Z",
      "stop": "2025-01-01T10:03:12.123456Z",
      "duration": 192123,
      "projects": {
        "platform/build": {"duration": 1532}
      }
    }

All the durations are integer milliseconds.
"""

from __future__ import annotations

import json
import os
from collections.abc import Mapping
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from tempfile import TemporaryDirectory
from typing import Final

from dacite import from_dict

STATS_FILENAME: Final[str] = ".vcs-cache-stats.json"

_TIMESTAMP_FORMAT: Final[str] = "%Y-%m-%dT%H:%M:%S.%fZ"


def format_timestamp(value: datetime) -> str:
    """Format a datetime as an RFC3339 UTC timestamp with the Z suffix."""
    return value.astimezone(timezone.utc).strftime(_TIMESTAMP_FORMAT)


def elapsed_ms(start: float, stop: float) -> int:
    """Convert a pair of `time.monotonic()` readings into milliseconds."""
    return int(round((stop - start) * 1000))


@dataclass(kw_only=True)
class ProjectStats:
    """Timing of a single project."""

    duration: int = 0


@dataclass(kw_only=True)
class CheckoutStats:
    """Timing of a whole checkout run."""

    start: str
    stop: str | None = None
    duration: int | None = None
    projects: dict[str, ProjectStats] = field(default_factory=dict)

    @classmethod
    def begin(cls, now: datetime | None = None) -> CheckoutStats:
        """Create stats for a run starting at `now` (default: the current time)."""
        return cls(start=format_timestamp(now or datetime.now(timezone.utc)))

    def merge(self, durations: Mapping[str, int]) -> None:
        """Add the per-project durations returned by a phase."""
        for name, duration in durations.items():
            entry = self.projects.setdefault(name, ProjectStats())
            entry.duration += duration

    def finish(self, duration: int, now: datetime | None = None) -> None:
        """Stamp the stop time and the total duration."""
        self.stop = format_timestamp(now or datetime.now(timezone.utc))
        self.duration = duration

    def to_dict(self) -> dict:
        """Return the JSON-serializable representation."""
        return asdict(self)


def stats_path_for_dir(directory: Path) -> Path:
    """Return the stats file path for the given checkout directory."""
    return directory / ".repo" / STATS_FILENAME


def save_stats(stats: CheckoutStats, path: Path) -> Path:
    """Atomically write the stats to the given path and return it."""
    with TemporaryDirectory(dir=path.parent) as tmp_dir:
        tmp_file = Path(tmp_dir) / path.name
        with tmp_file.open("w") as filep:
            json.dump(stats.to_dict(), filep, indent=2)
            filep.write("\n")
        os.replace(tmp_file, path)
    return path


def load_stats(path: Path) -> CheckoutStats:
    """Load stats previously written using `save_stats`."""
    with open(path) as filep:
        data = json.load(filep)
    return from_dict(CheckoutStats, data)
