"""Tests for the vcscache.stats module."""

import json
from datetime import datetime, timedelta, timezone

from vcscache.stats import (
    STATS_FILENAME,
    CheckoutStats,
    ProjectStats,
    elapsed_ms,
    format_timestamp,
    load_stats,
    save_stats,
    stats_path_for_dir,
)


class TestFormatTimestamp:
    """Tests for format_timestamp."""

    def test_utc(self):
        value = datetime(2025, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
        assert format_timestamp(value) == "2025-01-01T10:00:00.000000Z"

    def test_converts_to_utc(self):
        value = datetime(2025, 1, 1, 12, 30, 0, tzinfo=timezone(timedelta(hours=2)))
        assert format_timestamp(value) == "2025-01-01T10:30:00.000000Z"


class TestElapsedMs:
    def test_rounding(self):
        assert elapsed_ms(1.0, 1.5) == 500
        assert elapsed_ms(10.0, 10.0004) == 0
        assert elapsed_ms(10.0, 10.0006) == 1


class TestCheckoutStats:
    """Tests for accumulating stats."""

    def test_begin(self):
        now = datetime(2025, 1, 1, tzinfo=timezone.utc)
        stats = CheckoutStats.begin(now)
        assert stats.start == "2025-01-01T00:00:00.000000Z"
        assert stats.stop is None
        assert stats.duration is None
        assert stats.projects == {}

    def test_merge_adds_durations(self):
        """Verify that contributions from different phases are summed."""
        stats = CheckoutStats.begin()
        stats.merge({"proj1": 0, "proj2": 0})
        stats.merge({"proj1": 120})
        stats.merge({"proj1": 30, "proj3": 5})
        assert stats.projects == {
            "proj1": ProjectStats(duration=150),
            "proj2": ProjectStats(duration=0),
            "proj3": ProjectStats(duration=5),
        }

    def test_finish(self):
        stats = CheckoutStats.begin()
        stats.finish(1234, datetime(2025, 1, 1, 0, 0, 1, tzinfo=timezone.utc))
        assert stats.duration == 1234
        assert stats.stop == "2025-01-01T00:00:01.000000Z"


class TestStatsFile:
    """Tests for writing and reading the stats file."""

    def test_path(self, tmp_path):
        assert stats_path_for_dir(tmp_path) == tmp_path / ".repo" / STATS_FILENAME

    def test_round_trip(self, tmp_path):
        """Verify that re-reading the file yields the accumulated stats."""
        stats = CheckoutStats.begin()
        stats.merge({"proj1": 10, "proj2": 0})
        stats.finish(42)
        path = tmp_path / STATS_FILENAME

        assert save_stats(stats, path) == path
        assert load_stats(path) == stats

    def test_json_schema(self, tmp_path):
        """Verify the on-disk format."""
        stats = CheckoutStats.begin(datetime(2025, 1, 1, tzinfo=timezone.utc))
        stats.merge({"proj1": 10})
        stats.finish(42, datetime(2025, 1, 1, 0, 0, 1, tzinfo=timezone.utc))
        path = save_stats(stats, tmp_path / STATS_FILENAME)

        data = json.loads(path.read_text())
        assert data == {
            "start": "2025-01-01T00:00:00.000000Z",
            "stop": "2025-01-01T00:00:01.000000Z",
            "duration": 42,
            "projects": {"proj1": {"duration": 10}},
        }
        # No temporary files are left behind
        assert [p.name for p in tmp_path.iterdir()] == [STATS_FILENAME]
