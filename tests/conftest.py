"""Shared pytest fixtures for vcscache tests."""

from pathlib import Path

import pytest


@pytest.fixture
def manifests_dir() -> Path:
    """Return path to the manifest fixtures directory."""
    return Path(__file__).parent / "fixtures" / "manifests"
