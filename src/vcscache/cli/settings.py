"""Resolve the configuration from the config file and the CLI flags."""

from __future__ import annotations

from pathlib import Path
from typing import Any

import click

from ..config import CheckoutConfig, load_config


def resolve_config(config_file: Path | None, **overrides: Any) -> CheckoutConfig:
    """Load config_file (if any) and apply the flags that were given."""
    try:
        return load_config(config_file).with_overrides(**overrides)
    except FileNotFoundError as exc:
        raise click.ClickException(f"Config not found: {config_file}") from exc
    except ValueError as exc:
        raise click.ClickException(str(exc)) from exc
