"""Logging setup for the vcscache CLI."""

from __future__ import annotations

import logging
import os
import sys

import colorlog

_FORMAT = "[%(asctime)s] <%(name)s> %(levelname)s: %(message)s"
_COLOR_FORMAT = "%(log_color)s[%(asctime)s] <%(name)s> %(levelname)s:%(reset)s %(message)s"
_DATEFMT = "%H:%M:%S"

# Libraries logging every HTTP connection or lock acquisition.
_NOISY_LOGGERS = ("urllib3", "filelock")


def _stderr_is_colorable() -> bool:
    return os.getenv("NO_COLOR") is None and sys.stderr.isatty()


def _make_formatter() -> logging.Formatter:
    if not _stderr_is_colorable():
        return logging.Formatter(_FORMAT, datefmt=_DATEFMT)
    return colorlog.ColoredFormatter(
        _COLOR_FORMAT,
        datefmt=_DATEFMT,
        log_colors={
            "DEBUG": "cyan",
            "INFO": "green",
            "WARNING": "bold_yellow",
            "ERROR": "bold_red",
            "CRITICAL": "bold_red,bg_white",
        },
    )


def configure_logging(verbose: bool) -> None:
    """
    Log to stderr at INFO level, or DEBUG when verbose.

    The stderr of failing version-control commands is only shown in
    verbose mode.
    """
    handler = logging.StreamHandler()
    handler.setFormatter(_make_formatter())
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        handlers=[handler],
        force=True,
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.INFO if verbose else logging.WARNING)
