"""Revision command."""

from pathlib import Path

import click

from ..checkout import RepoCheckout
from . import cli
from .interceptor import Interceptor
from .logger import configure_logging


@cli.command()
@click.option("-v", "--verbose", is_flag=True, default=False, help="Verbose mode.")
@click.argument("directory", type=click.Path(file_okay=False, path_type=Path))
def revision(verbose: bool, directory: Path) -> None:
    """Print the revision checked out in DIRECTORY."""
    configure_logging(verbose)
    interceptor = Interceptor()
    with interceptor:
        click.echo(RepoCheckout().revision(directory.resolve()))
    raise SystemExit(interceptor.exitcode())
