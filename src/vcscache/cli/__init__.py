"""vcscache command-line interface."""

import click

from .. import __version__


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(__version__, message="%(version)s")
def cli() -> None:
    """Check out multi-project source trees using cached archives."""


@cli.command(hidden=True)
def help() -> None:
    """Point to the --help flags."""
    click.echo("Run `vcscache --help` to list the commands.")
    click.echo("Run `vcscache <command> --help` for the options of a command.")


@cli.command("version")
def version_cmd() -> None:
    """Print the version number."""
    click.echo(__version__)


# Commands register themselves on `cli` when imported
from . import checkout as _checkout  # noqa: E402, F401
from . import key as _key  # noqa: E402, F401
from . import repo_checkout as _repo_checkout  # noqa: E402, F401
from . import revision as _revision  # noqa: E402, F401
