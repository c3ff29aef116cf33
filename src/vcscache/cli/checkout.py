"""Single-repository checkout command."""

from pathlib import Path

import click

from ..artifacts import ArchiveCacheClient, JSONArtifactIndex
from ..checkout import RepoCheckout
from ..config import CONFIG_ENV_VAR, INDEX_ENV_VAR, SUPPORTED_VCS, CheckoutConfig
from . import cli
from .interceptor import Interceptor
from .logger import configure_logging
from .settings import resolve_config


def build_checkout(config: CheckoutConfig) -> RepoCheckout:
    """Create the RepoCheckout for the given config."""
    cache = ArchiveCacheClient(JSONArtifactIndex(config.index)) if config.index else None
    return RepoCheckout(
        vcs=config.vcs,
        cache=cache,
        branch=config.branch,
        namespace_prefix=config.clone_namespace,
    )


@cli.command()
@click.option(
    "--config",
    "config_file",
    default=None,
    envvar=CONFIG_ENV_VAR,
    type=click.Path(dir_okay=False, path_type=Path),
    help=f"YAML config file (env: {CONFIG_ENV_VAR})",
)
@click.option(
    "--index",
    default=None,
    envvar=INDEX_ENV_VAR,
    help=f"Path or URL of the artifact index (env: {INDEX_ENV_VAR})",
)
@click.option("--namespace", "clone_namespace", default=None, help="Namespace prefix")
@click.option(
    "--force-clone",
    is_flag=True,
    default=False,
    help="Clone from the remote repository when a cached copy is not available",
)
@click.option("-b", "--branch", default=None, help="Branch used to look up the cache")
@click.option("--vcs", type=click.Choice(SUPPORTED_VCS), default=None, help="Backend for clones")
@click.option("-v", "--verbose", is_flag=True, default=False, help="Verbose mode.")
@click.argument("directory", type=click.Path(file_okay=False, path_type=Path))
@click.argument("base_url")
@click.argument("head_url", required=False)
@click.argument("head_rev", required=False)
@click.argument("head_ref", required=False)
def checkout(
    config_file: Path | None,
    index: str | None,
    clone_namespace: str | None,
    force_clone: bool,
    branch: str | None,
    vcs: str | None,
    verbose: bool,
    directory: Path,
    base_url: str,
    head_url: str | None,
    head_rev: str | None,
    head_ref: str | None,
) -> None:
    """Clone or update BASE_URL in DIRECTORY and pin it to HEAD_REV."""
    configure_logging(verbose)
    config = resolve_config(
        config_file,
        index=index,
        clone_namespace=clone_namespace,
        force_clone=force_clone or None,
        branch=branch,
        vcs=vcs,
    )

    interceptor = Interceptor()
    with interceptor:
        build_checkout(config).checkout(
            directory.resolve(),
            base_url,
            head_url,
            head_rev,
            head_ref,
            force_clone=config.force_clone,
        )

    raise SystemExit(interceptor.exitcode())
