"""Repo checkout command."""

from pathlib import Path

import click
from rich.console import Console
from rich.table import Table

from ..artifacts import ArchiveCacheClient, JSONArtifactIndex, NullArtifactIndex
from ..checkout import RepoCheckout
from ..config import CONFIG_ENV_VAR, INDEX_ENV_VAR, CheckoutConfig
from ..manifest import RepoToolWorkspace
from ..orchestrator import CheckoutOrchestrator, CheckoutRequest, CheckoutState
from ..stats import CheckoutStats
from . import cli
from .interceptor import Interceptor
from .logger import configure_logging
from .settings import resolve_config


def build_orchestrator(config: CheckoutConfig, console: Console) -> CheckoutOrchestrator:
    """Create the orchestrator and its collaborators for the given config."""
    index = JSONArtifactIndex(config.index) if config.index else NullArtifactIndex()
    cache = ArchiveCacheClient(index)
    seed = RepoCheckout(
        vcs=config.vcs,
        cache=cache if config.index else None,
        branch=config.branch,
        namespace_prefix=config.clone_namespace,
    )
    workspace = RepoToolWorkspace(manifest_name=config.manifest_name)

    def on_state(state: CheckoutState) -> None:
        console.rule(state.value)

    return CheckoutOrchestrator(
        config=config,
        seed=seed,
        workspace=workspace,
        cache=cache,
        on_state=on_state,
    )


def _print_summary(console: Console, stats: CheckoutStats) -> None:
    table = Table(title=f"Checkout completed in {(stats.duration or 0) / 1000:.1f}s")
    table.add_column("Project")
    table.add_column("Duration (ms)", justify="right")
    for name, entry in sorted(stats.projects.items()):
        table.add_row(name, str(entry.duration))
    console.print(table)


@cli.command("repo-checkout")
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
@click.option("--namespace", default=None, help="Namespace prefix under the artifact index")
@click.option(
    "--force-clone",
    is_flag=True,
    default=False,
    help="Clone from the remote repository when a cached copy is not available",
)
@click.option("-b", "--branch", default=None, help="Branch to pass to `repo init -b`")
@click.option(
    "-j",
    "--jobs",
    type=click.IntRange(min=1),
    default=None,
    help="Number of projects to sync in parallel",
)
@click.option("--repo-url", default=None, help="URL of the repo tool")
@click.option("--repo-revision", default=None, help="Revision of the repo tool")
@click.option("-m", "--manifest-name", default=None, help="Manifest file to pass to `repo init -m`")
@click.option(
    "--download-workers",
    type=click.IntRange(min=1),
    default=None,
    help="Number of parallel downloads (default: one per project)",
)
@click.option("-v", "--verbose", is_flag=True, default=False, help="Verbose mode.")
@click.argument("directory", type=click.Path(file_okay=False, path_type=Path))
@click.argument("base_url")
@click.argument("manifest")
@click.argument("head_url", required=False)
@click.argument("head_rev", required=False)
@click.argument("head_ref", required=False)
def repo_checkout(
    config_file: Path | None,
    index: str | None,
    namespace: str | None,
    force_clone: bool,
    branch: str | None,
    jobs: int | None,
    repo_url: str | None,
    repo_revision: str | None,
    manifest_name: str | None,
    download_workers: int | None,
    verbose: bool,
    directory: Path,
    base_url: str,
    manifest: str,
    head_url: str | None,
    head_rev: str | None,
    head_ref: str | None,
) -> None:
    """Check out BASE_URL into DIRECTORY and sync the projects of MANIFEST.

    Project archives are extracted from the cache before running
    `repo sync`. Without `--force-clone`, a project missing from the
    cache aborts the checkout rather than being cloned from scratch.

    \b
    HEAD_URL  repository to fetch changes from (default: BASE_URL)
    HEAD_REV  revision to check out (default: the tip)
    HEAD_REF  reference to fetch (default: HEAD_REV)
    """
    configure_logging(verbose)
    config = resolve_config(
        config_file,
        index=index,
        namespace=namespace,
        force_clone=force_clone or None,
        branch=branch,
        jobs=jobs,
        repo_url=repo_url,
        repo_revision=repo_revision,
        manifest_name=manifest_name,
        download_workers=download_workers,
    )

    console = Console()
    interceptor = Interceptor()
    with interceptor:
        orchestrator = build_orchestrator(config, console)
        stats = orchestrator.run(
            CheckoutRequest(
                directory=directory.resolve(),
                base_url=base_url,
                manifest=manifest,
                head_url=head_url,
                head_rev=head_rev,
                head_ref=head_ref,
            )
        )
        _print_summary(console, stats)

    raise SystemExit(interceptor.exitcode())
