"""Key command."""

import click

from ..cachekey import DEFAULT_NAMESPACE_PREFIX, derive_key
from ..errors import InvalidIdentity, InvalidNamespace
from ..identity import normalize
from . import cli


@cli.command()
@click.option("-b", "--branch", default="master", show_default=True, help="Branch name")
@click.option(
    "--namespace",
    default=DEFAULT_NAMESPACE_PREFIX,
    show_default=True,
    help="Namespace prefix under the artifact index",
)
@click.argument("remote_url")
def key(remote_url: str, branch: str, namespace: str) -> None:
    """Print the identity and the cache namespace of a remote URL."""
    try:
        identity = normalize(remote_url)
        cache_key = derive_key(identity, branch, namespace)
    except (InvalidIdentity, InvalidNamespace) as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"identity:  {identity}")
    click.echo(f"namespace: {cache_key.namespace}")
