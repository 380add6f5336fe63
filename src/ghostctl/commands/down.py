"""Down command for ghostctl.

Deletes a vCluster, then cleans up its cached kubeconfig and registry entry.
A missing local record never prevents the remote deletion.
"""

import click

from ghostctl.commands.common import fail, get_services
from ghostctl.core.errors import GhostError, NotFound, ProvisioningNotFound, StateCorrupted
from ghostctl.core.registry import validate_cluster_name


@click.command()
@click.argument("name")
@click.option("--force", "-f", is_flag=True, help="Destroy without confirmation")
@click.option("--namespace", "-n", default=None, help="Host namespace (default: from registry)")
@click.pass_context
def down(ctx: click.Context, name: str, force: bool, namespace: str | None) -> None:
    """Destroy an ephemeral vCluster.

    Examples:

        ghostctl down my-cluster

        ghostctl down my-cluster --force
    """
    services = get_services(ctx)
    logger = services.logger

    try:
        validate_cluster_name(name)
    except GhostError as e:
        fail(e)

    record = None
    try:
        record = services.registry.lookup(name)
    except NotFound:
        logger.info("Local metadata for %s not found; proceeding with live deletion", name)
    except StateCorrupted as e:
        click.echo(f"Warning: {e.message}", err=True)

    if namespace is None:
        namespace = record.namespace if record else services.config.namespace

    if not force:
        if not click.confirm(
            f"Are you sure you want to destroy cluster '{name}'? This cannot be undone."
        ):
            click.echo("Cancelled")
            return

    try:
        services.vcluster.delete(name, namespace)
    except ProvisioningNotFound as e:
        if record is None:
            fail(e)
        click.echo(
            f"Warning: vCluster '{name}' no longer exists remotely; cleaning up local state",
            err=True,
        )
    except GhostError as e:
        fail(e)

    services.credentials.invalidate(name)

    if record is not None:
        try:
            services.registry.remove(name)
        except GhostError as e:
            # The remote cluster is already gone
            logger.error("Failed to remove cluster metadata: %s", e)
            click.echo(f"Warning: could not remove local metadata: {e.message}", err=True)

    _warn_if_connected(services, name)
    click.echo(f"✓ Cluster '{name}' has been destroyed")


def _warn_if_connected(services, name: str) -> None:
    """Remind the user to disconnect if the active session targets name."""
    try:
        session = services.sessions().current()
    except GhostError:
        return
    if session is not None and session.cluster == name:
        click.echo(
            f"Note: your session still points at '{name}'; run 'eval \"$(ghostctl disconnect)\"'",
            err=True,
        )
