"""Status command for ghostctl."""

import click

from ghostctl.commands.common import fail, get_services
from ghostctl.commands.list import format_age
from ghostctl.core.errors import GhostError, NotFound
from ghostctl.core.paths import SESSION_MARKERS
from ghostctl.core.registry import validate_cluster_name


@click.command()
@click.argument("name")
@click.pass_context
def status(ctx: click.Context, name: str) -> None:
    """Show details and live status of a cluster.

    Examples:

        ghostctl status pr-42
    """
    services = get_services(ctx)

    record = None
    try:
        validate_cluster_name(name)
        record = services.registry.lookup(name)
    except NotFound:
        click.echo(f"Warning: '{name}' is not in the local registry", err=True)
    except GhostError as e:
        fail(e)

    namespace = record.namespace if record else services.config.namespace

    try:
        live = services.vcluster.status(name, namespace)
    except GhostError as e:
        fail(e)

    click.echo(f"Name:       {name}")
    click.echo(f"Namespace:  {namespace}")
    click.echo(f"Status:     {live}")
    if record is not None:
        click.echo(f"Age:        {format_age(record.created_at)}")
        if record.ttl:
            click.echo(f"TTL:        {record.ttl}")
        if record.host_cluster:
            click.echo(f"Host:       {record.host_cluster}")
        for label, value in (
            ("CPU", record.cpu),
            ("Memory", record.memory),
            ("Storage", record.storage),
        ):
            if value:
                click.echo(f"{label + ':':<12}{value}")
        if record.gpu:
            gpu = f"{record.gpu} ({record.gpu_type})" if record.gpu_type else str(record.gpu)
            click.echo(f"GPU:        {gpu}")
        for key, value in sorted(record.labels.items()):
            click.echo(f"Label:      {key}={value}")

    if services.credentials.exists(name):
        kubeconfig = services.credentials.path_for(name)
        click.echo(f"Kubeconfig: {kubeconfig}")
        try:
            reachable = services.kubectl.is_reachable(kubeconfig)
        except GhostError as e:
            services.logger.warning("Skipping reachability check: %s", e)
        else:
            click.echo(f"Reachable:  {'yes' if reachable else 'no'}")

    for mode in SESSION_MARKERS:
        try:
            session = services.sessions(mode).current()
        except GhostError as e:
            services.logger.warning("Could not read %s session: %s", mode, e)
            continue
        if session is not None and session.cluster == name:
            click.echo(f"Session:    connected ({mode} mode)")
