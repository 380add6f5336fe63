"""Up command for ghostctl.

Creates a vCluster, waits for it to become ready, caches its kubeconfig and
records it in the local registry.
"""

import click

from ghostctl.commands.common import fail, get_services
from ghostctl.core.errors import ClusterExists, GhostError
from ghostctl.core.registry import ClusterRecord, validate_cluster_name


def parse_labels(values: tuple[str, ...]) -> dict[str, str]:
    """Parse repeated --label key=value options."""
    labels = {}
    for value in values:
        key, sep, val = value.partition("=")
        if not sep or not key:
            raise click.BadParameter(
                f"'{value}' is not in key=value form", param_hint="--label"
            )
        labels[key] = val
    return labels


@click.command()
@click.argument("name")
@click.option("--ttl", default=None, help="Time-to-live for the cluster (e.g. 30m, 2h, 1d)")
@click.option("--namespace", "-n", default=None, help="Host namespace (default from config)")
@click.option("--cpu", default="", help="CPU allocation")
@click.option("--memory", default="", help="Memory allocation")
@click.option("--storage", default="", help="Storage allocation")
@click.option("--gpu", type=int, default=0, help="Number of GPUs")
@click.option("--gpu-type", default="", help="GPU type")
@click.option("--label", "labels", multiple=True, help="Label in key=value form (repeatable)")
@click.option(
    "--timeout",
    type=int,
    default=None,
    help="Seconds to wait for the cluster to become ready (default from config)",
)
@click.pass_context
def up(
    ctx: click.Context,
    name: str,
    ttl: str | None,
    namespace: str | None,
    cpu: str,
    memory: str,
    storage: str,
    gpu: int,
    gpu_type: str,
    labels: tuple[str, ...],
    timeout: int | None,
) -> None:
    """Create a new ephemeral vCluster.

    NAME must be lowercase alphanumeric with hyphens (max 63 characters).

    Examples:

        ghostctl up my-cluster

        ghostctl up pr-42 --ttl 2h

        ghostctl up ml-job --gpu 2 --gpu-type nvidia-a100
    """
    services = get_services(ctx)
    config = services.config
    label_map = parse_labels(labels)
    namespace = namespace or config.namespace
    ttl = config.default_ttl if ttl is None else ttl

    try:
        validate_cluster_name(name)
        if services.registry.exists(name):
            raise ClusterExists(
                f"cluster '{name}' already exists",
                hint=f"Pick another name or run 'ghostctl down {name}' first",
            )

        click.echo(f"Creating vCluster '{name}' in namespace '{namespace}'...", err=True)
        services.vcluster.create(name, namespace)

        click.echo("Waiting for vCluster to be ready...", err=True)
        services.vcluster.wait_until_ready(
            name,
            namespace,
            timeout=config.ready_timeout if timeout is None else timeout,
            interval=config.poll_interval,
        )

        click.echo("Retrieving kubeconfig...", err=True)
        services.credentials.refresh(name, namespace)

        record = services.registry.register(
            ClusterRecord(
                name=name,
                namespace=namespace,
                ttl=ttl,
                cpu=cpu,
                memory=memory,
                storage=storage,
                gpu=gpu,
                gpu_type=gpu_type,
                labels=label_map,
            )
        )
    except GhostError as e:
        fail(e)

    _display_summary(record)


def _display_summary(record: ClusterRecord) -> None:
    """Show resources and next steps for a new cluster."""
    name = record.name
    click.echo(f"\n✓ Cluster '{name}' is ready!")

    resources = [
        ("CPU", record.cpu),
        ("Memory", record.memory),
        ("Storage", record.storage),
    ]
    if record.gpu > 0:
        gpu = str(record.gpu)
        if record.gpu_type:
            gpu += f" ({record.gpu_type})"
        resources.append(("GPU", gpu))
    resources.append(("TTL", record.ttl))

    shown = [(label, value) for label, value in resources if value]
    if shown:
        click.echo("\nResources:")
        for label, value in shown:
            click.echo(f"  {label + ':':<9}{value}")

    click.echo("\nUseful commands:")
    click.echo(f"  ghostctl status {name}                 # Check cluster status")
    click.echo(f"  eval \"$(ghostctl connect {name})\"      # Switch to this cluster")
    click.echo(f"  ghostctl exec {name} -- kubectl ...    # Run a command in the cluster")
    click.echo("  eval \"$(ghostctl disconnect)\"          # Return to the parent cluster")
    click.echo(f"  ghostctl down {name}                   # Destroy the cluster")
