"""Logs command for ghostctl."""

import click

from ghostctl.commands.common import fail, get_services
from ghostctl.core.errors import GhostError
from ghostctl.core.kubectl import LogOptions
from ghostctl.core.registry import validate_cluster_name


@click.command()
@click.argument("name")
@click.argument("pod", required=False, default="")
@click.option("--namespace", "-n", default="", help="Namespace inside the cluster")
@click.option("--labels", "-l", default="", help="Label selector instead of a pod name")
@click.option("--container", "-c", default="", help="Container name")
@click.option("--follow/--no-follow", default=True, help="Stream new log lines")
@click.option("--tail", type=int, default=10, help="Lines of recent log to show")
@click.option("--since", default="", help="Only logs newer than a duration (e.g. 5m)")
@click.option("--timestamps", is_flag=True, help="Prefix lines with timestamps")
@click.option("--previous", "-p", is_flag=True, help="Logs of the previous container instance")
@click.option("--all-containers", is_flag=True, help="Logs of every container in the pod")
@click.pass_context
def logs(
    ctx: click.Context,
    name: str,
    pod: str,
    namespace: str,
    labels: str,
    container: str,
    follow: bool,
    tail: int,
    since: str,
    timestamps: bool,
    previous: bool,
    all_containers: bool,
) -> None:
    """Stream logs from a pod inside a cluster.

    Examples:

        ghostctl logs pr-42 api-7d4b9 -n default

        ghostctl logs pr-42 -l app=web --no-follow --tail 100
    """
    if not pod and not labels:
        raise click.UsageError("Specify a POD or a label selector with --labels")

    services = get_services(ctx)
    options = LogOptions(
        pod=pod,
        namespace=namespace,
        labels=labels,
        container=container,
        follow=follow,
        tail=tail,
        since=since,
        timestamps=timestamps,
        previous=previous,
        all_containers=all_containers,
    )

    try:
        validate_cluster_name(name)
        cluster_namespace = services.registry.namespace_for(name, services.config.namespace)
        kubeconfig = services.credentials.get_or_fetch(name, cluster_namespace)
        exit_code = services.kubectl.logs(kubeconfig, options)
    except GhostError as e:
        fail(e)

    raise SystemExit(exit_code)
