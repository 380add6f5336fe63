"""Exec command for ghostctl.

Runs any command with KUBECONFIG pointed at a cluster, without touching the
caller's session.
"""

import click

from ghostctl.commands.common import fail, get_services
from ghostctl.core.errors import GhostError
from ghostctl.core.registry import validate_cluster_name


@click.command(
    "exec",
    context_settings={"ignore_unknown_options": True},
)
@click.argument("name")
@click.argument("command", nargs=-1, required=True, type=click.UNPROCESSED)
@click.option("--namespace", "-n", default=None, help="Host namespace (default: from registry)")
@click.pass_context
def exec_command(
    ctx: click.Context, name: str, command: tuple[str, ...], namespace: str | None
) -> None:
    """Run COMMAND against a cluster and exit with its exit code.

    Examples:

        ghostctl exec pr-42 -- kubectl get pods -A

        ghostctl exec pr-42 -- helm list
    """
    services = get_services(ctx)
    program, *args = command

    try:
        validate_cluster_name(name)
        namespace = namespace or services.registry.namespace_for(
            name, services.config.namespace
        )
        kubeconfig = services.credentials.get_or_fetch(name, namespace)
        exit_code = services.kubectl.run_with_kubeconfig(kubeconfig, program, args)
    except GhostError as e:
        fail(e)

    raise SystemExit(exit_code)
