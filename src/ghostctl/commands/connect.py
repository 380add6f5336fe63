"""Connect and disconnect commands for ghostctl.

In export mode the commands print shell statements, so they are meant to be
wrapped in eval:

    eval "$(ghostctl connect pr-42)"
    eval "$(ghostctl disconnect)"

Everything other than the statement goes to stderr.
"""

import os

import click

from ghostctl.commands.common import fail, get_services
from ghostctl.core.config import CONNECT_MODES
from ghostctl.core.errors import GhostError, NothingToDisconnect
from ghostctl.core.registry import validate_cluster_name
from ghostctl.core.session import SHELLS


def detect_shell() -> str:
    """Guess the calling shell from $SHELL, defaulting to bash."""
    name = os.path.basename(os.environ.get("SHELL", ""))
    return name if name in SHELLS else "bash"


mode_option = click.option(
    "--mode",
    type=click.Choice(CONNECT_MODES),
    default=None,
    help="export: print a KUBECONFIG statement; merge: switch the kube context "
    "(default from config)",
)
shell_option = click.option(
    "--shell",
    type=click.Choice(SHELLS),
    default=None,
    help="Shell syntax for printed statements (default: detected from $SHELL)",
)


@click.command()
@click.argument("name")
@click.option("--namespace", "-n", default=None, help="Host namespace (default: from registry)")
@click.option(
    "--path-only",
    is_flag=True,
    help="Print the cluster's kubeconfig path without starting a session",
)
@mode_option
@shell_option
@click.pass_context
def connect(
    ctx: click.Context,
    name: str,
    namespace: str | None,
    path_only: bool,
    mode: str | None,
    shell: str | None,
) -> None:
    """Switch to a cluster.

    The first connect remembers your current kubeconfig selection;
    'ghostctl disconnect' returns to it, however many clusters you
    connected to in between.

    Examples:

        eval "$(ghostctl connect pr-42)"

        ghostctl connect pr-42 --mode merge

        kubectl --kubeconfig "$(ghostctl connect pr-42 --path-only)" get pods
    """
    services = get_services(ctx)

    try:
        validate_cluster_name(name)
        if path_only:
            namespace = namespace or services.registry.namespace_for(
                name, services.config.namespace
            )
            click.echo(str(services.credentials.get_or_fetch(name, namespace)))
            return

        result = services.sessions(mode, shell or detect_shell()).connect(name, namespace)
    except GhostError as e:
        fail(e)

    click.echo(result.output)
    if result.started_session:
        click.echo(
            f"Connected to '{name}'. Run 'ghostctl disconnect' to return.", err=True
        )
    else:
        click.echo(f"Switched to '{name}'.", err=True)


@click.command()
@mode_option
@shell_option
@click.pass_context
def disconnect(ctx: click.Context, mode: str | None, shell: str | None) -> None:
    """Return to the kubeconfig selection active before the first connect.

    Examples:

        eval "$(ghostctl disconnect)"

        ghostctl disconnect --mode merge
    """
    services = get_services(ctx)

    try:
        result = services.sessions(mode, shell or detect_shell()).disconnect()
    except NothingToDisconnect as e:
        click.echo(e.message, err=True)
        if e.hint:
            click.echo(f"  {e.hint}", err=True)
        raise SystemExit(1)
    except GhostError as e:
        fail(e)

    for warning in result.warnings:
        click.echo(f"Warning: {warning}", err=True)
    click.echo(result.output)
    click.echo("Disconnected.", err=True)
