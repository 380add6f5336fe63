"""CLI entry point for ghostctl.

Usage:
    ghostctl up <name>                  # Create a vCluster
    eval "$(ghostctl connect <name>)"   # Switch to it
    eval "$(ghostctl disconnect)"       # Return to where you were
    ghostctl down <name>                # Destroy it
"""

import click

from ghostctl.commands.config import config
from ghostctl.commands.connect import connect, disconnect
from ghostctl.commands.down import down
from ghostctl.commands.exec import exec_command
from ghostctl.commands.list import list_clusters
from ghostctl.commands.logs import logs
from ghostctl.commands.status import status
from ghostctl.commands.up import up


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Log debug output to stderr")
@click.version_option(package_name="ghostctl")
@click.pass_context
def main(ctx: click.Context, verbose: bool) -> None:
    """ghostctl - Ephemeral Kubernetes clusters on demand.

    Create throwaway vClusters, hop between them, and get back to
    the cluster you started from.
    """
    # Store in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


main.add_command(up)
main.add_command(down)
main.add_command(list_clusters)
main.add_command(status)
main.add_command(connect)
main.add_command(disconnect)
main.add_command(exec_command)
main.add_command(logs)
main.add_command(config)


if __name__ == "__main__":
    main()
