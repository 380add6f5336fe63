"""List command for ghostctl.

Shows every registered cluster with its live status.
"""

from datetime import datetime, timezone

import click
import orjson

from ghostctl.commands.common import fail, format_table, get_services
from ghostctl.core.errors import BinaryMissing, GhostError
from ghostctl.core.registry import ClusterRecord


def format_age(created_at: datetime | None, now: datetime | None = None) -> str:
    """Render the time since created_at as 45s, 12m, 3h or 2d."""
    if created_at is None:
        return "-"
    now = now or datetime.now(timezone.utc)
    seconds = max(0, int((now - created_at).total_seconds()))
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        return f"{seconds // 60}m"
    if seconds < 86400:
        return f"{seconds // 3600}h"
    return f"{seconds // 86400}d"


def _sort_key(record: ClusterRecord) -> datetime:
    return record.created_at or datetime.min.replace(tzinfo=timezone.utc)


@click.command("list")
@click.option(
    "--output",
    "-o",
    type=click.Choice(["table", "json"]),
    default="table",
    help="Output format",
)
@click.option("--no-status", is_flag=True, help="Skip the live status check")
@click.pass_context
def list_clusters(ctx: click.Context, output: str, no_status: bool) -> None:
    """List registered clusters.

    Examples:

        ghostctl list

        ghostctl list -o json
    """
    services = get_services(ctx)
    try:
        records = sorted(services.registry.list(), key=_sort_key)
    except GhostError as e:
        fail(e)

    statuses: dict[str, str] = {}
    if not no_status:
        for record in records:
            try:
                statuses[record.name] = services.vcluster.status(record.name, record.namespace)
            except BinaryMissing as e:
                services.logger.warning("Skipping live status: %s", e)
                break

    if output == "json":
        items = []
        for record in records:
            item = record.to_dict()
            if record.name in statuses:
                item["status"] = statuses[record.name]
            items.append(item)
        click.echo(orjson.dumps(items, option=orjson.OPT_INDENT_2).decode())
        return

    if not records:
        click.echo("No clusters found. Create one with 'ghostctl up <name>'")
        return

    headers = ["NAME", "NAMESPACE", "STATUS", "AGE", "TTL"]
    rows = [
        [
            record.name,
            record.namespace,
            statuses.get(record.name, "-"),
            format_age(record.created_at),
            record.ttl or "-",
        ]
        for record in records
    ]
    click.echo(format_table(headers, rows))
