"""Helpers shared by ghostctl commands."""

from typing import NoReturn

import click

from ghostctl.core.config import load_config
from ghostctl.core.errors import GhostError
from ghostctl.core.logging_config import configure_logging
from ghostctl.core.services import Services, build_services


def get_services(ctx: click.Context) -> Services:
    """Get (building on first use) the components for this invocation."""
    obj = ctx.ensure_object(dict)
    if "services" not in obj:
        try:
            config = load_config()
        except ValueError as e:
            click.echo(f"Error: invalid configuration: {e}", err=True)
            click.echo("  Fix: Inspect it with 'ghostctl config get'", err=True)
            raise SystemExit(1)
        level = "debug" if obj.get("verbose") else config.log_level
        obj["services"] = build_services(config, configure_logging(level))
    return obj["services"]


def fail(error: GhostError) -> NoReturn:
    """Print an error with its suggested fix and exit 1."""
    click.echo(f"Error: {error.message}", err=True)
    if error.hint:
        click.echo(f"  Fix: {error.hint}", err=True)
    raise SystemExit(1)


def format_table(headers: list[str], rows: list[list[str]]) -> str:
    """Format rows as left-aligned columns separated by two spaces."""
    widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row):
            widths[i] = max(widths[i], len(cell))

    lines = []
    for row in [headers, *rows]:
        cells = [cell.ljust(widths[i]) for i, cell in enumerate(row)]
        lines.append("  ".join(cells).rstrip())
    return "\n".join(lines)
