"""Config commands for ghostctl."""

from dataclasses import asdict, fields

import click
import orjson

from ghostctl.core.config import GhostConfig, get_config_path, load_config, set_config_value


@click.group()
def config() -> None:
    """View and change ghostctl settings.

    Settings live in ~/.ghost/config.json. GHOSTCTL_NAMESPACE,
    GHOSTCTL_LOG_LEVEL and GHOSTCTL_CONNECT_MODE override the file.
    """


@config.command("get")
@click.argument("key", required=False)
def config_get(key: str | None) -> None:
    """Print one setting, or all of them as JSON."""
    try:
        current = asdict(load_config())
    except ValueError as e:
        click.echo(f"Error: invalid configuration: {e}", err=True)
        click.echo(f"  Fix: Edit or remove {get_config_path()}", err=True)
        raise SystemExit(1)

    if key is None:
        click.echo(orjson.dumps(current, option=orjson.OPT_INDENT_2).decode())
        return
    if key not in current:
        click.echo(f"Error: unknown setting '{key}'", err=True)
        click.echo(f"  Fix: Use one of {', '.join(current)}", err=True)
        raise SystemExit(1)
    click.echo(current[key])


@config.command("set")
@click.argument("key")
@click.argument("value")
def config_set(key: str, value: str) -> None:
    """Change a setting.

    Examples:

        ghostctl config set namespace ci-clusters

        ghostctl config set connect_mode merge
    """
    try:
        set_config_value(key, value)
    except KeyError:
        names = ", ".join(f.name for f in fields(GhostConfig))
        click.echo(f"Error: unknown setting '{key}'", err=True)
        click.echo(f"  Fix: Use one of {names}", err=True)
        raise SystemExit(1)
    except ValueError as e:
        click.echo(f"Error: invalid value for {key}: {e}", err=True)
        raise SystemExit(1)
    click.echo(f"{key} = {value}")


@config.command("path")
def config_path() -> None:
    """Print the location of the config file."""
    click.echo(str(get_config_path()))
