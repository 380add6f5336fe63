"""ghostctl configuration management.

Handles ~/.ghost/config.json. Missing or unreadable files fall back to
defaults; environment variables override file values.
"""

import os
from dataclasses import asdict, dataclass, fields
from pathlib import Path

import orjson

from ghostctl.core.paths import StateLayout

DEFAULT_NAMESPACE = "ghostcluster"
CONNECT_MODES = ("export", "merge")
LOG_LEVELS = ("debug", "info", "warning", "error")

ENV_OVERRIDES = {
    "GHOSTCTL_NAMESPACE": "namespace",
    "GHOSTCTL_LOG_LEVEL": "log_level",
    "GHOSTCTL_CONNECT_MODE": "connect_mode",
}


@dataclass
class GhostConfig:
    """User configuration.

    Attributes:
        namespace: Host namespace vClusters are created in.
        default_ttl: TTL recorded for new clusters when --ttl is not given.
        log_level: One of debug, info, warning, error.
        connect_mode: "export" (KUBECONFIG variable) or "merge" (kube context).
        kubeconfig_refresh: Seconds before a cached kubeconfig is re-fetched.
        ready_timeout: Seconds to wait for a new vCluster to become ready.
        poll_interval: Seconds between readiness probes.
    """

    namespace: str = DEFAULT_NAMESPACE
    default_ttl: str = ""
    log_level: str = "warning"
    connect_mode: str = "export"
    kubeconfig_refresh: int = 3600
    ready_timeout: int = 300
    poll_interval: int = 5

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            expected = int if f.type in (int, "int") else str
            if not isinstance(value, expected) or isinstance(value, bool):
                raise ValueError(
                    f"{f.name} must be {expected.__name__}, got {type(value).__name__}: {value!r}"
                )
        if self.connect_mode not in CONNECT_MODES:
            raise ValueError(
                f"Invalid connect_mode: {self.connect_mode}. Must be one of {CONNECT_MODES}"
            )
        if self.log_level not in LOG_LEVELS:
            raise ValueError(
                f"Invalid log_level: {self.log_level}. Must be one of {LOG_LEVELS}"
            )
        for name in ("kubeconfig_refresh", "ready_timeout", "poll_interval"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} must be >= 0")


def get_config_path() -> Path:
    """Get the path to ghostctl's config file."""
    return StateLayout.default().config_path


def read_config() -> dict:
    """Read raw config, returning empty dict if not found."""
    config_path = get_config_path()
    if not config_path.exists():
        return {}
    try:
        content = config_path.read_bytes()
        return orjson.loads(content) if content else {}
    except (orjson.JSONDecodeError, OSError):
        return {}


def write_config(config: dict) -> None:
    """Write raw config."""
    config_path = get_config_path()
    config_path.parent.mkdir(parents=True, exist_ok=True, mode=0o700)
    config_path.write_bytes(orjson.dumps(config, option=orjson.OPT_INDENT_2))


def coerce_value(key: str, value: str) -> str | int:
    """Convert a string from the command line to the type of a config key.

    Raises:
        KeyError: If key is not a config field.
        ValueError: If value cannot be converted.
    """
    types = {f.name: f.type for f in fields(GhostConfig)}
    if key not in types:
        raise KeyError(key)
    if types[key] in (int, "int"):
        return int(value)
    return value


def load_config() -> GhostConfig:
    """Load configuration: defaults, then config file, then environment.

    Unknown keys in the file are ignored.
    """
    known = {f.name for f in fields(GhostConfig)}
    values = {k: v for k, v in read_config().items() if k in known}
    for env_name, key in ENV_OVERRIDES.items():
        if env_value := os.environ.get(env_name):
            values[key] = env_value

    # Hand-edited files and the environment may carry numbers as strings
    for key, value in values.items():
        if isinstance(value, str):
            values[key] = coerce_value(key, value)
    if isinstance(values.get("log_level"), str):
        values["log_level"] = values["log_level"].lower()
    return GhostConfig(**values)


def set_config_value(key: str, value: str) -> GhostConfig:
    """Validate and persist a single config key.

    Returns:
        The resulting configuration.
    """
    coerced = coerce_value(key, value)
    config = read_config()
    candidate = {**asdict(GhostConfig()), **config, key: coerced}
    known = {f.name for f in fields(GhostConfig)}
    validated = GhostConfig(**{k: v for k, v in candidate.items() if k in known})
    config[key] = coerced
    write_config(config)
    return validated
