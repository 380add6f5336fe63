"""Local registry of ephemeral clusters.

All records live in a single JSON document, ~/.ghost/clusters.json, keyed by
cluster name:

{
  "pr-42": {"name": "pr-42", "namespace": "ghostcluster", "created_at": "...", ...}
}

Mutations read the whole document, change it, and write it back atomically
while holding clusters.lock.
"""

import logging
import re
from dataclasses import asdict, dataclass, field, fields, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

import orjson

from ghostctl.core.config import DEFAULT_NAMESPACE
from ghostctl.core.errors import InvalidClusterName, NotFound, StateCorrupted
from ghostctl.core.fileio import atomic_write, locked
from ghostctl.core.paths import StateLayout

CLUSTER_NAME_PATTERN = re.compile(r"^[a-z0-9]([a-z0-9-]*[a-z0-9])?$")
MAX_NAME_LENGTH = 63


def validate_cluster_name(name: str) -> None:
    """Check that name is a DNS-1123 label.

    Raises:
        InvalidClusterName: If the name is empty, too long or malformed.
    """
    hint = "Use lowercase letters, digits and '-', e.g. 'pr-42'"
    if not name:
        raise InvalidClusterName("cluster name cannot be empty", hint)
    if len(name) > MAX_NAME_LENGTH:
        raise InvalidClusterName(
            f"cluster name cannot exceed {MAX_NAME_LENGTH} characters", hint
        )
    if not CLUSTER_NAME_PATTERN.match(name):
        raise InvalidClusterName(
            f"invalid cluster name '{name}': must be lowercase alphanumeric "
            "with hyphens, starting and ending with alphanumeric",
            hint,
        )


@dataclass
class ClusterRecord:
    """An ephemeral cluster known to this machine.

    Attributes:
        name: Unique cluster name (DNS-1123 label)
        namespace: Host namespace the vCluster runs in
        created_at: Set by the registry on register, never by callers
        ttl: Display-only duration string (e.g. "2h")
        host_cluster: Host cluster label, "current" for the active kube context
        cpu, memory, storage, gpu, gpu_type: Resource hints shown by status/list
        labels: Free-form labels
    """

    name: str
    namespace: str = DEFAULT_NAMESPACE
    created_at: datetime | None = None
    ttl: str = ""
    host_cluster: str = "current"
    template: str = ""
    cpu: str = ""
    memory: str = ""
    storage: str = ""
    gpu: int = 0
    gpu_type: str = ""
    labels: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate the cluster name and default the namespace."""
        validate_cluster_name(self.name)
        if not self.namespace:
            self.namespace = DEFAULT_NAMESPACE

    def to_dict(self) -> dict:
        data = asdict(self)
        data["created_at"] = self.created_at.isoformat() if self.created_at else None
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "ClusterRecord":
        known = {f.name for f in fields(cls)}
        values = {k: v for k, v in data.items() if k in known}
        if values.get("created_at"):
            values["created_at"] = datetime.fromisoformat(values["created_at"])
        return cls(**values)


class Registry:
    """JSON-backed table of ClusterRecords keyed by name."""

    def __init__(
        self,
        layout: StateLayout,
        logger: logging.Logger | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.layout = layout
        self.logger = logger or logging.getLogger("ghostctl.registry")
        self._now = clock or (lambda: datetime.now(timezone.utc))

    @property
    def path(self) -> Path:
        return self.layout.registry_path

    def _load_unlocked(self) -> dict[str, ClusterRecord]:
        """Read the document without acquiring the lock."""
        if not self.path.exists():
            return {}
        content = self.path.read_bytes()
        if not content:
            return {}
        try:
            raw = orjson.loads(content)
            return {name: ClusterRecord.from_dict(data) for name, data in raw.items()}
        except (orjson.JSONDecodeError, AttributeError, TypeError, ValueError) as e:
            raise StateCorrupted(
                f"cluster registry {self.path} is unreadable: {e}",
                hint=f"Fix or remove {self.path}; clusters can be re-registered with 'ghostctl up'",
            ) from e

    def _save_unlocked(self, records: dict[str, ClusterRecord]) -> None:
        """Write the document without acquiring the lock."""
        document = {name: record.to_dict() for name, record in records.items()}
        atomic_write(self.path, orjson.dumps(document, option=orjson.OPT_INDENT_2))

    def register(self, record: ClusterRecord) -> ClusterRecord:
        """Insert or replace the record for record.name.

        created_at is always reset to now.

        Returns:
            The stored record.
        """
        stored = replace(record, created_at=self._now())
        with locked(self.layout.registry_lock):
            records = self._load_unlocked()
            records[stored.name] = stored
            self._save_unlocked(records)
        self.logger.info("Registered cluster %s in namespace %s", stored.name, stored.namespace)
        return stored

    def lookup(self, name: str) -> ClusterRecord:
        """Get a record by name.

        Raises:
            NotFound: If the cluster is not registered.
        """
        record = self._load_unlocked().get(name)
        if record is None:
            raise NotFound(
                f"cluster '{name}' not found in local registry",
                hint="Run 'ghostctl list' to see registered clusters",
            )
        return record

    def exists(self, name: str) -> bool:
        try:
            self.lookup(name)
        except NotFound:
            return False
        return True

    def namespace_for(self, name: str, default: str) -> str:
        """Namespace of a registered cluster, or default when it is unknown.

        Lets operations that can still succeed remotely carry on after the
        local record was lost.
        """
        try:
            return self.lookup(name).namespace
        except NotFound:
            self.logger.warning(
                "Cluster %s is not in the local registry; assuming namespace %s",
                name,
                default,
            )
            return default

    def remove(self, name: str) -> None:
        """Delete a record.

        Raises:
            NotFound: If the cluster is not registered. The document is untouched.
        """
        with locked(self.layout.registry_lock):
            records = self._load_unlocked()
            if name not in records:
                raise NotFound(
                    f"cluster '{name}' not found in local registry",
                    hint="Run 'ghostctl list' to see registered clusters",
                )
            del records[name]
            self._save_unlocked(records)
        self.logger.info("Removed cluster %s from registry", name)

    def list(self) -> list[ClusterRecord]:
        """All records, in no particular order."""
        return list(self._load_unlocked().values())

    def credential_path(self, name: str) -> Path:
        """Kubeconfig path for a cluster, derived from the name."""
        return self.layout.kubeconfig_path(name)
