"""Local state layout for ghostctl.

Everything lives under ~/.ghost/ (or $GHOSTCTL_HOME):
- clusters.json: cluster registry
- kubeconfigs/{name}.yaml: cached kubeconfig per cluster
- root_kubeconfig.json / saved_context.json: active session marker
- config.json: user configuration
"""

import os
from dataclasses import dataclass
from pathlib import Path

GHOSTCTL_HOME_ENV = "GHOSTCTL_HOME"

SESSION_MARKERS = {
    "export": "root_kubeconfig.json",
    "merge": "saved_context.json",
}


def get_ghost_dir() -> Path:
    """Get the root state directory, honouring $GHOSTCTL_HOME."""
    if override := os.environ.get(GHOSTCTL_HOME_ENV):
        return Path(override).expanduser()
    return Path.home() / ".ghost"


@dataclass(frozen=True)
class StateLayout:
    """Paths of every file ghostctl keeps on disk."""

    root: Path

    @classmethod
    def default(cls) -> "StateLayout":
        return cls(get_ghost_dir())

    @property
    def registry_path(self) -> Path:
        return self.root / "clusters.json"

    @property
    def registry_lock(self) -> Path:
        return self.root / "clusters.lock"

    @property
    def kubeconfigs_dir(self) -> Path:
        return self.root / "kubeconfigs"

    @property
    def session_lock(self) -> Path:
        return self.root / "session.lock"

    @property
    def config_path(self) -> Path:
        return self.root / "config.json"

    def kubeconfig_path(self, name: str) -> Path:
        """Path of the cached kubeconfig for a cluster.

        Always derived from the name so a relocated state directory never
        leaves stale paths behind.
        """
        return self.kubeconfigs_dir / f"{name}.yaml"

    def marker_path(self, mode: str) -> Path:
        """Path of the session marker used by a connect mode."""
        return self.root / SESSION_MARKERS[mode]

    def ensure(self) -> "StateLayout":
        """Create the state directories with user-private permissions."""
        self.root.mkdir(parents=True, exist_ok=True, mode=0o700)
        self.kubeconfigs_dir.mkdir(parents=True, exist_ok=True, mode=0o700)
        return self
