"""Per-cluster kubeconfig cache.

One file per cluster at ~/.ghost/kubeconfigs/{name}.yaml. A file younger
than the refresh window is reused as-is; older or missing files are
re-fetched from vcluster and replaced atomically.
"""

import logging
import time
from pathlib import Path
from typing import Callable

from ghostctl.core.fileio import atomic_write
from ghostctl.core.paths import StateLayout
from ghostctl.core.vcluster import VClusterClient

DEFAULT_REFRESH_SECONDS = 3600


class CredentialCache:
    """Kubeconfig files keyed by cluster name."""

    def __init__(
        self,
        layout: StateLayout,
        vcluster: VClusterClient,
        refresh_seconds: float = DEFAULT_REFRESH_SECONDS,
        logger: logging.Logger | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.layout = layout
        self.vcluster = vcluster
        self.refresh_seconds = refresh_seconds
        self.logger = logger or logging.getLogger("ghostctl.credentials")
        self._clock = clock

    def path_for(self, name: str) -> Path:
        return self.layout.kubeconfig_path(name)

    def exists(self, name: str) -> bool:
        """Check if a cached file exists. Does not check freshness."""
        return self.path_for(name).exists()

    def is_fresh(self, name: str) -> bool:
        """Check if the cached file exists, is non-empty and within the refresh window."""
        path = self.path_for(name)
        try:
            stat = path.stat()
        except FileNotFoundError:
            return False
        return stat.st_size > 0 and self._clock() - stat.st_mtime < self.refresh_seconds

    def get_or_fetch(self, name: str, namespace: str) -> Path:
        """Path to a usable kubeconfig for a cluster, fetching one if needed.

        Raises:
            BinaryMissing: If vcluster is not installed.
            ProvisioningNotFound: If the vCluster does not exist.
            NoCredentialFound: If vcluster printed no kubeconfig.
        """
        if self.is_fresh(name):
            self.logger.debug("Using cached kubeconfig for %s", name)
            return self.path_for(name)
        return self.refresh(name, namespace)

    def refresh(self, name: str, namespace: str) -> Path:
        """Fetch a new kubeconfig and overwrite the cached file."""
        self.logger.info("Fetching kubeconfig for %s in namespace %s", name, namespace)
        document = self.vcluster.fetch_kubeconfig(name, namespace)
        path = self.path_for(name)
        atomic_write(path, document.encode())
        return path

    def invalidate(self, name: str) -> None:
        """Delete the cached file if present."""
        self.path_for(name).unlink(missing_ok=True)
