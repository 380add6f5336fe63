"""vcluster CLI wrapper for ghostctl.

Provides create/delete/status/connect against the external `vcluster`
binary, plus the readiness wait used after creation.
"""

import logging
import time
from typing import Callable

from ghostctl.core.errors import ReadinessTimeout
from ghostctl.core.extract import extract_kubeconfig
from ghostctl.core.process import ProcessRunner, classify_failure, is_not_found

STATUS_READY = "ready"
STATUS_NOT_FOUND = "not-found"
STATUS_ERROR = "error"


class VClusterClient:
    """Provisioning operations for named vClusters."""

    def __init__(
        self,
        runner: ProcessRunner,
        logger: logging.Logger | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.runner = runner
        self.logger = logger or logging.getLogger("ghostctl.vcluster")
        self._sleep = sleep
        self._clock = clock

    def create(self, name: str, namespace: str) -> None:
        """Create a vCluster without touching the current kube context.

        Raises:
            BinaryMissing: If vcluster is not installed.
            ExternalCommandFailed: If creation fails.
        """
        self.runner.require("vcluster")
        self.logger.info("Creating vCluster %s in namespace %s", name, namespace)
        result = self.runner.capture(
            "vcluster",
            ["create", name, "-n", namespace, "--connect=false", "--update-current=false"],
        )
        if not result.ok:
            raise classify_failure(
                result,
                "vCluster creation",
                hint=f"Check the host cluster with 'kubectl get pods -n {namespace}'",
            )

    def delete(self, name: str, namespace: str) -> None:
        """Delete a vCluster.

        Raises:
            BinaryMissing: If vcluster is not installed.
            ProvisioningNotFound: If the vCluster does not exist.
            ExternalCommandFailed: If deletion fails for another reason.
        """
        self.runner.require("vcluster")
        self.logger.info("Deleting vCluster %s in namespace %s", name, namespace)
        result = self.runner.capture("vcluster", ["delete", name, "-n", namespace])
        if not result.ok:
            raise classify_failure(result, "vCluster deletion")

    def status(self, name: str, namespace: str) -> str:
        """Report whether a vCluster exists.

        Returns:
            "ready", "not-found" or "error".

        Raises:
            BinaryMissing: If vcluster is not installed.
        """
        self.runner.require("vcluster")
        result = self.runner.capture("vcluster", ["status", name, "-n", namespace])
        if result.ok:
            return STATUS_READY
        if is_not_found(result):
            return STATUS_NOT_FOUND
        self.logger.debug("vcluster status for %s failed: %s", name, result.output)
        return STATUS_ERROR

    def emit_credentials(self, name: str, namespace: str) -> str:
        """Get the raw `vcluster connect --print` output for a vCluster.

        Raises:
            BinaryMissing: If vcluster is not installed.
            ProvisioningNotFound: If the vCluster does not exist.
            ExternalCommandFailed: If the command fails for another reason.
        """
        self.runner.require("vcluster")
        result = self.runner.capture(
            "vcluster",
            ["connect", name, "-n", namespace, "--update-current=false", "--print"],
        )
        if not result.ok:
            raise classify_failure(result, f"Fetching kubeconfig for {name}")
        return result.stdout

    def fetch_kubeconfig(self, name: str, namespace: str) -> str:
        """Fetch and extract the kubeconfig document for a vCluster."""
        return extract_kubeconfig(self.emit_credentials(name, namespace))

    def list(self, namespace: str) -> list[str]:
        """Names of vClusters in a namespace, as reported by vcluster."""
        self.runner.require("vcluster")
        result = self.runner.capture("vcluster", ["list", "-n", namespace])
        if not result.ok:
            raise classify_failure(result, "Listing vClusters")

        names = []
        for line in result.stdout.strip().splitlines():
            line = line.strip()
            if not line or line.startswith("NAME"):
                continue
            names.append(line.split()[0])
        return names

    def is_ready(self, name: str, namespace: str) -> bool:
        """Check if the vCluster pod is Running with a ready container."""
        result = self.runner.capture(
            "kubectl",
            [
                "get",
                "pod",
                "-n",
                namespace,
                "-l",
                f"app=vcluster,release={name}",
                "-o",
                "jsonpath={.items[0].status}",
            ],
        )
        if not result.ok:
            return False
        status = result.stdout.replace(" ", "")
        return '"phase":"Running"' in status and '"ready":true' in status

    def wait_until_ready(
        self, name: str, namespace: str, timeout: float, interval: float = 5
    ) -> None:
        """Block until the vCluster is ready.

        Polls every interval seconds. There is no way to stop early other
        than the timeout.

        Raises:
            ReadinessTimeout: If the vCluster is not ready within timeout seconds.
        """
        self.runner.require("kubectl")
        deadline = self._clock() + timeout
        while True:
            if self.is_ready(name, namespace):
                self.logger.info("vCluster %s is ready", name)
                return
            if self._clock() >= deadline:
                raise ReadinessTimeout(
                    f"timeout waiting for vCluster {name} to be ready",
                    hint=f"Inspect it with 'kubectl get pods -n {namespace}', "
                    f"or retry with a longer --timeout",
                )
            self.logger.debug("vCluster %s not ready yet, retrying in %ss", name, interval)
            self._sleep(interval)
