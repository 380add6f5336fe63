"""kubectl wrapper for ghostctl.

Context manipulation for merged-context connects, reachability checks, and
pass-through execution with a cluster's kubeconfig injected.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Sequence

from ghostctl.core.errors import ExternalCommandFailed
from ghostctl.core.process import ProcessRunner, classify_failure


def default_kubeconfig_path(environ: Mapping[str, str] | None = None) -> Path:
    """The kubeconfig kubectl writes to: first $KUBECONFIG entry, else ~/.kube/config."""
    environ = os.environ if environ is None else environ
    if value := environ.get("KUBECONFIG"):
        return Path(value.split(os.pathsep)[0]).expanduser()
    return Path.home() / ".kube" / "config"


@dataclass
class LogOptions:
    """Options for `ghostctl logs`, mirrored onto `kubectl logs` flags."""

    pod: str = ""
    namespace: str = ""
    labels: str = ""
    container: str = ""
    follow: bool = True
    tail: int = 10
    since: str = ""
    timestamps: bool = False
    previous: bool = False
    all_containers: bool = False

    def to_args(self) -> list[str]:
        args = ["logs"]
        if self.pod:
            args.append(self.pod)
        if self.labels:
            args += ["-l", self.labels]
        if self.namespace:
            args += ["-n", self.namespace]
        if self.container:
            args += ["-c", self.container]
        if self.follow:
            args.append("-f")
        args.append(f"--tail={self.tail}")
        if self.since:
            args.append(f"--since={self.since}")
        if self.timestamps:
            args.append("--timestamps")
        if self.previous:
            args.append("--previous")
        if self.all_containers:
            args.append("--all-containers")
        return args


class KubectlClient:
    """Cluster client operations backed by the kubectl binary."""

    def __init__(
        self, runner: ProcessRunner, logger: logging.Logger | None = None
    ) -> None:
        self.runner = runner
        self.logger = logger or logging.getLogger("ghostctl.kubectl")

    def _config(
        self, args: Sequence[str], kubeconfig: Path | None = None, subject: str = ""
    ) -> str:
        """Run `kubectl config ...` and return stdout, raising on failure."""
        self.runner.require("kubectl")
        cmd = ["config", *args]
        if kubeconfig is not None:
            cmd += ["--kubeconfig", str(kubeconfig)]
        result = self.runner.capture("kubectl", cmd)
        if not result.ok:
            raise classify_failure(result, subject or f"kubectl config {args[0]}")
        return result.stdout

    def current_context(self, kubeconfig: Path | None = None) -> str | None:
        """Name of the current context, or None if none is selected.

        Raises:
            ExternalCommandFailed: If kubectl fails for another reason.
        """
        self.runner.require("kubectl")
        cmd = ["config", "current-context"]
        if kubeconfig is not None:
            cmd += ["--kubeconfig", str(kubeconfig)]
        result = self.runner.capture("kubectl", cmd)
        if result.ok:
            return result.stdout.strip() or None
        if "current-context is not set" in result.output:
            return None
        raise ExternalCommandFailed(
            "Reading current kube context failed", result.exit_code, result.output
        )

    def use_context(self, name: str) -> None:
        self._config(["use-context", name], subject=f"Switching to context {name}")

    def unset_current_context(self) -> None:
        self._config(["unset", "current-context"], subject="Clearing current context")

    def rename_context(self, old: str, new: str, kubeconfig: Path | None = None) -> None:
        self._config(["rename-context", old, new], kubeconfig, f"Renaming context {old}")

    def delete_context(self, name: str) -> None:
        self._config(["delete-context", name], subject=f"Deleting context {name}")

    def flatten(self, kubeconfigs: Sequence[Path]) -> str:
        """Merge several kubeconfig files into one self-contained document."""
        self.runner.require("kubectl")
        result = self.runner.capture(
            "kubectl",
            ["config", "view", "--flatten"],
            env={"KUBECONFIG": os.pathsep.join(str(p) for p in kubeconfigs)},
        )
        if not result.ok:
            raise classify_failure(result, "Merging kubeconfig")
        return result.stdout

    def is_reachable(self, kubeconfig: Path) -> bool:
        """Check if the API server behind a kubeconfig answers."""
        result = self.runner.capture(
            "kubectl", ["--kubeconfig", str(kubeconfig), "get", "ns"]
        )
        return result.ok

    def logs(self, kubeconfig: Path, options: LogOptions) -> int:
        """Stream `kubectl logs` for a cluster; returns kubectl's exit code."""
        self.runner.require("kubectl")
        return self.runner.stream(
            "kubectl", options.to_args(), env={"KUBECONFIG": str(kubeconfig)}
        )

    def run_with_kubeconfig(
        self, kubeconfig: Path, program: str, args: Sequence[str]
    ) -> int:
        """Run any command with KUBECONFIG pointed at a cluster."""
        self.logger.info("Executing %s with KUBECONFIG=%s", program, kubeconfig)
        return self.runner.stream(program, args, env={"KUBECONFIG": str(kubeconfig)})
