"""Connect/disconnect session stack for ghostctl.

A session starts with the first `connect` and ends with `disconnect`. The
first connect records which kubeconfig selection was active beforehand
(the "saved selector"); later connects switch clusters without touching
it, so `disconnect` always returns to the pre-session state no matter how
many clusters were visited in between.

Two selector strategies are supported:
- export: the selector is $KUBECONFIG. connect/disconnect produce shell
  statements for the calling shell to eval.
- merge: the selector is the current context of the default kubeconfig.
  connect merges the cluster's kubeconfig in and switches context.

The session marker is a JSON file (root_kubeconfig.json for export,
saved_context.json for merge). Its presence means a session is active.
"""

import logging
import os
import shlex
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Mapping

import orjson

from ghostctl.core.credentials import CredentialCache
from ghostctl.core.errors import (
    GhostError,
    NothingToDisconnect,
    RestoreFailed,
    StateCorrupted,
)
from ghostctl.core.fileio import atomic_write, locked
from ghostctl.core.kubectl import KubectlClient, default_kubeconfig_path
from ghostctl.core.paths import SESSION_MARKERS, StateLayout
from ghostctl.core.registry import Registry

SHELLS = ("bash", "zsh", "fish")


@dataclass
class SessionState:
    """The active connect session.

    Attributes:
        mode: Selector strategy that started the session ("export" or "merge")
        saved_selector: Selector value before the first connect; None means unset
        cluster: Cluster the latest connect targeted
        started_at: Time of the first connect
        merged_contexts: Contexts merged into the default kubeconfig (merge mode)
    """

    mode: str
    saved_selector: str | None
    cluster: str
    started_at: datetime
    merged_contexts: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "mode": self.mode,
            "saved_selector": self.saved_selector,
            "cluster": self.cluster,
            "started_at": self.started_at.isoformat(),
            "merged_contexts": self.merged_contexts,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "SessionState":
        return cls(
            mode=data["mode"],
            saved_selector=data.get("saved_selector"),
            cluster=data.get("cluster", ""),
            started_at=datetime.fromisoformat(data["started_at"]),
            merged_contexts=list(data.get("merged_contexts", [])),
        )


@dataclass
class ConnectResult:
    """Outcome of a connect.

    output is what the CLI prints: a shell statement in export mode, a
    confirmation line in merge mode.
    """

    cluster: str
    kubeconfig: Path
    output: str
    started_session: bool


@dataclass
class DisconnectResult:
    """Outcome of a disconnect."""

    restored: str | None
    output: str
    warnings: list[str] = field(default_factory=list)


class Selector:
    """Strategy for reading and switching the active kubeconfig selection."""

    mode = ""

    def read_current(self) -> str | None:
        """Current selector value, None when nothing is explicitly selected."""
        raise NotImplementedError

    def activate(self, cluster: str, kubeconfig: Path, state: SessionState) -> str:
        """Point the selection at a cluster's kubeconfig; returns CLI output."""
        raise NotImplementedError

    def restore(self, saved: str | None) -> str:
        """Reapply a saved selector value; returns CLI output."""
        raise NotImplementedError

    def cleanup(self, state: SessionState) -> list[str]:
        """Best-effort removal of session leftovers; returns warnings."""
        return []


class ExportSelector(Selector):
    """Selects clusters through the KUBECONFIG environment variable.

    A child process cannot change its parent shell's environment, so this
    selector only produces text for the shell to eval.
    """

    mode = "export"
    variable = "KUBECONFIG"

    def __init__(
        self, environ: Mapping[str, str] | None = None, shell: str = "bash"
    ) -> None:
        if shell not in SHELLS:
            raise ValueError(f"Unsupported shell: {shell}. Must be one of {SHELLS}")
        self.environ = os.environ if environ is None else environ
        self.shell = shell

    def read_current(self) -> str | None:
        return self.environ.get(self.variable) or None

    def export_statement(self, value: str) -> str:
        if self.shell == "fish":
            return f"set -gx {self.variable} {shlex.quote(value)}"
        return f"export {self.variable}={shlex.quote(value)}"

    def unset_statement(self) -> str:
        if self.shell == "fish":
            return f"set -e {self.variable}"
        return f"unset {self.variable}"

    def activate(self, cluster: str, kubeconfig: Path, state: SessionState) -> str:
        return self.export_statement(str(kubeconfig))

    def restore(self, saved: str | None) -> str:
        if saved is None:
            return self.unset_statement()
        return self.export_statement(saved)


def merged_context_name(cluster: str) -> str:
    """Predictable context name for a cluster merged into the default kubeconfig."""
    return f"vcluster_{cluster}"


class MergedContextSelector(Selector):
    """Selects clusters by merging them as contexts into the default kubeconfig."""

    mode = "merge"

    def __init__(
        self,
        kubectl: KubectlClient,
        layout: StateLayout,
        environ: Mapping[str, str] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.kubectl = kubectl
        self.layout = layout
        self.environ = os.environ if environ is None else environ
        self.logger = logger or logging.getLogger("ghostctl.session")

    def read_current(self) -> str | None:
        return self.kubectl.current_context()

    def activate(self, cluster: str, kubeconfig: Path, state: SessionState) -> str:
        context = merged_context_name(cluster)
        target = default_kubeconfig_path(self.environ)

        # Work on a copy so the cached kubeconfig keeps vcluster's own names
        staging = self.layout.root / f".tmp_{cluster}.yaml"
        atomic_write(staging, kubeconfig.read_bytes())
        try:
            original = self.kubectl.current_context(staging)
            if original and original != context:
                self.kubectl.rename_context(original, context, staging)
            # The staged file goes first so a re-merged cluster's entries win
            sources = [staging, target] if target.exists() else [staging]
            merged = self.kubectl.flatten(sources)
            atomic_write(target, merged.encode())
        finally:
            staging.unlink(missing_ok=True)

        if context not in state.merged_contexts:
            state.merged_contexts.append(context)
        self.kubectl.use_context(context)
        return f"Switched to context {context}"

    def restore(self, saved: str | None) -> str:
        if saved is None:
            self.kubectl.unset_current_context()
            return "Cleared current context"
        self.kubectl.use_context(saved)
        return f"Switched to context {saved}"

    def cleanup(self, state: SessionState) -> list[str]:
        warnings = []
        for context in state.merged_contexts:
            if context == state.saved_selector:
                continue
            try:
                self.kubectl.delete_context(context)
            except GhostError as e:
                self.logger.warning("Could not remove context %s: %s", context, e)
                warnings.append(f"could not remove context {context}: {e}")
        return warnings


class SessionStack:
    """Connect/disconnect state machine around a Selector."""

    def __init__(
        self,
        layout: StateLayout,
        selector: Selector,
        credentials: CredentialCache,
        registry: Registry,
        default_namespace: str,
        logger: logging.Logger | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.layout = layout
        self.selector = selector
        self.credentials = credentials
        self.registry = registry
        self.default_namespace = default_namespace
        self.logger = logger or logging.getLogger("ghostctl.session")
        self._now = clock or (lambda: datetime.now(timezone.utc))

    @property
    def marker_path(self) -> Path:
        return self.layout.marker_path(self.selector.mode)

    def _load_unlocked(self) -> SessionState | None:
        if not self.marker_path.exists():
            return None
        try:
            return SessionState.from_dict(orjson.loads(self.marker_path.read_bytes()))
        except (orjson.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            raise StateCorrupted(
                f"session marker {self.marker_path} is unreadable: {e}",
                hint=f"Remove {self.marker_path} and reset your kubeconfig manually",
            ) from e

    def _save_unlocked(self, state: SessionState) -> None:
        atomic_write(self.marker_path, orjson.dumps(state.to_dict(), option=orjson.OPT_INDENT_2))

    def current(self) -> SessionState | None:
        """The active session, or None when idle."""
        return self._load_unlocked()

    def _read_prior_selector(self) -> str | None:
        try:
            return self.selector.read_current()
        except (GhostError, OSError) as e:
            self.logger.warning(
                "Could not read the active kubeconfig selection, disconnect will unset it: %s", e
            )
            return None

    def connect(self, cluster: str, namespace: str | None = None) -> ConnectResult:
        """Switch the active selection to a cluster.

        The first connect of a session saves the prior selector; later ones
        leave it alone.

        Raises:
            BinaryMissing, ProvisioningNotFound, NoCredentialFound: If the
                cluster's kubeconfig cannot be obtained. No session is started.
        """
        namespace = namespace or self.registry.namespace_for(cluster, self.default_namespace)
        kubeconfig = self.credentials.get_or_fetch(cluster, namespace)

        with locked(self.layout.session_lock):
            state = self._load_unlocked()
            started = state is None
            if started:
                state = SessionState(
                    mode=self.selector.mode,
                    saved_selector=self._read_prior_selector(),
                    cluster=cluster,
                    started_at=self._now(),
                )
                self.logger.info("Starting session, saved selector %r", state.saved_selector)
                self._save_unlocked(state)

            try:
                output = self.selector.activate(cluster, kubeconfig, state)
            except BaseException:
                if started:
                    self.selector.cleanup(state)
                    self.marker_path.unlink(missing_ok=True)
                else:
                    # Keep tracking anything activate left behind
                    self._save_unlocked(state)
                raise
            state.cluster = cluster
            self._save_unlocked(state)

        self.logger.info("Connected to %s", cluster)
        return ConnectResult(cluster, kubeconfig, output, started)

    def disconnect(self) -> DisconnectResult:
        """Restore the selector saved by the first connect and end the session.

        Raises:
            NothingToDisconnect: If no session is active. Nothing is changed.
            RestoreFailed: If the saved selector cannot be reapplied. The
                marker is kept so disconnect can be retried.
        """
        if not self.marker_path.exists():
            raise self._nothing_to_disconnect()

        with locked(self.layout.session_lock):
            try:
                state = self._load_unlocked()
            except StateCorrupted as e:
                raise RestoreFailed(e.message, e.hint) from e

            if state is None:
                raise self._nothing_to_disconnect()

            try:
                output = self.selector.restore(state.saved_selector)
            except GhostError as e:
                raise RestoreFailed(
                    f"could not restore kubeconfig selection {state.saved_selector!r}: {e.message}",
                    hint="Your shell may still point at a vCluster; fix it manually, "
                    "then retry 'ghostctl disconnect'",
                ) from e

            self.marker_path.unlink(missing_ok=True)

        warnings = self.selector.cleanup(state)
        self.logger.info("Disconnected from %s", state.cluster)
        return DisconnectResult(state.saved_selector, output, warnings)

    def _nothing_to_disconnect(self) -> NothingToDisconnect:
        hint = None
        for mode in SESSION_MARKERS:
            if mode != self.selector.mode and self.layout.marker_path(mode).exists():
                hint = f"A session was started in {mode} mode; run 'ghostctl disconnect --mode {mode}'"
        return NothingToDisconnect(
            "not connected to any vCluster - nothing to disconnect from", hint=hint
        )
