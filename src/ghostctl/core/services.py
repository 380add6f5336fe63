"""Wiring of ghostctl components for one CLI invocation."""

import logging
from dataclasses import dataclass

from ghostctl.core.config import GhostConfig
from ghostctl.core.credentials import CredentialCache
from ghostctl.core.kubectl import KubectlClient
from ghostctl.core.paths import StateLayout
from ghostctl.core.process import ProcessRunner
from ghostctl.core.registry import Registry
from ghostctl.core.session import (
    ExportSelector,
    MergedContextSelector,
    Selector,
    SessionStack,
)
from ghostctl.core.vcluster import VClusterClient


@dataclass
class Services:
    """Components shared by the CLI commands."""

    config: GhostConfig
    layout: StateLayout
    runner: ProcessRunner
    vcluster: VClusterClient
    kubectl: KubectlClient
    registry: Registry
    credentials: CredentialCache
    logger: logging.Logger

    def selector(self, mode: str | None = None, shell: str = "bash") -> Selector:
        """Build the selector for a connect mode (default from config)."""
        mode = mode or self.config.connect_mode
        if mode == "merge":
            return MergedContextSelector(
                self.kubectl, self.layout, logger=self.logger.getChild("session")
            )
        return ExportSelector(shell=shell)

    def sessions(self, mode: str | None = None, shell: str = "bash") -> SessionStack:
        return SessionStack(
            self.layout,
            self.selector(mode, shell),
            self.credentials,
            self.registry,
            default_namespace=self.config.namespace,
            logger=self.logger.getChild("session"),
        )


def build_services(
    config: GhostConfig,
    logger: logging.Logger,
    layout: StateLayout | None = None,
    runner: ProcessRunner | None = None,
) -> Services:
    """Create every component with explicit config and logger handles."""
    layout = (layout or StateLayout.default()).ensure()
    runner = runner or ProcessRunner(logger.getChild("process"))
    vcluster = VClusterClient(runner, logger.getChild("vcluster"))
    kubectl = KubectlClient(runner, logger.getChild("kubectl"))
    registry = Registry(layout, logger.getChild("registry"))
    credentials = CredentialCache(
        layout,
        vcluster,
        refresh_seconds=config.kubeconfig_refresh,
        logger=logger.getChild("credentials"),
    )
    return Services(
        config=config,
        layout=layout,
        runner=runner,
        vcluster=vcluster,
        kubectl=kubectl,
        registry=registry,
        credentials=credentials,
        logger=logger,
    )
