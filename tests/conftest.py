"""Shared pytest fixtures for ghostctl tests."""

import logging

import pytest
from click.testing import CliRunner

from ghostctl.core.config import GhostConfig
from ghostctl.core.paths import StateLayout
from ghostctl.core.services import build_services
from helpers import CONNECT_OUTPUT, READY_STATUS, FakeRunner


@pytest.fixture
def ghost_home(tmp_path, monkeypatch):
    """Point GHOSTCTL_HOME at tmp_path for test isolation.

    This ensures tests don't write to the real ~/.ghost/ directory. Also
    clears KUBECONFIG and the config overrides so the developer's shell
    does not leak into tests.
    """
    home = tmp_path / "ghost"
    monkeypatch.setenv("GHOSTCTL_HOME", str(home))
    monkeypatch.delenv("KUBECONFIG", raising=False)
    for name in ("GHOSTCTL_NAMESPACE", "GHOSTCTL_LOG_LEVEL", "GHOSTCTL_CONNECT_MODE"):
        monkeypatch.delenv(name, raising=False)
    return home


@pytest.fixture
def layout(ghost_home):
    """Created state directory under ghost_home."""
    return StateLayout(ghost_home).ensure()


@pytest.fixture
def fake_runner():
    """FakeRunner where every vCluster exists, is ready and prints a kubeconfig."""
    fake = FakeRunner()
    fake.on("vcluster", "connect", stdout=CONNECT_OUTPUT)
    fake.on("kubectl", "get", "pod", stdout=READY_STATUS)
    return fake


@pytest.fixture
def services(layout, fake_runner):
    """Wired components backed by fake_runner."""
    return build_services(
        GhostConfig(poll_interval=0),
        logging.getLogger("ghostctl.test"),
        layout=layout,
        runner=fake_runner,
    )


@pytest.fixture
def runner():
    """Click CLI test runner."""
    return CliRunner()
