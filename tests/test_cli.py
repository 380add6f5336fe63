"""Tests for the ghostctl command line."""

import orjson
import pytest

from ghostctl.cli import main
from ghostctl.core.registry import ClusterRecord


@pytest.fixture
def invoke(runner, services):
    """Invoke the CLI with the fake-backed services."""

    def _invoke(args, **kwargs):
        return runner.invoke(main, args, obj={"services": services}, **kwargs)

    return _invoke


@pytest.fixture
def pr_42(services):
    """pr-42 registered in the default namespace with a 2h ttl."""
    return services.registry.register(
        ClusterRecord(name="pr-42", namespace="ghostcluster", ttl="2h")
    )


def test_help_lists_commands(runner):
    result = runner.invoke(main, ["--help"])

    assert result.exit_code == 0
    for command in ["up", "down", "list", "status", "connect", "disconnect", "exec", "logs"]:
        assert command in result.output


class TestUp:
    def test_up_registers_cluster(self, invoke, services, fake_runner):
        result = invoke(["up", "pr-42", "--ttl", "2h", "--cpu", "2", "--label", "team=infra"])

        assert result.exit_code == 0, result.output
        assert "Cluster 'pr-42' is ready!" in result.output
        record = services.registry.lookup("pr-42")
        assert record.ttl == "2h"
        assert record.cpu == "2"
        assert record.labels == {"team": "infra"}
        assert record.created_at is not None
        assert services.credentials.exists("pr-42")
        assert len(fake_runner.calls_to("vcluster", "create", "pr-42")) == 1

    def test_up_existing_cluster(self, invoke, pr_42, fake_runner):
        result = invoke(["up", "pr-42"])

        assert result.exit_code == 1
        assert "already exists" in result.output
        assert fake_runner.calls_to("vcluster", "create") == []

    def test_up_invalid_name(self, invoke):
        result = invoke(["up", "PR_42"])

        assert result.exit_code == 1
        assert "invalid cluster name" in result.output
        assert "Fix:" in result.output

    def test_up_bad_label(self, invoke):
        result = invoke(["up", "pr-42", "--label", "novalue"])

        assert result.exit_code == 2
        assert "key=value" in result.output

    def test_up_timeout_does_not_register(self, invoke, services, fake_runner):
        fake_runner.on("kubectl", "get", "pod", stdout='{"phase":"Pending"}')

        result = invoke(["up", "pr-42", "--timeout", "0"])

        assert result.exit_code == 1
        assert "timeout waiting for vCluster pr-42" in result.output
        assert not services.registry.exists("pr-42")

    def test_up_create_failure(self, invoke, fake_runner):
        fake_runner.on("vcluster", "create", exit_code=1, stderr="quota exceeded")

        result = invoke(["up", "pr-42"])

        assert result.exit_code == 1
        assert "quota exceeded" in result.output


class TestDown:
    def test_down_force(self, invoke, services, pr_42, fake_runner):
        services.credentials.get_or_fetch("pr-42", "ghostcluster")

        result = invoke(["down", "pr-42", "--force"])

        assert result.exit_code == 0, result.output
        assert "has been destroyed" in result.output
        assert not services.registry.exists("pr-42")
        assert not services.credentials.exists("pr-42")
        assert fake_runner.calls_to("vcluster", "delete")[0].args == [
            "delete",
            "pr-42",
            "-n",
            "ghostcluster",
        ]

    def test_down_cancelled(self, invoke, services, pr_42, fake_runner):
        result = invoke(["down", "pr-42"], input="n\n")

        assert "Cancelled" in result.output
        assert services.registry.exists("pr-42")
        assert fake_runner.calls_to("vcluster", "delete") == []

    def test_down_unregistered_still_deletes(self, invoke, fake_runner):
        """Test a missing registry record does not block remote deletion."""
        result = invoke(["down", "orphan", "--force"])

        assert result.exit_code == 0, result.output
        assert fake_runner.calls_to("vcluster", "delete")[0].args == [
            "delete",
            "orphan",
            "-n",
            "ghostcluster",
        ]

    def test_down_remote_gone_cleans_local_state(self, invoke, services, pr_42, fake_runner):
        fake_runner.on("vcluster", "delete", exit_code=1, stderr="couldn't find vcluster pr-42")

        result = invoke(["down", "pr-42", "--force"])

        assert result.exit_code == 0
        assert "no longer exists remotely" in result.output
        assert not services.registry.exists("pr-42")

    def test_down_unknown_everywhere(self, invoke, fake_runner):
        fake_runner.on("vcluster", "delete", exit_code=1, stderr="couldn't find vcluster ghost")

        result = invoke(["down", "ghost", "--force"])

        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_down_warns_about_active_session(self, invoke, pr_42, monkeypatch):
        monkeypatch.setenv("SHELL", "/bin/bash")
        invoke(["connect", "pr-42"])

        result = invoke(["down", "pr-42", "--force"])

        assert result.exit_code == 0
        assert "ghostctl disconnect" in result.output

    def test_down_invalid_name(self, invoke, fake_runner):
        result = invoke(["down", "Bad_Name", "--force"])

        assert result.exit_code == 1
        assert "invalid cluster name" in result.output
        assert fake_runner.calls_to("vcluster", "delete") == []


class TestList:
    def test_list_empty(self, invoke):
        result = invoke(["list"])

        assert result.exit_code == 0
        assert "No clusters found" in result.output

    def test_list_table(self, invoke, pr_42):
        result = invoke(["list"])

        assert result.exit_code == 0
        header, row = result.output.strip().splitlines()
        assert header.split() == ["NAME", "NAMESPACE", "STATUS", "AGE", "TTL"]
        assert row.split()[:3] == ["pr-42", "ghostcluster", "ready"]
        assert row.split()[-1] == "2h"

    def test_list_json(self, invoke, pr_42):
        result = invoke(["list", "--output", "json"])

        assert result.exit_code == 0
        data = orjson.loads(result.output)
        assert len(data) == 1
        assert data[0]["name"] == "pr-42"
        assert data[0]["namespace"] == "ghostcluster"
        assert data[0]["ttl"] == "2h"
        assert data[0]["status"] == "ready"

    def test_list_no_status(self, invoke, pr_42, fake_runner):
        result = invoke(["list", "--no-status"])

        assert result.exit_code == 0
        assert fake_runner.calls_to("vcluster", "status") == []


class TestStatus:
    def test_status_registered(self, invoke, pr_42):
        result = invoke(["status", "pr-42"])

        assert result.exit_code == 0
        assert "Name:       pr-42" in result.output
        assert "Status:     ready" in result.output
        assert "TTL:        2h" in result.output

    def test_status_unregistered(self, invoke, fake_runner):
        fake_runner.on("vcluster", "status", exit_code=1, stderr="couldn't find vcluster dev")

        result = invoke(["status", "dev"])

        assert result.exit_code == 0
        assert "not in the local registry" in result.output
        assert "Status:     not-found" in result.output

    def test_status_invalid_name(self, invoke, fake_runner):
        result = invoke(["status", "Bad_Name"])

        assert result.exit_code == 1
        assert "invalid cluster name" in result.output
        assert fake_runner.calls_to("vcluster", "status") == []


class TestConnect:
    ORIGINAL = "/home/dev/.kube/config"

    def test_connect_twice_disconnect_once(self, invoke, pr_42, layout):
        """Test nested connects are undone by a single disconnect."""
        env = {"KUBECONFIG": self.ORIGINAL}
        first = invoke(["connect", "pr-42", "--shell", "bash"], env=env)
        assert first.exit_code == 0, first.output
        kubeconfig = str(layout.kubeconfig_path("pr-42"))
        assert f"export KUBECONFIG={kubeconfig}" in first.output

        second = invoke(["connect", "pr-42", "--shell", "bash"], env={"KUBECONFIG": kubeconfig})
        assert second.exit_code == 0

        result = invoke(["disconnect", "--shell", "bash"], env={"KUBECONFIG": kubeconfig})
        assert result.exit_code == 0
        assert f"export KUBECONFIG={self.ORIGINAL}" in result.output

        again = invoke(["disconnect", "--shell", "bash"], env={"KUBECONFIG": self.ORIGINAL})
        assert again.exit_code == 1
        assert "nothing to disconnect" in again.output
        assert "Error:" not in again.output

    def test_connect_fish(self, invoke, pr_42):
        result = invoke(["connect", "pr-42", "--shell", "fish"])

        assert result.exit_code == 0
        assert "set -gx KUBECONFIG" in result.output

    def test_disconnect_unsets_when_nothing_was_exported(self, invoke, pr_42):
        invoke(["connect", "pr-42", "--shell", "bash"])

        result = invoke(["disconnect", "--shell", "bash"])

        assert result.exit_code == 0
        assert "unset KUBECONFIG" in result.output

    def test_path_only(self, invoke, pr_42, layout):
        result = invoke(["connect", "pr-42", "--path-only"])

        assert result.exit_code == 0
        assert result.output.strip() == str(layout.kubeconfig_path("pr-42"))
        assert not layout.marker_path("export").exists()

    def test_connect_unknown_cluster(self, invoke, layout, fake_runner):
        fake_runner.on("vcluster", "connect", exit_code=1, stderr="couldn't find vcluster nope")

        result = invoke(["connect", "nope", "--shell", "bash"])

        assert result.exit_code == 1
        assert "Error:" in result.output
        assert "Fix:" in result.output
        assert not layout.marker_path("export").exists()

    def test_connect_missing_vcluster_binary(self, invoke, fake_runner):
        fake_runner.installed.discard("vcluster")

        result = invoke(["connect", "pr-42", "--shell", "bash"])

        assert result.exit_code == 1
        assert "vcluster not found in PATH" in result.output


class TestExec:
    def test_exec_injects_kubeconfig(self, invoke, pr_42, layout, fake_runner):
        result = invoke(["exec", "pr-42", "--", "kubectl", "get", "pods", "-A"])

        assert result.exit_code == 0, result.output
        call = fake_runner.calls_to("kubectl", "get", "pods")[0]
        assert call.args == ["get", "pods", "-A"]
        assert call.stream
        assert call.env == {"KUBECONFIG": str(layout.kubeconfig_path("pr-42"))}

    def test_exec_exit_code(self, invoke, pr_42, fake_runner):
        fake_runner.on("kubectl", "get", "pods", exit_code=4)

        result = invoke(["exec", "pr-42", "--", "kubectl", "get", "pods"])

        assert result.exit_code == 4

    def test_exec_requires_command(self, invoke):
        result = invoke(["exec", "pr-42"])

        assert result.exit_code == 2


class TestLogs:
    def test_logs_requires_pod_or_labels(self, invoke):
        result = invoke(["logs", "pr-42"])

        assert result.exit_code == 2
        assert "--labels" in result.output

    def test_logs_args(self, invoke, pr_42, fake_runner):
        result = invoke(["logs", "pr-42", "web-1", "-n", "default", "--no-follow", "--tail", "50"])

        assert result.exit_code == 0, result.output
        call = fake_runner.calls_to("kubectl", "logs")[0]
        assert call.args == ["logs", "web-1", "-n", "default", "--tail=50"]
        assert call.stream

    def test_logs_by_label(self, invoke, pr_42, fake_runner):
        result = invoke(["logs", "pr-42", "-l", "app=web"])

        assert result.exit_code == 0
        call = fake_runner.calls_to("kubectl", "logs")[0]
        assert call.args == ["logs", "-l", "app=web", "-f", "--tail=10"]
