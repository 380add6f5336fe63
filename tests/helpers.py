"""Test doubles for ghostctl's external tools."""

import logging
from dataclasses import dataclass, field
from typing import Callable

from ghostctl.core.errors import BinaryMissing, ExternalCommandFailed
from ghostctl.core.process import CommandResult, ProcessRunner

KUBECONFIG_DOC = """apiVersion: v1
clusters:
- cluster:
    certificate-authority-data: LS0tLS1CRUdJTg==
    server: https://localhost:8443
  name: my-vcluster
contexts:
- context:
    cluster: my-vcluster
    user: my-vcluster
  name: my-vcluster
current-context: my-vcluster
kind: Config
preferences: {}
users:
- name: my-vcluster
  user:
    client-certificate-data: LS0tLS1CRUdJTg==
"""

CONNECT_OUTPUT = (
    "\x1b[33minfo\x1b[0m   Starting background proxy container...\n"
    + KUBECONFIG_DOC
    + "\n"
    + "done   Virtual cluster kube config written to stdout\n"
)

READY_STATUS = '{"phase": "Running", "containerStatuses": [{"ready": true}]}'


@dataclass
class Call:
    program: str
    args: list[str]
    env: dict[str, str]
    stream: bool


@dataclass
class Rule:
    program: str
    prefix: list[str]
    result: Callable[[list[str]], CommandResult]


class FakeRunner(ProcessRunner):
    """Scripted stand-in for ProcessRunner.

    Responses are matched by program and leading arguments, most recently
    added rule first. Unmatched commands succeed with no output.
    """

    def __init__(self, installed: tuple[str, ...] = ("vcluster", "kubectl")) -> None:
        super().__init__(logging.getLogger("ghostctl.test.process"))
        self.installed = set(installed)
        self.calls: list[Call] = []
        self.rules: list[Rule] = []

    def on(
        self,
        program: str,
        *prefix: str,
        exit_code: int = 0,
        stdout: str = "",
        stderr: str = "",
    ) -> "FakeRunner":
        return self.respond(
            program,
            *prefix,
            handler=lambda args: CommandResult(program, args, exit_code, stdout, stderr),
        )

    def respond(
        self, program: str, *prefix: str, handler: Callable[[list[str]], CommandResult]
    ) -> "FakeRunner":
        """Answer matching commands with handler(args)."""
        self.rules.insert(0, Rule(program, list(prefix), handler))
        return self

    def command_exists(self, program: str) -> bool:
        return program in self.installed

    def run(self, program, args=(), env=None, stream=False) -> CommandResult:
        args = list(args)
        self.calls.append(Call(program, args, dict(env or {}), stream))
        if program not in self.installed:
            raise BinaryMissing(program)
        for rule in self.rules:
            if rule.program == program and args[: len(rule.prefix)] == rule.prefix:
                return rule.result(args)
        return CommandResult(program, args, 0)

    def calls_to(self, program: str, *prefix: str) -> list[Call]:
        """Recorded calls to program whose arguments start with prefix."""
        return [
            call
            for call in self.calls
            if call.program == program and call.args[: len(prefix)] == list(prefix)
        ]


@dataclass
class FakeKubectl:
    """In-memory kube context state for merged-context sessions."""

    current: str | None = None
    staged_context: str = "my-vcluster"
    renamed: list[tuple[str, str]] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    fail_use: bool = False

    def current_context(self, kubeconfig=None) -> str | None:
        if kubeconfig is not None:
            return self.staged_context
        return self.current

    def rename_context(self, old, new, kubeconfig=None) -> None:
        self.renamed.append((old, new))

    def flatten(self, kubeconfigs) -> str:
        return "".join(path.read_text() for path in kubeconfigs)

    def use_context(self, name) -> None:
        if self.fail_use:
            raise ExternalCommandFailed(f"Switching to context {name} failed", 1, "boom")
        self.current = name

    def unset_current_context(self) -> None:
        self.current = None

    def delete_context(self, name) -> None:
        self.deleted.append(name)
