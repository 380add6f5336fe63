"""External process adapter for ghostctl.

The only module that talks to subprocess. Commands run either in capture
mode (output buffered and returned) or streaming mode (the child inherits
stdin/stdout/stderr, so pagers and `logs -f` behave as in a terminal).

Failures of the external tools are turned into typed errors here by
classify_failure(), so callers never match on free text themselves.
"""

import logging
import os
import re
import shutil
import subprocess
from dataclasses import dataclass, field
from typing import Mapping, Sequence

from ghostctl.core.errors import (
    BinaryMissing,
    ExternalCommandFailed,
    GhostError,
    ProvisioningNotFound,
)

INSTALL_HINTS = {
    "vcluster": "Install vCluster: https://www.vcluster.com/docs/getting-started/setup",
    "kubectl": "Install kubectl: https://kubernetes.io/docs/tasks/tools/",
}

# Phrases vcluster and kubectl print when the target does not exist
_NOT_FOUND_PATTERNS = re.compile(
    r"not found|couldn't find|could not find|does not exist|no such vcluster",
    re.IGNORECASE,
)


@dataclass
class CommandResult:
    """Outcome of an external command.

    stdout and stderr are empty for streamed commands.
    """

    program: str
    args: list[str]
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def output(self) -> str:
        """Combined stdout and stderr, as a user would have seen them."""
        return "\n".join(part for part in (self.stdout, self.stderr) if part.strip())


@dataclass
class ProcessRunner:
    """Runs external binaries on behalf of the rest of ghostctl."""

    logger: logging.Logger = field(
        default_factory=lambda: logging.getLogger("ghostctl.process")
    )

    def command_exists(self, program: str) -> bool:
        """Check if a program is on PATH."""
        return shutil.which(program) is not None

    def require(self, program: str) -> None:
        """Fail fast with an install hint if a program is not on PATH.

        Raises:
            BinaryMissing: If the program cannot be found.
        """
        if not self.command_exists(program):
            raise BinaryMissing(program, INSTALL_HINTS.get(program))

    def run(
        self,
        program: str,
        args: Sequence[str] = (),
        env: Mapping[str, str] | None = None,
        stream: bool = False,
    ) -> CommandResult:
        """Run a program and wait for it to exit.

        Args:
            program: Binary name, resolved via PATH.
            args: Arguments passed verbatim (no shell).
            env: Variables overlaid on the inherited environment.
            stream: Inherit the caller's standard streams instead of capturing.

        Returns:
            CommandResult with the exit code, plus output in capture mode.

        Raises:
            BinaryMissing: If the program cannot be executed at all.
        """
        cmd = [program, *args]
        full_env = {**os.environ, **env} if env else None
        self.logger.debug("Running %s (stream=%s)", " ".join(cmd), stream)

        try:
            if stream:
                completed = subprocess.run(cmd, env=full_env)
                return CommandResult(program, list(args), completed.returncode)
            completed = subprocess.run(
                cmd,
                env=full_env,
                capture_output=True,
                text=True,
            )
        except FileNotFoundError:
            raise BinaryMissing(program, INSTALL_HINTS.get(program)) from None

        if completed.returncode != 0:
            self.logger.debug(
                "%s exited %d: %s", program, completed.returncode, completed.stderr.strip()
            )
        return CommandResult(
            program,
            list(args),
            completed.returncode,
            completed.stdout,
            completed.stderr,
        )

    def capture(
        self,
        program: str,
        args: Sequence[str] = (),
        env: Mapping[str, str] | None = None,
    ) -> CommandResult:
        """Run a program with output buffered."""
        return self.run(program, args, env=env, stream=False)

    def stream(
        self,
        program: str,
        args: Sequence[str] = (),
        env: Mapping[str, str] | None = None,
    ) -> int:
        """Run a program attached to the terminal and return its exit code."""
        return self.run(program, args, env=env, stream=True).exit_code


def is_not_found(result: CommandResult) -> bool:
    """Check if a failed command reported a missing target."""
    return bool(_NOT_FOUND_PATTERNS.search(result.output))


def classify_failure(
    result: CommandResult, subject: str, hint: str | None = None
) -> GhostError:
    """Map a failed command to the matching ghostctl error.

    Args:
        result: The failed command.
        subject: What was being attempted, e.g. "vCluster creation".
        hint: Next step to suggest for generic failures.

    Returns:
        ProvisioningNotFound when the tool says the target does not exist,
        otherwise ExternalCommandFailed with the verbatim output.
    """
    if is_not_found(result):
        return ProvisioningNotFound(
            f"{subject} failed: target not found ({result.output.strip()})",
            hint="Check the name with 'ghostctl list' or create it with 'ghostctl up <name>'",
        )
    return ExternalCommandFailed(
        f"{subject} failed", result.exit_code, result.output, hint=hint
    )
