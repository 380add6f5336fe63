"""Error types for ghostctl.

Every error carries an optional ``hint``: the next command or install step
an operator should try. The CLI prints it under the message.
"""


class GhostError(Exception):
    """Base class for all ghostctl errors."""

    def __init__(self, message: str, hint: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.hint = hint


class NotFound(GhostError):
    """Raised when a cluster is missing from the local registry."""

    pass


class ClusterExists(GhostError):
    """Raised when registering a cluster name that is already taken."""

    pass


class InvalidClusterName(GhostError, ValueError):
    """Raised when a cluster name is not a valid DNS-1123 label."""

    pass


class StateCorrupted(GhostError):
    """Raised when a local state document cannot be parsed."""

    pass


class ProvisioningNotFound(GhostError):
    """Raised when the remote vCluster does not exist."""

    pass


class FetchFailed(GhostError):
    """Raised when cluster credentials cannot be fetched."""

    pass


class BinaryMissing(FetchFailed):
    """Raised when a required external binary is not on PATH."""

    def __init__(self, program: str, hint: str | None = None) -> None:
        super().__init__(f"{program} not found in PATH", hint)
        self.program = program


class ExternalCommandFailed(GhostError):
    """Raised when an external command exits non-zero.

    The exit code and captured output are preserved verbatim so the
    underlying tool's own diagnostics reach the user.
    """

    def __init__(
        self,
        message: str,
        exit_code: int,
        output: str = "",
        hint: str | None = None,
    ) -> None:
        detail = output.strip() or "(no output)"
        super().__init__(f"{message} (exit code {exit_code}): {detail}", hint)
        self.exit_code = exit_code
        self.output = output


class NoCredentialFound(GhostError):
    """Raised when no kubeconfig document is present in tool output."""

    pass


class ReadinessTimeout(GhostError):
    """Raised when a vCluster does not become ready in time."""

    pass


class NothingToDisconnect(GhostError):
    """Raised by disconnect when no session is active."""

    pass


class RestoreFailed(GhostError):
    """Raised when disconnect cannot reapply the saved selector."""

    pass
