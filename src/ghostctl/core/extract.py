"""Kubeconfig extraction from `vcluster connect --print` output.

vcluster may print banner and progress lines around the kubeconfig. The
document starts at the first `apiVersion:` line and runs while lines still
look like kubeconfig YAML.
"""

import re

from ghostctl.core.errors import NoCredentialFound

KUBECONFIG_MARKER = "apiVersion:"

KUBECONFIG_TOP_LEVEL_KEYS = {
    "apiVersion",
    "clusters",
    "contexts",
    "current-context",
    "extensions",
    "kind",
    "preferences",
    "users",
}

_TOP_LEVEL_KEY = re.compile(r"^([A-Za-z][\w-]*):(\s|$)")
_ANSI_ESCAPE = re.compile(r"\x1b\[[0-9;]*m")


def _is_document_line(line: str) -> bool:
    """Check if a line can belong to a kubeconfig document."""
    if not line.strip():
        return True
    if line[0] in " \t":
        return True
    if line.startswith(("- ", "#", "---")):
        return True
    match = _TOP_LEVEL_KEY.match(line)
    return match is not None and match.group(1) in KUBECONFIG_TOP_LEVEL_KEYS


def extract_kubeconfig(raw: str) -> str:
    """Isolate the kubeconfig document in raw tool output.

    Args:
        raw: Text printed by the provisioning tool.

    Returns:
        The document, starting at the marker line, ending with a newline.

    Raises:
        NoCredentialFound: If no line starts with the marker.
    """
    lines = _ANSI_ESCAPE.sub("", raw).splitlines()

    start = None
    for index, line in enumerate(lines):
        if line.strip().startswith(KUBECONFIG_MARKER):
            start = index
            break

    if start is None:
        raise NoCredentialFound(
            "no valid kubeconfig found in vcluster output",
            hint="Run 'vcluster connect <name> --print' to inspect the raw output",
        )

    document = [lines[start].strip()]
    for line in lines[start + 1 :]:
        if not _is_document_line(line):
            break
        document.append(line)

    while document and not document[-1].strip():
        document.pop()

    return "\n".join(document) + "\n"
