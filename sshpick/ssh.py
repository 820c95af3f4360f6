"""SSH and ping command building.

A connection is made in two steps: a non-interactive probe that opens a
multiplexing master (and tells us whether the host is reachable at all), then
the interactive session that reuses that master through its ControlPath.
"""

from __future__ import annotations

from sshpick.config import DEFAULT_PING_COUNT

SSH_EXECUTABLE = "ssh"
PING_EXECUTABLE = "ping"
CONTROL_PERSIST = "5s"
PROBE_COMMAND = "true"


def build_probe_command(
    host: str,
    control_path: str,
    *,
    ssh_options: list[str] | None = None,
) -> list[str]:
    """Build the ``ssh`` command that checks *host* and leaves a master running."""
    cmd: list[str] = [
        SSH_EXECUTABLE,
        "-T",
        "-o", "ControlMaster=auto",
        "-o", f"ControlPersist={CONTROL_PERSIST}",
        "-o", f"ControlPath={control_path}",
    ]
    if ssh_options:
        cmd.extend(ssh_options)
    cmd.extend([host, PROBE_COMMAND])
    return cmd


def build_session_command(
    host: str,
    control_path: str,
    *,
    ssh_options: list[str] | None = None,
) -> list[str]:
    """Build the interactive ``ssh`` command reusing the probe's master."""
    cmd: list[str] = [SSH_EXECUTABLE, "-S", control_path]
    if ssh_options:
        cmd.extend(ssh_options)
    cmd.append(host)
    return cmd


def build_ping_command(hostname: str, count: int = DEFAULT_PING_COUNT) -> list[str]:
    """Build a ``ping`` command sending *count* echo requests to *hostname*."""
    return [PING_EXECUTABLE, "-c", str(count), hostname]
