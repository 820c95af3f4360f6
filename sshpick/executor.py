"""Subprocess runners for the ssh probe, ping and the final ssh session."""

from __future__ import annotations

import logging
import os
import subprocess
import sys
from dataclasses import dataclass

from sshpick.utils import err_console, print_command_preview

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Outcome of a captured command."""

    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


def run_capture(cmd: list[str], *, timeout: int = DEFAULT_TIMEOUT) -> CommandResult:
    """Run a command and capture its output.

    Returns exit code 124 on timeout and 127 when the executable is missing.
    """
    logger.debug("Running %s", " ".join(cmd))
    try:
        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            timeout=timeout,
            env=os.environ.copy(),
        )
    except subprocess.TimeoutExpired:
        return CommandResult(124, stderr=f"Command timed out after {timeout} seconds.")
    except FileNotFoundError:
        return CommandResult(127, stderr=f"Command not found: {cmd[0]}")
    return CommandResult(result.returncode, result.stdout, result.stderr)


def exec_replace(cmd: list[str], *, preview: bool = True) -> None:
    """Replace the current process with the given command (exec).

    Used for SSH to hand off the terminal completely.
    Does not return on success.
    """
    if preview:
        print_command_preview(cmd)

    try:
        os.execvp(cmd[0], cmd)
    except FileNotFoundError:
        err_console.print(f"[bold red]Command not found:[/bold red] {cmd[0]}")
        sys.exit(127)
