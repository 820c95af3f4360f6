"""Exceptions raised by sshpick."""

from __future__ import annotations

from pathlib import Path


class SshpickError(Exception):
    """Base class for all sshpick errors."""


class ReadError(SshpickError):
    """Raised when a file is missing or cannot be read."""

    def __init__(self, path: Path | str, reason: str = "") -> None:
        self.path = Path(path)
        msg = f"Could not read file '{self.path}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class DecodeError(SshpickError):
    """Raised when a file's content is malformed or has the wrong shape."""

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = Path(path)
        super().__init__(f"Could not decode '{self.path}': {reason}")


class EncodeError(SshpickError):
    """Raised when host entries cannot be serialized."""


class WriteError(SshpickError):
    """Raised when a file cannot be written."""

    def __init__(self, path: Path | str, reason: str = "") -> None:
        self.path = Path(path)
        msg = f"Could not write file '{self.path}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class ConfigError(SshpickError):
    """Raised when the settings file is invalid."""


class ConnectError(SshpickError):
    """Raised when the connection probe to a host fails."""

    def __init__(self, host: str, returncode: int, stderr: str = "") -> None:
        self.host = host
        self.returncode = returncode
        self.stderr = stderr.strip()
        detail = self.stderr or f"ssh exited with code {returncode}"
        super().__init__(f"Unable to connect to '{host}': {detail}")
