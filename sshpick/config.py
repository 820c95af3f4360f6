"""Settings loader for sshpick.

Loads optional YAML settings from ~/.config/sshpick/settings.yaml (or the
SSHPICK_CONFIG env override). Command-line flags take precedence over the file,
which takes precedence over the built-in defaults.
"""

from __future__ import annotations

import os
import shlex
import tempfile
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any

import yaml

from sshpick.errors import ConfigError

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

APP_NAME = "sshpick"
DEFAULT_SETTINGS_DIR = Path.home() / ".config" / APP_NAME
DEFAULT_SETTINGS_PATH = DEFAULT_SETTINGS_DIR / "settings.yaml"
ENV_SETTINGS_VAR = "SSHPICK_CONFIG"
SUPPORTED_SETTINGS_VERSION = 1

DEFAULT_SSH_CONFIG = "~/.ssh/config"
DEFAULT_RECENT = "~/.ssh/recent.json"
DEFAULT_PING_COUNT = 4


def default_control_path() -> str:
    """ControlPath for the multiplexed master opened by the connection probe."""
    shm = Path("/dev/shm")
    base = shm if shm.is_dir() else Path(tempfile.gettempdir())
    return str(base / "control:%h:%p:%r")


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class Settings:
    """Effective sshpick settings."""

    ssh_config: Path = field(default_factory=lambda: Path(DEFAULT_SSH_CONFIG).expanduser())
    recent: Path = field(default_factory=lambda: Path(DEFAULT_RECENT).expanduser())
    inventory: Path | None = None
    switch_filter: bool = False
    ping_count: int = DEFAULT_PING_COUNT
    ssh_options: list[str] = field(default_factory=list)
    control_path: str = field(default_factory=default_control_path)
    settings_path: Path = DEFAULT_SETTINGS_PATH

    @property
    def source_path(self) -> Path:
        """The file hosts are read from: the inventory when set, else ssh_config."""
        return self.inventory or self.ssh_config

    def override(self, **changes: Any) -> Settings:
        """Return a copy with every non-None value in *changes* applied."""
        applied = {k: v for k, v in changes.items() if v is not None}
        for key in ("ssh_config", "recent", "inventory"):
            if key in applied:
                applied[key] = Path(applied[key]).expanduser()
        if "ping_count" in applied:
            applied["ping_count"] = _positive_int(applied["ping_count"], "ping_count")
        return replace(self, **applied)


_SETTINGS_KEYS = {f.name for f in fields(Settings)} - {"settings_path"}

# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------


def get_settings_path() -> Path:
    """Determine which settings file to use."""
    env = os.environ.get(ENV_SETTINGS_VAR)
    if env:
        return Path(env).expanduser().resolve()
    return DEFAULT_SETTINGS_PATH


def _positive_int(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigError(f"'{name}' must be a positive integer, got {value!r}.")
    return value


def _parse_ssh_options(value: Any) -> list[str]:
    if isinstance(value, str):
        return shlex.split(value)
    if isinstance(value, list):
        return [str(v) for v in value]
    raise ConfigError("'ssh_options' must be a string or a list of strings.")


def load_settings(path: Path | None = None) -> Settings:
    """Load settings from a YAML file, falling back to defaults if it is absent."""
    settings_path = path or get_settings_path()
    settings = Settings(settings_path=settings_path)

    if not settings_path.exists():
        return settings

    try:
        raw = yaml.safe_load(settings_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {settings_path}: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Could not read settings file {settings_path}: {exc}") from exc

    if raw is None:
        return settings
    if not isinstance(raw, dict):
        raise ConfigError(f"Settings file {settings_path} must be a YAML mapping at the top level.")

    raw = dict(raw)
    version = raw.pop("version", SUPPORTED_SETTINGS_VERSION)
    if version != SUPPORTED_SETTINGS_VERSION:
        raise ConfigError(
            f"Unsupported settings version {version}. Expected {SUPPORTED_SETTINGS_VERSION}."
        )

    unknown = sorted(set(raw) - _SETTINGS_KEYS)
    if unknown:
        raise ConfigError(f"Unknown setting(s) in {settings_path}: {', '.join(unknown)}.")

    if "ssh_options" in raw:
        raw["ssh_options"] = _parse_ssh_options(raw["ssh_options"])
    if "switch_filter" in raw:
        raw["switch_filter"] = bool(raw["switch_filter"])
    for key in ("ssh_config", "recent", "inventory", "control_path"):
        if key in raw and raw[key] is not None:
            raw[key] = str(raw[key])

    return settings.override(**raw)


def validate_settings_file(path: Path | None = None) -> tuple[bool, str]:
    """Validate a settings file and return (ok, message)."""
    settings_path = path or get_settings_path()
    try:
        load_settings(settings_path)
    except ConfigError as exc:
        return False, str(exc)
    if not settings_path.exists():
        return True, f"No settings file at {settings_path}, using defaults."
    return True, f"Settings OK — loaded from {settings_path}"
