"""INI inventory source (e.g. an Ansible ``hosts`` file).

Sections are groups, keys are hosts and values are the resolved hostnames::

    [web]
    chat.local=chat
    lieu.local

Hosts listed before the first section belong to ``ungrouped``. Ansible-style
inline variables are understood as well: in
``graph.local ansible_host=graph`` the hostname is taken from ``ansible_host``.
"""

from __future__ import annotations

import configparser
import logging
from pathlib import Path

from sshpick.entry import HostEntry
from sshpick.errors import DecodeError
from sshpick.resolver import expand_tilde, read_text

logger = logging.getLogger(__name__)

UNGROUPED = "ungrouped"
SKIPPED_SUFFIXES = (":vars", ":children")
HOST_VARS = ("ansible_host", "ansible_ssh_host")


def _make_parser() -> configparser.ConfigParser:
    parser = configparser.ConfigParser(
        allow_no_value=True,
        strict=False,
        interpolation=None,
        delimiters=("=",),
        comment_prefixes=("#", ";"),
        default_section="__sshpick_defaults__",
    )
    parser.optionxform = str  # type: ignore[assignment,method-assign]
    return parser


def parse_inventory(content: str, source: Path | str = "<string>") -> list[HostEntry]:
    """Parse inventory *content* into host entries, in file order."""
    parser = _make_parser()
    try:
        parser.read_string(f"[{UNGROUPED}]\n{content}", source=str(source))
    except configparser.Error as exc:
        raise DecodeError(source, str(exc)) from exc

    entries: list[HostEntry] = []
    for section in parser.sections():
        if section.endswith(SKIPPED_SUFFIXES):
            logger.debug("Skipping inventory section [%s]", section)
            continue
        for key, value in parser.items(section, raw=True):
            entry = _parse_line(key, value, section)
            if entry is not None:
                entries.append(entry)
    return entries


def _parse_line(key: str, value: str | None, section: str) -> HostEntry | None:
    """Build an entry from one ``key[=value]`` pair of a section."""
    tokens = key.split()
    if not tokens:
        return None
    host = tokens[0]

    if len(tokens) == 1:
        return HostEntry(host=host, hostname=(value or "").strip(), extra=section)

    # "host var=x var2=y": configparser split the line at the first "="
    line = f"{key}={value}" if value is not None else key
    host_vars = dict(
        token.split("=", 1) for token in line.split()[1:] if "=" in token
    )
    hostname = next((host_vars[v] for v in HOST_VARS if host_vars.get(v)), "")
    return HostEntry(host=host, hostname=hostname, extra=section)


def resolve_inventory(path: Path | str) -> list[HostEntry]:
    """Read and parse an inventory file.

    Raises ``ReadError`` when the file cannot be read and ``DecodeError`` when
    it is not valid INI.
    """
    resolved = expand_tilde(path)
    return parse_inventory(read_text(resolved), source=resolved)
