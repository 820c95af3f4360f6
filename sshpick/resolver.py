"""SSH client config resolver.

Turns a root ``ssh_config`` file into a flat, ordered list of ``HostEntry``
values. Only three directives are understood:

  - ``Include <pattern>``  — inlined recursively, glob patterns expanded
  - ``Host <name>``        — one entry per concrete (non-wildcard) name
  - ``HostName <value>``   — taken only from the line directly beneath ``Host``

Entries from included files come first, in ``Include`` order, followed by the
entries declared in the file itself. Nothing is deduplicated.
"""

from __future__ import annotations

import glob
import logging
import re
from pathlib import Path

from sshpick.entry import HostEntry
from sshpick.errors import ReadError

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

INCLUDE_RE = re.compile(r"^Include[ \t]+(\S+)")
HOST_RE = re.compile(r"^Host[ \t]+([A-Za-z0-9_.-]+)[ \t]*$")
HOSTNAME_RE = re.compile(r"^[ \t]+HostName[ \t]+(\S.*?)[ \t]*$")

GLOB_MAGIC = ("*", "?", "[")


def expand_tilde(path: Path | str) -> Path:
    """Expand a leading ``~`` to the invoking user's home directory."""
    return Path(path).expanduser()


# ---------------------------------------------------------------------------
# Scanners
# ---------------------------------------------------------------------------


def find_includes(content: str, base_dir: Path | None = None) -> list[Path]:
    """Return the files referenced by ``Include`` lines, in appearance order.

    Glob patterns contribute every match (sorted, possibly none). Relative
    paths are anchored at *base_dir* when given.
    """
    paths: list[Path] = []
    for line in content.splitlines():
        match = INCLUDE_RE.match(line)
        if not match:
            continue

        raw = match.group(1)
        if any(ch in raw for ch in GLOB_MAGIC):
            pattern = _glob_pattern(raw, base_dir)
            matches = sorted(glob.glob(pattern))
            if not matches:
                logger.debug("Include pattern %s matched no files", pattern)
            paths.extend(Path(m) for m in matches)
            continue

        path = expand_tilde(raw)
        if not path.is_absolute() and base_dir is not None:
            path = base_dir / path
        paths.append(path)
    return paths


def _glob_pattern(raw: str, base_dir: Path | None) -> str:
    """Anchor *raw* for globbing; the home or base directory matches literally."""
    if raw.startswith("~"):
        head, sep, tail = raw.partition("/")
        return glob.escape(str(expand_tilde(head))) + sep + tail
    if Path(raw).is_absolute() or base_dir is None:
        return raw
    return str(Path(glob.escape(str(base_dir))) / raw)


def find_hosts(content: str) -> list[HostEntry]:
    """Return one entry per concrete ``Host`` line, in file order."""
    lines = content.splitlines()
    entries: list[HostEntry] = []

    for idx, line in enumerate(lines):
        match = HOST_RE.match(line)
        if not match:
            continue
        name = match.group(1)
        entries.append(HostEntry(host=name, hostname=_hostname_below(lines, idx + 1) or name))
    return entries


def _hostname_below(lines: list[str], start: int) -> str | None:
    """Return the ``HostName`` value directly beneath a ``Host`` line, if any.

    Blank lines are skipped; the first non-blank line must be an indented,
    well-formed ``HostName <value>`` or the host resolves to itself.
    """
    for line in lines[start:]:
        if not line.strip():
            continue
        match = HOSTNAME_RE.match(line)
        return match.group(1) if match else None
    return None


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


def read_text(path: Path) -> str:
    """Read *path* as text, raising ``ReadError`` on any I/O failure."""
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        raise ReadError(path, exc.strerror or str(exc)) from exc


def resolve(path: Path | str) -> list[HostEntry]:
    """Resolve *path* and every file it includes into a flat host list.

    Raises ``ReadError`` if the root file cannot be read. Included files that
    cannot be read contribute nothing.
    """
    return _resolve(expand_tilde(path), chain=())


def _resolve(path: Path, chain: tuple[Path, ...]) -> list[HostEntry]:
    content = read_text(path)
    key = path.resolve()
    chain = chain + (key,)

    included: list[HostEntry] = []
    for include in find_includes(content, base_dir=path.parent):
        if include.resolve() in chain:
            logger.warning("Skipping recursive Include of %s from %s", include, path)
            continue
        try:
            included.extend(_resolve(include, chain))
        except ReadError as exc:
            logger.info("Ignoring unreadable include: %s", exc)

    local = find_hosts(content)
    logger.debug(
        "Resolved %s: %d included host(s), %d local host(s)", path, len(included), len(local)
    )
    return included + local
