"""Recently used hosts — the persisted recency list and its reordering.

The list lives in a JSON file (``~/.ssh/recent.json`` by default) holding every
host ever connected to, most recent first. It is rewritten after each
successful connection and after each deletion from the recents view.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Sequence

from sshpick.entry import HostEntry
from sshpick.errors import DecodeError, EncodeError, ReadError, WriteError
from sshpick.resolver import expand_tilde

logger = logging.getLogger(__name__)

TIMESTAMP_FORMAT = "%a, %d %b %Y %H:%M:%S %Z"


def format_timestamp(now: datetime | None = None) -> str:
    """Format a connection time, e.g. ``Sun, 12 Jun 2022 14:59:28 EEST``."""
    moment = now or datetime.now()
    if moment.tzinfo is None:
        moment = moment.astimezone()
    return moment.strftime(TIMESTAMP_FORMAT)


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


def load(path: Path | str) -> list[HostEntry]:
    """Load the recency list from *path*.

    Raises ``ReadError`` if the file is missing or unreadable and
    ``DecodeError`` if it is not a JSON array of host records. Callers decide
    whether either means "no history yet".
    """
    file = expand_tilde(path)
    try:
        raw = file.read_text(encoding="utf-8")
    except OSError as exc:
        raise ReadError(file, exc.strerror or str(exc)) from exc
    except UnicodeDecodeError as exc:
        raise DecodeError(file, f"not UTF-8 text ({exc.reason})") from exc

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise DecodeError(file, f"invalid JSON ({exc})") from exc

    if not isinstance(data, list):
        raise DecodeError(file, f"expected a JSON array, got {type(data).__name__}")
    return [HostEntry.from_dict(item, source=file) for item in data]


def save(path: Path | str, entries: Sequence[HostEntry], overwrite: bool = False) -> bool:
    """Write *entries* to *path* as JSON.

    An existing file is left untouched unless *overwrite* is set. Returns True
    when the file was written.
    """
    file = expand_tilde(path)
    if file.exists() and not overwrite:
        logger.debug("Not overwriting existing recency file %s", file)
        return False

    try:
        payload = json.dumps([entry.to_dict() for entry in entries], indent=2)
    except (TypeError, ValueError, AttributeError) as exc:
        raise EncodeError(f"Could not encode host entries: {exc}") from exc

    try:
        file.parent.mkdir(parents=True, exist_ok=True)
        file.write_text(payload + "\n", encoding="utf-8")
    except OSError as exc:
        raise WriteError(file, exc.strerror or str(exc)) from exc

    logger.debug("Saved %d recent host(s) to %s", len(entries), file)
    return True


# ---------------------------------------------------------------------------
# Reordering
# ---------------------------------------------------------------------------


def _index_of(host: str, hosts: Sequence[str]) -> int | None:
    for idx, candidate in enumerate(hosts):
        if candidate == host:
            return idx
    return None


def move_to_front(needle: str, haystack: Sequence[str]) -> list[str]:
    """Move *needle* to the front of *haystack*, prepending it if absent.

    Elements before the old position shift back by one; the rest keep their
    places. Always returns a new list.
    """
    idx = _index_of(needle, haystack)
    if idx is None:
        return [needle, *haystack]
    return [needle, *haystack[:idx], *haystack[idx + 1 :]]


def merge_to_front(
    history: Sequence[HostEntry],
    connected: HostEntry,
    now: datetime | None = None,
) -> list[HostEntry]:
    """Return *history* with *connected* moved to the front and timestamped.

    When the host is already known its recorded hostname wins over the one
    on *connected*, which for an ad hoc connection is only a placeholder.
    All other entries are carried over unchanged and in order.
    """
    hosts = [entry.host for entry in history]
    idx = _index_of(connected.host, hosts)

    if idx is None:
        front = connected
        rest = list(history)
    else:
        known = history[idx]
        front = HostEntry(
            host=connected.host,
            hostname=known.hostname,
            extra=known.extra or connected.extra,
        )
        rest = [*history[:idx], *history[idx + 1 :]]

    merged = [front.connected_at(format_timestamp(now)), *rest]
    logger.debug("Moved %s to the front of %d recent host(s)", connected.host, len(merged))
    return merged


def delete_at(history: Sequence[HostEntry], index: int) -> list[HostEntry]:
    """Return *history* without the entry at *index*.

    Raises ``IndexError`` when *index* is out of range.
    """
    if index < 0 or index >= len(history):
        raise IndexError(
            f"Recent host index {index} out of range for {len(history)} recent host(s)."
        )
    return [entry for pos, entry in enumerate(history) if pos != index]


def record_connection(
    path: Path | str,
    history: Sequence[HostEntry],
    connected: HostEntry,
    now: datetime | None = None,
) -> list[HostEntry]:
    """Merge *connected* into *history*, persist the result and return it."""
    merged = merge_to_front(history, connected, now)
    save(path, merged, overwrite=True)
    return merged
