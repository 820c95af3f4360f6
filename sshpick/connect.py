"""Connecting to and pinging a chosen host.

A connection counts as successful once the probe exits cleanly; only then is
the host moved to the front of the recency list and written to disk.
"""

from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Sequence

from sshpick import history
from sshpick.config import Settings
from sshpick.entry import HostEntry
from sshpick.errors import ConnectError
from sshpick.executor import run_capture
from sshpick.ssh import build_ping_command, build_probe_command, build_session_command

logger = logging.getLogger(__name__)

PROBE_TIMEOUT = 60

# Seconds added on top of two per ping packet.
PING_TIMEOUT_MARGIN = 10


def probe(settings: Settings, entry: HostEntry) -> float:
    """Open a master connection to *entry* and return the time it took.

    Raises ``ConnectError`` when ssh fails.
    """
    cmd = build_probe_command(
        entry.host, settings.control_path, ssh_options=settings.ssh_options
    )
    started = time.monotonic()
    result = run_capture(cmd, timeout=PROBE_TIMEOUT)
    elapsed = time.monotonic() - started

    if not result.ok:
        raise ConnectError(entry.host, result.returncode, result.stderr)
    logger.debug("Probe of %s succeeded in %.3fs", entry.host, elapsed)
    return elapsed


def probe_and_record(
    settings: Settings,
    recent: Sequence[HostEntry],
    entry: HostEntry,
    now: datetime | None = None,
) -> tuple[list[HostEntry], float]:
    """Probe *entry* and, on success, record it in the recency file.

    Returns the updated recency list and the probe duration.
    """
    elapsed = probe(settings, entry)
    updated = history.record_connection(settings.recent, recent, entry, now)
    return updated, elapsed


def session_command(settings: Settings, entry: HostEntry) -> list[str]:
    return build_session_command(
        entry.host, settings.control_path, ssh_options=settings.ssh_options
    )


def ping_timeout(count: int) -> int:
    return count * 2 + PING_TIMEOUT_MARGIN


def ping(settings: Settings, entry: HostEntry) -> str:
    """Ping *entry*'s hostname and return a one-line summary."""
    result = run_capture(
        build_ping_command(entry.hostname, settings.ping_count),
        timeout=ping_timeout(settings.ping_count),
    )
    lines = [line for line in result.stdout.splitlines() if line.strip()]
    if result.returncode == 127:
        return result.stderr
    if not lines or not result.ok:
        return f"{entry.host!r} could not ping"
    return f"{entry.host!r} {lines[-1].strip()}"
