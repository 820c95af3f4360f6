"""The host record shared by the config resolver and the recency store.

The recency file stores a JSON array of these records using the field names
``Host``, ``Hostname``, ``Timestamp`` and (only when set) ``Extra``.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from sshpick.errors import DecodeError

FIELD_HOST = "Host"
FIELD_HOSTNAME = "Hostname"
FIELD_TIMESTAMP = "Timestamp"
FIELD_EXTRA = "Extra"


@dataclass(frozen=True, slots=True)
class HostEntry:
    """A single connectable target."""

    host: str
    hostname: str = ""
    timestamp: str = ""
    extra: str = ""  # cosmetic only, e.g. the inventory group

    def __post_init__(self) -> None:
        if not self.host:
            raise ValueError("HostEntry.host must be a non-empty string.")
        if not self.hostname:
            object.__setattr__(self, "hostname", self.host)

    def connected_at(self, timestamp: str) -> HostEntry:
        """Return a copy of this entry stamped with *timestamp*."""
        return replace(self, timestamp=timestamp)

    def to_dict(self) -> dict[str, str]:
        data = {
            FIELD_HOST: self.host,
            FIELD_HOSTNAME: self.hostname,
            FIELD_TIMESTAMP: self.timestamp,
        }
        if self.extra:
            data[FIELD_EXTRA] = self.extra
        return data

    @classmethod
    def from_dict(cls, data: Any, source: Path | str = "<memory>") -> HostEntry:
        """Build an entry from one decoded JSON object.

        Raises ``DecodeError`` when *data* does not have the expected shape.
        """
        if not isinstance(data, dict):
            raise DecodeError(source, f"expected an object, got {type(data).__name__}")

        host = data.get(FIELD_HOST)
        if not isinstance(host, str) or not host:
            raise DecodeError(source, f"entry is missing a non-empty '{FIELD_HOST}' field")

        values: dict[str, str] = {}
        for key in (FIELD_HOSTNAME, FIELD_TIMESTAMP, FIELD_EXTRA):
            value = data.get(key)
            if value is None:
                continue
            if not isinstance(value, str):
                raise DecodeError(source, f"field '{key}' of host '{host}' must be a string")
            values[key] = value

        return cls(
            host=host,
            hostname=values.get(FIELD_HOSTNAME, ""),
            timestamp=values.get(FIELD_TIMESTAMP, ""),
            extra=values.get(FIELD_EXTRA, ""),
        )


def index_by_host(entries: list[HostEntry]) -> dict[str, HostEntry]:
    """Map each host identifier to its entry; later duplicates shadow earlier ones."""
    return {entry.host: entry for entry in entries}
