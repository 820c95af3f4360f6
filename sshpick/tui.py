"""Rich-based interactive picker.

Two views share one prompt: the hosts from the SSH config (or inventory) in
file order, and the recently used hosts, most recent first.

  <number>   connect to that host
  <text>     filter the current view
  /          clear the filter
  r          toggle the recently used view
  i          connect to a host typed by hand
  p <number> ping that host
  d <number> delete that host from recents (recents view only)
  q          quit
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from rich.prompt import Prompt

from sshpick import __version__, history
from sshpick.config import Settings
from sshpick.connect import ping, probe_and_record
from sshpick.entry import HostEntry, index_by_host
from sshpick.errors import ConnectError, SshpickError
from sshpick.utils import (
    console,
    fuzzy_match,
    print_error,
    print_info,
    print_success,
    welcome_panel,
)

# ---------------------------------------------------------------------------
# Prompt commands
# ---------------------------------------------------------------------------

CONNECT = "connect"
PING = "ping"
DELETE = "delete"
TOGGLE = "toggle"
INPUT = "input"
CLEAR = "clear"
FILTER = "filter"
QUIT = "quit"
NOOP = "noop"

_INDEXED = {"p": PING, "d": DELETE}
_SINGLE = {"q": QUIT, "r": TOGGLE, "i": INPUT, "/": CLEAR}


@dataclass(frozen=True, slots=True)
class Command:
    """One parsed line of picker input. ``position`` is 0-based."""

    action: str
    position: int | None = None
    text: str = ""


def parse_command(raw: str) -> Command:
    """Turn a line typed at the picker prompt into a ``Command``."""
    choice = raw.strip()
    if not choice:
        return Command(NOOP)

    lowered = choice.lower()
    if lowered in _SINGLE:
        return Command(_SINGLE[lowered])

    if choice.isdigit():
        return Command(CONNECT, position=int(choice) - 1)

    parts = lowered.split()
    if len(parts) == 2 and parts[0] in _INDEXED and parts[1].isdigit():
        return Command(_INDEXED[parts[0]], position=int(parts[1]) - 1)

    return Command(FILTER, text=choice)


def describe(entry: HostEntry) -> str:
    """Secondary text shown under a host: timestamp, or hostname and group."""
    if entry.timestamp:
        return entry.timestamp
    if entry.extra:
        return f"{entry.hostname} :: {entry.extra}"
    return entry.hostname


# ---------------------------------------------------------------------------
# Picker state
# ---------------------------------------------------------------------------


class Picker:
    """View state for the interactive picker."""

    def __init__(
        self,
        settings: Settings,
        hosts: Sequence[HostEntry],
        recent: Sequence[HostEntry],
    ) -> None:
        self.settings = settings
        self.hosts = list(hosts)
        self.recent = list(recent)
        self.showing_recent = False
        self.filter_text = ""

    @property
    def items(self) -> list[HostEntry]:
        return self.recent if self.showing_recent else self.hosts

    def filter_key(self, entry: HostEntry) -> str:
        return entry.hostname if self.settings.switch_filter else entry.host

    def visible(self) -> list[tuple[int, HostEntry]]:
        """(index into ``items``, entry) pairs for the current view and filter."""
        items = self.items
        if not self.filter_text:
            return list(enumerate(items))
        keys = [self.filter_key(e) for e in items]
        return [(idx, items[idx]) for idx, _ in fuzzy_match(self.filter_text, keys)]

    def set_filter(self, text: str) -> bool:
        """Apply a filter; an unmatched filter is dropped and False returned."""
        self.filter_text = text
        if not self.visible():
            self.filter_text = ""
            return False
        return True

    def toggle_view(self) -> None:
        self.showing_recent = not self.showing_recent
        self.filter_text = ""

    def at(self, position: int) -> tuple[int, HostEntry]:
        """Return the visible item at *position*; ``IndexError`` when out of range."""
        shown = self.visible()
        if position < 0 or position >= len(shown):
            raise IndexError(f"Invalid number. Choose 1-{len(shown)}.")
        return shown[position]

    def adhoc(self, text: str) -> HostEntry:
        """An entry for a host typed by hand, using the config entry if known."""
        return index_by_host(self.hosts).get(text) or HostEntry(host=text)

    def forget(self, position: int) -> HostEntry:
        """Delete the visible recent host at *position* and persist the list."""
        if not self.showing_recent:
            raise SshpickError("Hosts can only be deleted from the recently used view.")
        idx, entry = self.at(position)
        self.recent = history.delete_at(self.recent, idx)
        history.save(self.settings.recent, self.recent, overwrite=True)
        if not self.visible():
            self.filter_text = ""
        return entry

    def connect(self, entry: HostEntry) -> float:
        """Probe *entry*, record it as most recent and return the probe time."""
        self.recent, elapsed = probe_and_record(self.settings, self.recent, entry)
        return elapsed


# ---------------------------------------------------------------------------
# Interactive flow
# ---------------------------------------------------------------------------


def _render(picker: Picker) -> None:
    title = "Recently Used" if picker.showing_recent else "Hosts"
    console.print()
    console.rule(f"[bold cyan]{title}[/bold cyan]")
    if picker.filter_text:
        console.print(f"  [dim]Filter: {picker.filter_text}[/dim]")

    shown = picker.visible()
    if not shown:
        console.print("  [dim]Nothing here yet.[/dim]")
    for num, (_, entry) in enumerate(shown, start=1):
        console.print(
            f"  [bold green]{num:>3}[/bold green]  [bold]{entry.host}[/bold]  "
            f"[dim]{describe(entry)}[/dim]",
            highlight=False,
        )

    hints = ["r=recent" if not picker.showing_recent else "r=all hosts", "i=input", "p N=ping"]
    if picker.showing_recent:
        hints.append("d N=delete")
    hints.extend(["/=clear", "q=quit"])
    console.print("\n  " + "  ".join(f"[dim]{h}[/dim]" for h in hints))


def _try_connect(picker: Picker, entry: HostEntry) -> bool:
    console.print(f"  [dim]Connecting to {entry.host}...[/dim]")
    try:
        elapsed = picker.connect(entry)
    except ConnectError as exc:
        print_error(str(exc))
        return False
    except SshpickError as exc:
        print_error(f"Connected, but could not save recent hosts: {exc}")
        return True
    print_success(f"Connected in {elapsed:.2f}s")
    return True


def run_tui(
    settings: Settings,
    hosts: Sequence[HostEntry],
    recent: Sequence[HostEntry],
) -> HostEntry | None:
    """Main interactive entry point.

    Returns the host that was successfully probed, or None if the user quit.
    """
    picker = Picker(settings, hosts, recent)
    welcome_panel(
        source_path=str(settings.source_path),
        host_count=len(picker.hosts),
        recent_count=len(picker.recent),
        version=__version__,
    )

    while True:
        _render(picker)
        command = parse_command(Prompt.ask("  [bold]>[/bold]", default=""))

        if command.action == QUIT:
            return None

        if command.action == NOOP:
            continue

        if command.action == TOGGLE:
            picker.toggle_view()
        elif command.action == CLEAR:
            picker.filter_text = ""
        elif command.action == FILTER:
            if not picker.set_filter(command.text):
                print_info("No matches. Showing all.")
        elif command.action == INPUT:
            text = Prompt.ask("  Connect to", default="").strip()
            if text:
                entry = picker.adhoc(text)
                if _try_connect(picker, entry):
                    return entry
        else:
            assert command.position is not None
            try:
                _, entry = picker.at(command.position)
            except IndexError as exc:
                print_error(str(exc))
                continue

            if command.action == CONNECT:
                if _try_connect(picker, entry):
                    return entry
            elif command.action == PING:
                with console.status(
                    f"Pinging {entry.host!r} {settings.ping_count} times..."
                ):
                    summary = ping(settings, entry)
                print_info(summary)
            elif command.action == DELETE:
                try:
                    removed = picker.forget(command.position)
                except SshpickError as exc:
                    print_error(str(exc))
                    continue
                print_info(f"Removed {removed.host} from recently used hosts.")
