"""Shared console output, logging setup and fuzzy matching."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Confirm
from rich.text import Text

# ---------------------------------------------------------------------------
# Console singletons
# ---------------------------------------------------------------------------

console = Console()
err_console = Console(stderr=True)

# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------


def configure_logging(verbose: bool = False) -> None:
    """Send log records to stderr through rich; DEBUG when *verbose*."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=verbose)],
        force=True,
    )


# ---------------------------------------------------------------------------
# Fuzzy / substring matcher
# ---------------------------------------------------------------------------


def fuzzy_match(query: str, candidates: list[str]) -> list[tuple[int, str]]:
    """Return (index, candidate) pairs where *query* is a case-insensitive subsequence.

    Results are sorted: exact prefix matches first, then subsequence matches.
    """
    q = query.lower()
    prefix_matches: list[tuple[int, str]] = []
    subseq_matches: list[tuple[int, str]] = []

    for idx, candidate in enumerate(candidates):
        c = candidate.lower()
        if c.startswith(q):
            prefix_matches.append((idx, candidate))
        elif _is_subsequence(q, c):
            subseq_matches.append((idx, candidate))

    return prefix_matches + subseq_matches


def _is_subsequence(needle: str, haystack: str) -> bool:
    """Check if needle chars appear in order within haystack."""
    it = iter(haystack)
    return all(ch in it for ch in needle)


# ---------------------------------------------------------------------------
# Prompts and display helpers
# ---------------------------------------------------------------------------


def confirm_action(message: str, *, default: bool = False) -> bool:
    """Ask the user to confirm a potentially destructive action."""
    return Confirm.ask(f"  [bold yellow]⚠ {message}[/bold yellow]", default=default)


def print_command_preview(cmd: list[str]) -> None:
    """Show the command that is about to be executed in dim style."""
    cmd_str = " ".join(cmd)
    console.print(f"\n  [dim]$ {cmd_str}[/dim]\n")


def print_error(msg: str) -> None:
    """Print an error message to stderr."""
    err_console.print(f"[bold red]Error:[/bold red] {msg}")


def print_success(msg: str) -> None:
    console.print(f"[bold green]✓[/bold green] {msg}")


def print_info(msg: str) -> None:
    console.print(f"[bold blue]ℹ[/bold blue] {msg}")


def welcome_panel(source_path: str, host_count: int, recent_count: int, version: str) -> None:
    """Display the welcome panel for interactive mode."""
    body = Text.from_markup(
        f"[bold]Hosts from:[/bold] {source_path}\n"
        f"[bold]Hosts:[/bold]      {host_count}\n"
        f"[bold]Recent:[/bold]     {recent_count}\n"
        f"\n"
        f"[dim]Number to connect, text to filter, r recent, i input, q quit.[/dim]"
    )
    panel = Panel(
        body,
        title="[bold magenta]⚡ sshpick[/bold magenta]",
        subtitle=f"[dim]v{version}[/dim]",
        border_style="bright_blue",
        padding=(1, 2),
    )
    console.print(panel)
