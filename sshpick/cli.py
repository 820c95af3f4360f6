"""Typer CLI application for sshpick.

Runs the interactive picker by default, with non-interactive commands for
scripting: ls, recent, connect, ping, forget, config.
"""

from __future__ import annotations

import logging
import shlex
from pathlib import Path
from typing import Annotated, Optional

import typer
from rich.panel import Panel
from rich.table import Table

from sshpick import __version__, history
from sshpick.config import (
    ENV_SETTINGS_VAR,
    Settings,
    get_settings_path,
    load_settings,
    validate_settings_file,
)
from sshpick.entry import HostEntry, index_by_host
from sshpick.errors import ConfigError, DecodeError, ReadError, SshpickError
from sshpick.inventory import resolve_inventory
from sshpick.resolver import resolve
from sshpick.utils import (
    configure_logging,
    confirm_action,
    console,
    print_error,
    print_info,
    print_success,
)

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# App setup
# ---------------------------------------------------------------------------

app = typer.Typer(
    name="sshpick",
    help="⚡ sshpick — pick a host from your SSH config and connect to it.",
    no_args_is_help=False,
    rich_markup_mode="rich",
    add_completion=True,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _settings(ctx: typer.Context) -> Settings:
    return ctx.ensure_object(Settings)


def _load_hosts_or_exit(settings: Settings) -> list[HostEntry]:
    """Resolve the host list, printing a helpful error and exiting on failure."""
    try:
        if settings.inventory is not None:
            return resolve_inventory(settings.inventory)
        return resolve(settings.ssh_config)
    except SshpickError as exc:
        print_error(str(exc))
        raise typer.Exit(1)


def _load_recent(settings: Settings) -> list[HostEntry]:
    """Load recent hosts; a missing file is silent, a corrupt one is warned about."""
    try:
        return history.load(settings.recent)
    except ReadError:
        return []
    except DecodeError as exc:
        logger.warning("Ignoring recent hosts: %s", exc)
        return []


def _connect_and_exec(settings: Settings, recent: list[HostEntry], entry: HostEntry) -> None:
    from sshpick.connect import probe_and_record, session_command
    from sshpick.errors import ConnectError
    from sshpick.executor import exec_replace

    try:
        _, elapsed = probe_and_record(settings, recent, entry)
    except ConnectError as exc:
        print_error(str(exc))
        raise typer.Exit(1)
    except SshpickError as exc:
        print_error(f"Connected, but could not save recent hosts: {exc}")
    else:
        print_success(f"Connected in {elapsed:.2f}s")
    exec_replace(session_command(settings, entry))


def _print_entries(entries: list[HostEntry], title: str, *, recent: bool = False) -> None:
    """Print a Rich table of host entries."""
    table = Table(
        title=title,
        show_header=True,
        header_style="bold magenta",
        border_style="bright_blue",
        show_lines=False,
    )
    table.add_column("#", justify="right", style="bold green")
    table.add_column("Host", style="bold", min_width=15)
    table.add_column("Hostname", style="cyan", min_width=20)
    if recent:
        table.add_column("Last connected", style="green")
    else:
        table.add_column("Group", style="green")

    for num, entry in enumerate(entries, start=1):
        last = entry.timestamp if recent else entry.extra
        table.add_row(str(num), entry.host, entry.hostname, last or "—")

    console.print()
    console.print(table)
    console.print()


# ---------------------------------------------------------------------------
# Default callback — interactive picker when no subcommand given
# ---------------------------------------------------------------------------


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    ssh_config: Annotated[
        Optional[Path], typer.Option("--ssh-config", "-F", help="Path to the SSH config file.")
    ] = None,
    recent: Annotated[
        Optional[Path], typer.Option("--recent", help="Path to the recent connections file.")
    ] = None,
    inventory: Annotated[
        Optional[Path],
        typer.Option("--inventory", help="Read hosts from an INI inventory instead of SSH config."),
    ] = None,
    switch_filter: Annotated[
        Optional[bool],
        typer.Option("--switch-filter/--no-switch-filter", help="Filter on hostname instead of host."),
    ] = None,
    ping_count: Annotated[
        Optional[int], typer.Option("--ping-count", min=1, help="Number of pings sent to a host.")
    ] = None,
    ssh_options: Annotated[
        Optional[str], typer.Option("--ssh-options", help="Extra options passed to ssh, quoted.")
    ] = None,
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")] = False,
    version: Annotated[
        bool, typer.Option("--version", "-V", help="Show version and exit.")
    ] = False,
):
    """⚡ sshpick — run with no arguments for interactive mode."""
    if version:
        console.print(f"sshpick [bold]{__version__}[/bold]")
        raise typer.Exit()

    configure_logging(verbose)

    overrides = dict(
        ssh_config=ssh_config,
        recent=recent,
        inventory=inventory,
        switch_filter=switch_filter,
        ping_count=ping_count,
        ssh_options=shlex.split(ssh_options) if ssh_options else None,
    )
    try:
        settings = load_settings().override(**overrides)
    except ConfigError as exc:
        # `config` reports a broken settings file itself.
        if ctx.invoked_subcommand != "config":
            print_error(str(exc))
            raise typer.Exit(1)
        settings = Settings().override(**overrides)
    ctx.obj = settings

    if ctx.invoked_subcommand is None:
        hosts = _load_hosts_or_exit(settings)
        recent_hosts = _load_recent(settings)

        from sshpick.tui import run_tui

        chosen = run_tui(settings, hosts, recent_hosts)
        if chosen is None:
            console.print("[yellow]Goodbye![/yellow]")
            raise typer.Exit()

        from sshpick.connect import session_command
        from sshpick.executor import exec_replace

        exec_replace(session_command(settings, chosen))


# ---------------------------------------------------------------------------
# sshpick ls / recent
# ---------------------------------------------------------------------------


@app.command("ls")
def cmd_ls(
    ctx: typer.Context,
    search: Annotated[
        Optional[str], typer.Argument(help="Optional search filter.")
    ] = None,
):
    """List the hosts from the SSH config (or inventory) in file order."""
    settings = _settings(ctx)
    hosts = _load_hosts_or_exit(settings)

    if search:
        from sshpick.utils import fuzzy_match

        keys = [h.hostname if settings.switch_filter else h.host for h in hosts]
        hosts = [hosts[idx] for idx, _ in fuzzy_match(search, keys)]
        if not hosts:
            print_info(f"No hosts matching '{search}'.")
            raise typer.Exit()

    _print_entries(hosts, f"Hosts — {settings.source_path}")


@app.command("recent")
def cmd_recent(ctx: typer.Context):
    """List recently used hosts, most recent first."""
    settings = _settings(ctx)
    entries = _load_recent(settings)
    if not entries:
        print_info("No recently used hosts yet.")
        raise typer.Exit()
    _print_entries(entries, "Recently Used", recent=True)


# ---------------------------------------------------------------------------
# sshpick connect / ping
# ---------------------------------------------------------------------------


@app.command("connect")
def cmd_connect(
    ctx: typer.Context,
    host: Annotated[str, typer.Argument(help="Host from the config, or any host ssh accepts.")],
):
    """Connect to a host and record it as most recently used."""
    settings = _settings(ctx)
    recent = _load_recent(settings)

    known = index_by_host(_load_hosts_or_exit(settings))
    entry = known.get(host) or HostEntry(host=host)
    _connect_and_exec(settings, recent, entry)


@app.command("ping")
def cmd_ping(
    ctx: typer.Context,
    host: Annotated[str, typer.Argument(help="Host from the config, or any hostname.")],
):
    """Ping a host's resolved hostname."""
    from sshpick.connect import ping

    settings = _settings(ctx)
    known = index_by_host(_load_hosts_or_exit(settings))
    entry = known.get(host) or HostEntry(host=host)

    with console.status(f"Pinging {entry.host!r} {settings.ping_count} times..."):
        summary = ping(settings, entry)
    console.print(summary, highlight=False)


# ---------------------------------------------------------------------------
# sshpick forget
# ---------------------------------------------------------------------------


@app.command("forget")
def cmd_forget(
    ctx: typer.Context,
    number: Annotated[int, typer.Argument(help="Number of the host as shown by `sshpick recent`.")],
    yes: Annotated[bool, typer.Option("--yes", "-y", help="Do not ask for confirmation.")] = False,
):
    """Remove a host from the recently used list."""
    settings = _settings(ctx)
    entries = _load_recent(settings)

    try:
        updated = history.delete_at(entries, number - 1)
    except IndexError:
        print_error(f"No recent host #{number}. Run `sshpick recent` to see the list.")
        raise typer.Exit(1)

    removed = entries[number - 1]
    if not yes and not confirm_action(f"Remove {removed.host} from recently used hosts?"):
        print_info("Cancelled.")
        raise typer.Exit(0)

    try:
        history.save(settings.recent, updated, overwrite=True)
    except SshpickError as exc:
        print_error(str(exc))
        raise typer.Exit(1)
    print_success(f"Removed {removed.host} from recently used hosts.")


# ---------------------------------------------------------------------------
# sshpick config
# ---------------------------------------------------------------------------


@app.command("config")
def cmd_config(ctx: typer.Context):
    """Show the effective paths and validate the configured host source."""
    import os

    settings = _settings(ctx)
    env = os.environ.get(ENV_SETTINGS_VAR)
    console.print(Panel(
        f"[bold]Settings:[/bold]   {get_settings_path()}\n"
        f"[bold]Env var:[/bold]    {(ENV_SETTINGS_VAR + '=' + env) if env else '[dim]not set[/dim]'}\n"
        f"[bold]Hosts from:[/bold] {settings.source_path}\n"
        f"[bold]Recent:[/bold]     {settings.recent}",
        title="[bold]sshpick config[/bold]",
        border_style="blue",
    ))

    ok, msg = validate_settings_file()
    if ok:
        console.print(f"[green]✓ {msg}[/green]")
    else:
        print_error(msg)
        raise typer.Exit(1)

    hosts = _load_hosts_or_exit(settings)
    console.print(f"[green]✓ {len(hosts)} host(s) loaded from {settings.source_path}[/green]")


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def app_entry() -> None:
    """Console script entry point for ``sshpick``."""
    app()
