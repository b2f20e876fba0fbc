"""Rich console output for everything printed outside the player screen.

The full-screen player owns the terminal while it runs; these helpers are
for the CLI before and after it (playlist listing, precondition errors,
goodbye line).
"""

from typing import Iterable, Tuple

from rich.console import Console
from rich.table import Table

_console: Console | None = None


def get_console() -> Console:
    """Get or create the shared Rich Console."""
    global _console
    if _console is None:
        _console = Console(highlight=False)
    return _console


def configure_console(use_colors: bool) -> Console:
    """Recreate the shared console honouring the ``ui.use_colors`` setting."""
    global _console
    _console = Console(highlight=False, no_color=not use_colors)
    return _console


def safe_print(message: str, style: str | None = None) -> None:
    """Print `message` (Rich markup allowed) with an optional style."""
    get_console().print(message, style=style)


def show_error(message: str) -> None:
    safe_print(f"✗ {message}", style="bold red")


def show_hint(title: str, rows: Iterable[Tuple[str, str]]) -> None:
    """Print a titled, aligned list of (label, command) suggestions."""
    safe_print("")
    safe_print(title, style="yellow")
    for label, command in rows:
        safe_print(f"  {label + ':':<12} [bold]{command}[/bold]")
    safe_print("")


def playlist_table(rows: Iterable[Tuple[str, str, str]]) -> Table:
    """Build the ``--list`` table from (key, name, description) rows."""
    table = Table(title="Available Playlists", title_style="bold green")
    table.add_column("Key", style="yellow", no_wrap=True)
    table.add_column("Name")
    table.add_column("Description", style="dim")
    for key, name, description in rows:
        table.add_row(key, name, description)
    return table
