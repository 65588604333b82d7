"""Central UI handler for dockaudit.

Single source of truth for Rich console styling. Import this instead of
instantiating Console() in every command file.

Usage:
    from dockaudit.ui import console, err_console, print_header, print_error

    console.print("[success]All checks passed[/success]")
    print_header("LINT RESULTS")
"""

import sys
from typing import TextIO

from rich.console import Console
from rich.panel import Panel
from rich.text import Text
from rich.theme import Theme

DOCKAUDIT_THEME = Theme({
    "info": "bold cyan",
    "warning": "bold yellow",
    "error": "bold red",
    "success": "bold green",
    "critical": "bold red",
    "high": "bold yellow",
    "medium": "bold blue",
    "low": "cyan",
    "pass": "bold green",
    "warn": "bold yellow",
    "fail": "bold red",
    "skip": "dim white",
    "rule": "bold magenta",
    "path": "bold cyan",
    "dim": "dim white",
})

# Single console instance - import this, don't create your own
console = Console(
    theme=DOCKAUDIT_THEME,
    force_terminal=sys.stdout.isatty(),
)

# Diagnostics go to stderr so report output on stdout stays parseable
err_console = Console(
    theme=DOCKAUDIT_THEME,
    stderr=True,
    force_terminal=sys.stderr.isatty(),
)


def file_console(stream: TextIO) -> Console:
    """Console for writing a plain-text report to a file (no ANSI codes)."""
    return Console(file=stream, theme=DOCKAUDIT_THEME, no_color=True, width=120, force_terminal=False)


def print_header(title: str, target: Console | None = None) -> None:
    """Print a styled section header with horizontal rules."""
    (target or console).rule(f"[bold]{title}[/bold]")


def print_error(msg: str) -> None:
    """Print an error message in red."""
    err_console.print(f"[error]ERROR:[/error] {msg}", highlight=False)


def print_warning(msg: str) -> None:
    """Print a warning message in yellow."""
    err_console.print(f"[warning]WARNING:[/warning] {msg}", highlight=False)


def print_success(msg: str) -> None:
    """Print a success message in green."""
    console.print(f"[success]OK:[/success] {msg}", highlight=False)


def print_status_panel(
    status: str,
    message: str,
    detail: str,
    level: str = "info",
    target: Console | None = None,
) -> None:
    """Print a status panel with colored border.

    Args:
        status: Status label (e.g., "CRITICAL", "CLEAN")
        message: Main message line
        detail: Additional detail line
        level: One of "critical", "high", "medium", "low", "success", "info"
        target: Console to print on (defaults to the shared console)
    """
    style_map = {
        "critical": ("bold red", "red"),
        "high": ("bold yellow", "yellow"),
        "medium": ("bold blue", "blue"),
        "low": ("cyan", "cyan"),
        "success": ("bold green", "green"),
        "info": ("bold cyan", "cyan"),
    }
    text_style, border_style = style_map.get(level, ("white", "white"))

    panel = Panel(
        Text.assemble(
            (f"STATUS: [{status}]\n", text_style),
            (f"{message}\n", border_style),
            (detail, border_style),
        ),
        border_style=border_style,
        expand=False,
    )
    (target or console).print(panel)
