"""Explain why a rule exists and how to satisfy it."""

import click
from rich.markup import escape
from rich.panel import Panel
from rich.text import Text

from dockaudit.rules.orchestrator import RuleRegistry
from dockaudit.ui import console
from dockaudit.utils.error_handler import handle_exceptions


@click.command("explain")
@handle_exceptions
@click.argument("rule")
def explain(rule):
    """Show the title, rationale and references of RULE.

    \b
    EXAMPLES:
      dockaudit explain dockerfile-multi-stage
      dockaudit explain compose-healthcheck
    """
    registry = RuleRegistry()
    registry.validate_names([rule])
    info = registry.get(rule)
    metadata = info.metadata

    console.print()
    title_text = Text(metadata.title.upper(), style="bold cyan")
    console.print(Panel(title_text, border_style="cyan", padding=(0, 2)))

    console.print(f"\n[bold yellow]Rule:[/bold yellow] {info.name}", highlight=False)
    console.print(f"[bold yellow]Category:[/bold yellow] {info.category}   "
                  f"[bold yellow]Applies to:[/bold yellow] {info.target}", highlight=False)
    console.print(
        f"[bold yellow]Default severity:[/bold yellow] {metadata.default_severity.value}",
        highlight=False,
    )

    if metadata.rationale:
        console.print("\n[bold cyan]Why:[/bold cyan]")
        console.print(f"  {escape(metadata.rationale)}", highlight=False)

    if info.function.__doc__:
        console.print("\n[bold cyan]Checks:[/bold cyan]")
        console.print(f"  {info.function.__doc__.strip().splitlines()[0]}", highlight=False)

    if metadata.references:
        console.print("\n[bold cyan]References:[/bold cyan]")
        for reference in metadata.references:
            console.print(f"  [dim]-[/dim] {reference}", highlight=False)

    console.print(
        f"\nSuppress with: [green]# dockaudit: ignore={info.name}[/green]", highlight=False
    )
    console.print()
