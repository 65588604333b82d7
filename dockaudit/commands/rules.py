"""List registered best-practice rules."""

import json

import click
from rich.table import Table

from dockaudit.rules.orchestrator import RuleRegistry
from dockaudit.ui import console
from dockaudit.utils.error_handler import handle_exceptions


@click.command("rules")
@handle_exceptions
@click.option("--category", help="Only list rules of this category (dockerfile, compose, context)")
@click.option("--json", "as_json", is_flag=True, help="Print the rule list as JSON")
def rules_command(category, as_json):
    """List every rule dockaudit evaluates, with its category and target.

    \b
    EXAMPLES:
      dockaudit rules
      dockaudit rules --category compose
      dockaudit rules --json | jq '.[].name'
    """
    registry = RuleRegistry()
    rules = registry.all_rules()
    if category:
        rules = [rule for rule in rules if rule.category == category]

    if as_json:
        payload = [
            {
                "name": rule.name,
                "category": rule.category,
                "target": rule.target,
                "title": rule.metadata.title,
                "default_severity": rule.metadata.default_severity.value,
            }
            for rule in rules
        ]
        click.echo(json.dumps(payload, indent=2))
        return

    if not rules:
        console.print(f"No rules in category '{category}'", highlight=False)
        return

    table = Table(title=f"{len(rules)} rules")
    table.add_column("Rule", style="rule", no_wrap=True)
    table.add_column("Category", style="dim")
    table.add_column("Target")
    table.add_column("Title")
    for rule in rules:
        table.add_row(rule.name, rule.category, rule.target, rule.metadata.title)

    console.print(table)
    console.print("\nUse 'dockaudit explain <rule>' for the rationale behind a rule.")
