"""dockaudit CLI - Main entry point and command registration hub."""
# ruff: noqa: E402 - Intentional lazy loading: commands imported after cli group definition

import click
from rich.table import Table

from dockaudit import __version__
from dockaudit.ui import console


class VerboseGroup(click.Group):
    """Help system that lists registered commands by category."""

    def format_commands(self, ctx, formatter):
        """Suppress the default command listing (categorized format in format_help)."""
        pass

    COMMAND_CATEGORIES = {
        "LINTING": {
            "title": "LINTING",
            "description": "Check Dockerfiles, Compose files and build contexts",
            "commands": ["lint"],
            "command_meta": {
                "lint": {"use_when": "Before committing or in CI"},
            },
        },
        "RULES": {
            "title": "RULES",
            "description": "Browse the best practices dockaudit enforces",
            "commands": ["rules", "explain"],
            "command_meta": {
                "rules": {"use_when": "Looking up a rule name for --disable"},
                "explain": {"use_when": "A finding needs context"},
            },
        },
    }

    def format_help(self, ctx, formatter):
        """Generate Rich-styled categorized help."""
        super().format_help(ctx, formatter)

        registered = {
            name: cmd
            for name, cmd in self.commands.items()
            if not name.startswith("_") and not getattr(cmd, "hidden", False)
        }

        console.print()
        console.rule("[bold]COMMANDS[/bold]")

        for _category_id, category_data in self.COMMAND_CATEGORIES.items():
            console.print(f"\n[bold cyan]{category_data['title']}[/bold cyan]")
            console.print(f"[dim]{category_data['description']}[/dim]")

            table = Table(show_header=False, box=None, padding=(0, 2, 0, 0))
            table.add_column("Command", style="rule", width=12)
            table.add_column("Description", style="white")
            table.add_column("When", style="dim", width=36)

            for cmd_name in category_data["commands"]:
                if cmd_name not in registered:
                    continue
                cmd = registered[cmd_name]

                first_line = (cmd.help or "").split("\n")[0].strip()
                period_idx = first_line.find(".")
                short_help = first_line[:period_idx] if period_idx > 0 else first_line
                if len(short_help) > 60:
                    short_help = short_help[:60].rsplit(" ", 1)[0] + "..."

                cmd_meta = category_data.get("command_meta", {}).get(cmd_name, {})
                hint = cmd_meta.get("use_when", "")

                table.add_row(cmd_name, short_help, hint)

            console.print(table)

        console.print()
        console.rule()
        console.print("For detailed options: [rule]dockaudit <command> --help[/rule]")


@click.group(cls=VerboseGroup)
@click.version_option(version=__version__, prog_name="dockaudit")
@click.help_option("-h", "--help")
def cli():
    """dockaudit - Dockerfile and Docker Compose best-practices linter

    \b
    QUICK START:
      dockaudit lint                 # Lint the current directory
      dockaudit rules                # List rules
      dockaudit explain <rule>       # Why a rule exists

    \b
    For detailed options: dockaudit <command> --help"""
    pass


from dockaudit.commands.explain import explain
from dockaudit.commands.lint import lint
from dockaudit.commands.rules import rules_command

cli.add_command(lint)
cli.add_command(rules_command)
cli.add_command(explain)


def main():
    """Main entry point for console script."""
    cli()


if __name__ == "__main__":
    main()
