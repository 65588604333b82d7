"""Custom exceptions for dockaudit.

Parse failures are reported as data on the parsed object, not raised.
These exceptions cover failure modes that must stop a command.
"""

import click

from dockaudit.utils.exit_codes import ExitCodes


class DockauditError(Exception):
    """Base class for dockaudit errors."""


class ConfigError(DockauditError, click.ClickException):
    """Raised for invalid user input such as an unknown rule name.

    Being a ClickException, click prints the message and exits with TASK_INCOMPLETE.
    """

    exit_code = ExitCodes.TASK_INCOMPLETE

    def __init__(self, message: str, details: dict | None = None):
        click.ClickException.__init__(self, message)
        self.details = details or {}


class RuleDiscoveryError(DockauditError):
    """Raised when a rule module is malformed (missing METADATA, duplicate names)."""

    def __init__(self, message: str, module: str | None = None):
        super().__init__(message)
        self.module = module
