"""Centralized exit codes for the dockaudit CLI."""


class ExitCodes:
    """Standard exit codes for dockaudit CLI commands."""

    SUCCESS = 0

    HIGH_SEVERITY = 1
    CRITICAL_SEVERITY = 2

    TASK_INCOMPLETE = 3

    @classmethod
    def get_description(cls, code: int) -> str:
        """Get human-readable description for an exit code."""
        descriptions = {
            cls.SUCCESS: "Success - No blocking issues found",
            cls.HIGH_SEVERITY: "Findings at or above the --fail-on threshold detected",
            cls.CRITICAL_SEVERITY: "Critical findings detected",
            cls.TASK_INCOMPLETE: "Nothing to lint - no Dockerfile or Compose file found",
        }
        return descriptions.get(code, f"Unknown exit code: {code}")
