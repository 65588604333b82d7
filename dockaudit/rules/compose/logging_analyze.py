"""Docker Compose log rotation analyzer.

The default json-file driver never rotates: a chatty service fills the
host disk. Both json-file and local accept max-size and max-file.
"""

from dockaudit.rules.base import (
    RuleMetadata,
    RuleResult,
    Severity,
    StandardFinding,
    StandardRuleContext,
)

METADATA = RuleMetadata(
    name="compose-logging",
    category="compose",
    target="compose",
    title="Configure log rotation",
    rationale=(
        "Set `logging.options.max-size` and `max-file` so container logs are "
        "rotated, or ship them to a logging driver."
    ),
    references=["https://docs.docker.com/engine/logging/configure/"],
    default_severity=Severity.LOW,
)

ROTATING_DRIVERS = frozenset(["json-file", "local"])


def find_logging_issues(context: StandardRuleContext) -> RuleResult:
    """Check every service rotates its logs."""
    compose = context.compose
    if compose is None or not compose.services:
        return RuleResult(applicable=False)

    findings = []
    path = context.display_path

    for service in compose.services:
        logging_config = service.logging
        if logging_config is None:
            findings.append(
                StandardFinding(
                    rule_name="compose-missing-logging",
                    message=f'Service "{service.name}" uses the default log driver without rotation',
                    file_path=path,
                    line=service.line,
                    severity=Severity.LOW,
                    category="compose",
                    snippet=context.get_snippet(service.line),
                    recommendation='Add logging: {driver: json-file, options: {max-size: "10m", max-file: "3"}}',
                )
            )
            continue

        driver = str(logging_config.get("driver", "json-file"))
        options = logging_config.get("options") or {}
        if driver in ROTATING_DRIVERS and "max-size" not in options:
            line = service.line_of("logging")
            findings.append(
                StandardFinding(
                    rule_name="compose-log-rotation",
                    message=f'Service "{service.name}" uses the {driver} driver without max-size',
                    file_path=path,
                    line=line,
                    severity=Severity.LOW,
                    category="compose",
                    snippet=context.get_snippet(line),
                    recommendation='Set options.max-size (e.g. "10m") and options.max-file',
                )
            )

    return RuleResult(findings=findings)
