"""Docker Compose healthcheck analyzer.

`depends_on` only waits for a dependency's container to start unless it
uses `condition: service_healthy`, and that condition requires the
dependency to define a healthcheck.
"""

from dockaudit.rules.base import (
    RuleMetadata,
    RuleResult,
    Severity,
    StandardFinding,
    StandardRuleContext,
)

METADATA = RuleMetadata(
    name="compose-healthcheck",
    category="compose",
    target="compose",
    title="Define healthchecks and wait on them",
    rationale=(
        "A healthcheck lets Docker report whether the service actually works, "
        "and lets dependants start only once it is ready via "
        "`depends_on: {db: {condition: service_healthy}}`."
    ),
    references=[
        "https://docs.docker.com/reference/compose-file/services/#healthcheck",
        "https://docs.docker.com/compose/how-tos/startup-order/",
    ],
    default_severity=Severity.LOW,
)


def find_healthcheck_issues(context: StandardRuleContext) -> RuleResult:
    """Check service healthchecks and depends_on conditions."""
    compose = context.compose
    if compose is None or not compose.services:
        return RuleResult(applicable=False)

    findings = []
    path = context.display_path

    for service in compose.services:
        healthcheck = service.healthcheck
        if healthcheck is None:
            findings.append(
                StandardFinding(
                    rule_name="compose-missing-healthcheck",
                    message=f'Service "{service.name}" has no healthcheck',
                    file_path=path,
                    line=service.line,
                    severity=Severity.LOW,
                    category="compose",
                    snippet=context.get_snippet(service.line),
                    recommendation="Add a healthcheck, or make sure the image defines HEALTHCHECK",
                )
            )
        elif healthcheck["disabled"]:
            line = service.line_of("healthcheck")
            findings.append(
                StandardFinding(
                    rule_name="compose-healthcheck-disabled",
                    message=f'Service "{service.name}" disables its healthcheck',
                    file_path=path,
                    line=line,
                    severity=Severity.LOW,
                    category="compose",
                    snippet=context.get_snippet(line),
                )
            )

        for dependency, condition in service.depends_on.items():
            line = service.line_of("depends_on")
            target = compose.service(dependency)
            if condition == "service_healthy":
                if target is not None and (target.healthcheck is None or target.healthcheck["disabled"]):
                    findings.append(
                        StandardFinding(
                            rule_name="compose-healthy-condition-without-healthcheck",
                            message=(
                                f'Service "{service.name}" waits for "{dependency}" to be healthy, '
                                f'but "{dependency}" defines no healthcheck'
                            ),
                            file_path=path,
                            line=line,
                            severity=Severity.HIGH,
                            category="compose",
                            snippet=context.get_snippet(line),
                            recommendation=f'Add a healthcheck to "{dependency}"',
                        )
                    )
            elif condition == "service_started" and target is not None:
                findings.append(
                    StandardFinding(
                        rule_name="compose-depends-on-not-healthy",
                        message=(
                            f'Service "{service.name}" starts as soon as "{dependency}" starts, '
                            "not when it is ready"
                        ),
                        file_path=path,
                        line=line,
                        severity=Severity.LOW,
                        category="compose",
                        snippet=context.get_snippet(line),
                        recommendation=f"Use depends_on: {{{dependency}: {{condition: service_healthy}}}}",
                    )
                )

    return RuleResult(findings=findings)
