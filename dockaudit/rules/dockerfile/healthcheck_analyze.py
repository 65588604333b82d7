"""HEALTHCHECK analyzer.

Orchestrators (Compose, Swarm, ECS) only know a container is actually
serving when the image declares a HEALTHCHECK. Only the final stage, and the
stages it is built FROM, contribute to the runtime image.
"""

from dockaudit.rules.base import (
    RuleMetadata,
    RuleResult,
    Severity,
    StandardFinding,
    StandardRuleContext,
)

METADATA = RuleMetadata(
    name="dockerfile-healthcheck",
    category="dockerfile",
    target="dockerfile",
    title="Define a HEALTHCHECK in the runtime image",
    rationale=(
        "Without HEALTHCHECK the container is reported healthy as soon as its process "
        "starts, so restarts, rolling updates and depends_on conditions cannot react "
        "to a hung or still-starting service."
    ),
    references=["https://docs.docker.com/reference/dockerfile/#healthcheck"],
    default_severity=Severity.MEDIUM,
)


def find_missing_healthcheck(context: StandardRuleContext) -> RuleResult:
    """Detect runtime images without an effective HEALTHCHECK instruction."""
    dockerfile = context.dockerfile
    if dockerfile is None or dockerfile.final_stage is None:
        return RuleResult(applicable=False)

    findings = []
    final_stage = dockerfile.final_stage
    path = context.display_path

    healthchecks = []
    for stage in dockerfile.lineage(final_stage):
        healthchecks = stage.find("HEALTHCHECK")
        if healthchecks:
            break

    if not healthchecks:
        findings.append(
            StandardFinding(
                rule_name="dockerfile-missing-healthcheck",
                message="Container missing HEALTHCHECK instruction - orchestrator cannot monitor health",
                file_path=path,
                line=final_stage.line,
                severity=Severity.MEDIUM,
                category="dockerfile",
                snippet="# No HEALTHCHECK instruction found",
                recommendation='Add e.g. HEALTHCHECK --interval=30s CMD ["/app/healthcheck"]',
                cwe_id="CWE-1272",
            )
        )
        return RuleResult(findings=findings)

    effective = healthchecks[-1]

    if len(healthchecks) > 1:
        for extra in healthchecks[:-1]:
            findings.append(
                StandardFinding(
                    rule_name="dockerfile-multiple-healthcheck",
                    message=(
                        f"HEALTHCHECK is overridden on line {effective.line} - only the last "
                        "one takes effect"
                    ),
                    file_path=path,
                    line=extra.line,
                    severity=Severity.LOW,
                    category="dockerfile",
                    snippet=context.get_snippet(extra.line),
                )
            )

    if effective.arguments.strip().upper() == "NONE":
        findings.append(
            StandardFinding(
                rule_name="dockerfile-healthcheck-disabled",
                message="HEALTHCHECK NONE disables the health check inherited from the base image",
                file_path=path,
                line=effective.line,
                severity=Severity.LOW,
                category="dockerfile",
                snippet=context.get_snippet(effective.line),
                recommendation="Define a HEALTHCHECK CMD that probes the service",
            )
        )

    return RuleResult(findings=findings)
