"""Docker Compose resource limits analyzer."""

from dockaudit.rules.base import (
    RuleMetadata,
    RuleResult,
    Severity,
    StandardFinding,
    StandardRuleContext,
)

METADATA = RuleMetadata(
    name="compose-resource-limits",
    category="compose",
    target="compose",
    title="Limit memory and CPU",
    rationale=(
        "An unbounded container can exhaust host memory and get other services "
        "OOM-killed. Set `deploy.resources.limits` (or mem_limit/cpus)."
    ),
    references=["https://docs.docker.com/reference/compose-file/deploy/#resources"],
    default_severity=Severity.LOW,
)


def find_missing_limits(context: StandardRuleContext) -> RuleResult:
    """Check every service sets memory and CPU limits."""
    compose = context.compose
    if compose is None or not compose.services:
        return RuleResult(applicable=False)

    findings = []
    path = context.display_path

    for service in compose.services:
        limits = _deploy_limits(service.deploy)
        line = service.line_of("deploy") if service.deploy else service.line

        if service.mem_limit is None and not limits.get("memory"):
            findings.append(
                StandardFinding(
                    rule_name="compose-missing-memory-limit",
                    message=f'Service "{service.name}" has no memory limit',
                    file_path=path,
                    line=line,
                    severity=Severity.LOW,
                    category="compose",
                    snippet=context.get_snippet(line),
                    recommendation="Set deploy.resources.limits.memory",
                    cwe_id="CWE-770",
                )
            )

        if service.cpus is None and not limits.get("cpus"):
            findings.append(
                StandardFinding(
                    rule_name="compose-missing-cpu-limit",
                    message=f'Service "{service.name}" has no CPU limit',
                    file_path=path,
                    line=line,
                    severity=Severity.INFO,
                    category="compose",
                    snippet=context.get_snippet(line),
                    recommendation="Set deploy.resources.limits.cpus",
                )
            )

    return RuleResult(findings=findings)


def _deploy_limits(deploy: dict) -> dict:
    resources = deploy.get("resources")
    if not isinstance(resources, dict):
        return {}
    limits = resources.get("limits")
    return limits if isinstance(limits, dict) else {}
