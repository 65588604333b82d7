"""Docker Compose restart policy analyzer."""

from dockaudit.rules.base import (
    RuleMetadata,
    RuleResult,
    Severity,
    StandardFinding,
    StandardRuleContext,
)

METADATA = RuleMetadata(
    name="compose-restart-policy",
    category="compose",
    target="compose",
    title="Set a restart policy",
    rationale=(
        "Without a restart policy a crashed or OOM-killed container stays down "
        "until someone notices. Long-running services usually want "
        "`unless-stopped` or `on-failure`."
    ),
    references=["https://docs.docker.com/reference/compose-file/services/#restart"],
    default_severity=Severity.LOW,
)

VALID_RESTART_POLICIES = frozenset(["no", "always", "on-failure", "unless-stopped"])


def find_missing_restart_policy(context: StandardRuleContext) -> RuleResult:
    """Check every service has a valid restart policy."""
    compose = context.compose
    if compose is None or not compose.services:
        return RuleResult(applicable=False)

    findings = []
    path = context.display_path

    for service in compose.services:
        restart = service.restart
        if restart is None:
            if service.deploy.get("restart_policy"):
                continue
            findings.append(
                StandardFinding(
                    rule_name="compose-missing-restart",
                    message=f'Service "{service.name}" has no restart policy',
                    file_path=path,
                    line=service.line,
                    severity=Severity.LOW,
                    category="compose",
                    snippet=context.get_snippet(service.line),
                    recommendation="Add restart: unless-stopped",
                )
            )
            continue

        # YAML reads a bare `no` as False
        policy = "no" if restart == "False" else restart
        base_policy = policy.split(":", 1)[0]
        if base_policy not in VALID_RESTART_POLICIES or (":" in policy and base_policy != "on-failure"):
            line = service.line_of("restart")
            findings.append(
                StandardFinding(
                    rule_name="compose-invalid-restart",
                    message=f'Service "{service.name}" has invalid restart policy "{restart}"',
                    file_path=path,
                    line=line,
                    severity=Severity.HIGH,
                    category="compose",
                    snippet=context.get_snippet(line),
                    recommendation="Use one of: no, always, on-failure[:max-retries], unless-stopped",
                )
            )

    return RuleResult(findings=findings)
