"""CMD/ENTRYPOINT form analyzer.

In shell form the command runs under `/bin/sh -c`, which becomes PID 1 and
does not forward SIGTERM. `docker stop` then waits for the timeout and
kills the process.
"""

from dockaudit.rules.base import (
    RuleMetadata,
    RuleResult,
    Severity,
    StandardFinding,
    StandardRuleContext,
)

METADATA = RuleMetadata(
    name="dockerfile-exec-form",
    category="dockerfile",
    target="dockerfile",
    title="Use exec form for CMD and ENTRYPOINT",
    rationale=(
        "The JSON array form runs the process directly as PID 1 so it receives "
        "signals and can shut down gracefully. Only the last CMD in a stage takes "
        "effect."
    ),
    references=[
        "https://docs.docker.com/reference/dockerfile/#shell-and-exec-form",
        "https://docs.docker.com/reference/dockerfile/#entrypoint",
    ],
    default_severity=Severity.LOW,
)


def find_shell_form_commands(context: StandardRuleContext) -> RuleResult:
    """Check the final image's CMD and ENTRYPOINT."""
    dockerfile = context.dockerfile
    if dockerfile is None or dockerfile.final_stage is None:
        return RuleResult(applicable=False)

    final_stage = dockerfile.final_stage
    commands = final_stage.find("CMD") + final_stage.find("ENTRYPOINT")
    if not commands:
        return RuleResult(applicable=False)

    findings = []
    path = context.display_path

    for keyword in ("ENTRYPOINT", "CMD"):
        inst = final_stage.last(keyword)
        if inst is None or inst.is_exec_form:
            continue
        findings.append(
            StandardFinding(
                rule_name="dockerfile-shell-form",
                message=f"{keyword} uses shell form - the process will not receive SIGTERM",
                file_path=path,
                line=inst.line,
                severity=Severity.MEDIUM if keyword == "ENTRYPOINT" else Severity.LOW,
                category="dockerfile",
                snippet=context.get_snippet(inst.line),
                recommendation=f'Use {keyword} ["executable", "arg1", ...]',
            )
        )

    for keyword in ("CMD", "ENTRYPOINT"):
        matches = final_stage.find(keyword)
        if len(matches) > 1:
            for inst in matches[:-1]:
                findings.append(
                    StandardFinding(
                        rule_name="dockerfile-multiple-cmd",
                        message=f"Only the last {keyword} takes effect; this one is ignored",
                        file_path=path,
                        line=inst.line,
                        severity=Severity.LOW,
                        category="dockerfile",
                        snippet=context.get_snippet(inst.line),
                    )
                )

    return RuleResult(findings=findings)
