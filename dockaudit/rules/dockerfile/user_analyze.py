"""Non-root USER analyzer.

A container breakout from a process running as root lands as root on the
host (unless user namespaces are enabled). The effective user is the last
USER of the final stage, or of the stages it builds FROM.
"""

from dockaudit.parsers.dockerfile_parser import split_image_reference
from dockaudit.rules.base import (
    RuleMetadata,
    RuleResult,
    Severity,
    StandardFinding,
    StandardRuleContext,
)

METADATA = RuleMetadata(
    name="dockerfile-user",
    category="dockerfile",
    target="dockerfile",
    title="Run the container as a non-root user",
    rationale=(
        "Switching to an unprivileged USER in the final stage limits the damage of a "
        "compromised process. USER in a builder stage does not carry over."
    ),
    references=["https://docs.docker.com/build/building/best-practices/#user"],
    default_severity=Severity.MEDIUM,
)

ROOT_USERS = frozenset(["root", "0"])


def find_root_user(context: StandardRuleContext) -> RuleResult:
    """Detect runtime images that run as root."""
    dockerfile = context.dockerfile
    if dockerfile is None or dockerfile.final_stage is None:
        return RuleResult(applicable=False)

    final_stage = dockerfile.final_stage
    lineage = dockerfile.lineage(final_stage)

    user_inst = None
    for stage in lineage:
        user_inst = stage.last("USER")
        if user_inst is not None:
            break

    findings = []
    path = context.display_path

    if user_inst is None:
        base = lineage[-1].base_image
        if _base_runs_as_non_root(base):
            return RuleResult(findings=findings)
        if base.lower() == "scratch":
            # Nothing to become root with, but the process still gets uid 0
            severity = Severity.LOW
        else:
            severity = Severity.MEDIUM
        findings.append(
            StandardFinding(
                rule_name="dockerfile-no-user",
                message="No USER instruction - container may run as root depending on base image",
                file_path=path,
                line=final_stage.line,
                severity=severity,
                category="dockerfile",
                snippet="# USER instruction not found",
                recommendation="Create an unprivileged user and add 'USER <name>' before CMD/ENTRYPOINT",
                cwe_id="CWE-250",
            )
        )
        return RuleResult(findings=findings)

    user = user_inst.arguments.strip()
    user_name = user.split(":", 1)[0].strip().lower()
    if user_name in ROOT_USERS:
        findings.append(
            StandardFinding(
                rule_name="dockerfile-root-user",
                message="Container explicitly runs as root user",
                file_path=path,
                line=user_inst.line,
                severity=Severity.HIGH,
                category="dockerfile",
                snippet=f"USER {user}",
                recommendation="Switch back to an unprivileged USER after root-only steps",
                cwe_id="CWE-250",
            )
        )

    return RuleResult(findings=findings)


def _base_runs_as_non_root(image: str) -> bool:
    """Distroless and chainguard ':nonroot' variants default to uid 65532."""
    _name, tag, _digest = split_image_reference(image)
    return bool(tag) and "nonroot" in tag.lower()
