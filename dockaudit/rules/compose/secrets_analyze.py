"""Docker Compose secrets analyzer.

Compose files are committed to version control; credentials written into
`environment:` are visible to anyone with repository access and to
`docker inspect`. Use `${VAR}` interpolation from an untracked .env file, or
Compose `secrets:`.
"""

from dockaudit.rules.base import (
    Confidence,
    RuleMetadata,
    RuleResult,
    Severity,
    StandardFinding,
    StandardRuleContext,
)
from dockaudit.rules.common.util import (
    contains_private_key,
    is_high_entropy,
    is_sensitive_key,
    is_variable_reference,
    is_weak_password,
    matches_secret_pattern,
)

METADATA = RuleMetadata(
    name="compose-secrets",
    category="compose",
    target="compose",
    title="Keep credentials out of Compose files",
    rationale=(
        "Hardcoded passwords and tokens in `environment:` end up in version "
        "control and in container metadata. Reference them with ${VAR} or mount "
        "them with Compose secrets."
    ),
    references=["https://docs.docker.com/compose/how-tos/use-secrets/"],
    default_severity=Severity.HIGH,
)


def find_compose_secrets(context: StandardRuleContext) -> RuleResult:
    """Detect hardcoded credentials in service environments."""
    compose = context.compose
    if compose is None or not compose.services:
        return RuleResult(applicable=False)

    findings = []
    for service in compose.services:
        line = service.line_of("environment")
        for key, value in service.environment.items():
            finding = _check_variable(service.name, key, value)
            if finding is None:
                continue
            rule_name, message, severity, cwe_id, confidence = finding
            findings.append(
                StandardFinding(
                    rule_name=rule_name,
                    message=message,
                    file_path=context.display_path,
                    line=_env_line(context, line, key),
                    severity=severity,
                    category="compose",
                    confidence=confidence,
                    snippet=f"{key}=***",
                    recommendation=f"Use {key}: ${{{key}}} or a Compose secret",
                    cwe_id=cwe_id,
                )
            )
    return RuleResult(findings=findings)


def _check_variable(service_name: str, key: str, value: str | None):
    if not value or is_variable_reference(value) or value.startswith("/run/secrets/"):
        return None

    if is_sensitive_key(key):
        if is_weak_password(value):
            return (
                "compose-weak-password",
                f'Service "{service_name}" uses weak password in {key}',
                Severity.CRITICAL,
                "CWE-521",
                Confidence.HIGH,
            )
        return (
            "compose-hardcoded-secret",
            f'Service "{service_name}" has hardcoded secret: {key}',
            Severity.HIGH,
            "CWE-798",
            Confidence.HIGH,
        )

    if matches_secret_pattern(value):
        return (
            "compose-secret-pattern",
            f'Service "{service_name}" has a known token format in {key}',
            Severity.CRITICAL,
            "CWE-798",
            Confidence.HIGH,
        )
    if contains_private_key(value):
        return (
            "compose-private-key",
            f'Service "{service_name}" embeds a private key in {key}',
            Severity.CRITICAL,
            "CWE-321",
            Confidence.HIGH,
        )
    if is_high_entropy(value):
        return (
            "compose-high-entropy",
            f'Service "{service_name}" has a high entropy value in {key} - possible secret',
            Severity.MEDIUM,
            "CWE-798",
            Confidence.LOW,
        )
    return None


def _env_line(context: StandardRuleContext, start: int, key: str) -> int:
    """Line of KEY inside the environment block, or the block header."""
    lines = context.get_lines()
    for index in range(start, min(len(lines), start + 200)):
        stripped = lines[index].strip().lstrip("-").strip().strip("\"'")
        if stripped.startswith((f"{key}=", f"{key}:")):
            return index + 1
    return start
