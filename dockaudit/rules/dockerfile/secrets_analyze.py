"""Dockerfile secrets analyzer.

ENV values are baked into the image config and ARG values into the build
history; both are readable by anyone who can pull the image. Detects:
- Hardcoded secrets in ENV/ARG (CWE-798)
- Weak passwords (CWE-521)
- Private keys in environment variables (CWE-321)
- Known token formats (GitHub PAT, AWS keys, JWT, Stripe, ...)
- Key and credential files copied into the image (CWE-538)
"""

import fnmatch
import shlex

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
    copies_from_context,
    copy_sources,
    is_high_entropy,
    is_sensitive_key,
    is_variable_reference,
    is_weak_password,
    matches_secret_pattern,
)

METADATA = RuleMetadata(
    name="dockerfile-secrets",
    category="dockerfile",
    target="dockerfile",
    title="Keep secrets out of the image",
    rationale=(
        "Anything set with ENV or ARG, or copied into a layer, stays in the image "
        "history even if a later layer deletes it. Pass build secrets with "
        "RUN --mount=type=secret and runtime secrets through the orchestrator."
    ),
    references=["https://docs.docker.com/build/building/secrets/"],
    default_severity=Severity.HIGH,
)

SECRET_FILE_PATTERNS = (
    "id_rsa",
    "id_dsa",
    "id_ecdsa",
    "id_ed25519",
    "*.pem",
    "*.key",
    "*.p12",
    "*.pfx",
    ".env",
    ".env.*",
    ".npmrc",
    ".pypirc",
    ".netrc",
    "credentials.json",
    ".aws/credentials",
    ".docker/config.json",
)

# Templates committed on purpose
SAFE_FILE_SUFFIXES = (".example", ".sample", ".template", ".dist")


def find_dockerfile_secrets(context: StandardRuleContext) -> RuleResult:
    """Detect secrets hardcoded in ENV/ARG or copied into layers."""
    dockerfile = context.dockerfile
    if dockerfile is None or not dockerfile.instructions:
        return RuleResult(applicable=False)

    findings = []

    for inst in dockerfile.instructions:
        if inst.instruction == "ENV":
            for key, value in parse_env_pairs(inst.arguments):
                findings.extend(_check_env_value(context, inst.line, key, value))
        elif inst.instruction == "ARG":
            findings.extend(_check_arg(context, inst))
        elif inst.instruction in ("COPY", "ADD"):
            findings.extend(_check_copied_files(context, inst))

    return RuleResult(findings=findings)


def parse_env_pairs(arguments: str) -> list[tuple[str, str]]:
    """Parse 'KEY=value KEY2="v w"' and the legacy 'KEY value' ENV forms."""
    try:
        tokens = shlex.split(arguments)
    except ValueError:
        tokens = arguments.split()

    if not tokens:
        return []

    if "=" not in tokens[0]:
        key, _, value = arguments.partition(" ")
        return [(key.strip(), value.strip().strip("\"'"))]

    pairs = []
    for token in tokens:
        if "=" in token:
            key, value = token.split("=", 1)
            pairs.append((key.strip(), value))
    return pairs


def _check_env_value(
    context: StandardRuleContext, line: int, key: str, value: str
) -> list[StandardFinding]:
    findings = []
    path = context.display_path

    if not value or is_variable_reference(value):
        return findings

    if is_sensitive_key(key):
        if is_weak_password(value):
            findings.append(
                StandardFinding(
                    rule_name="dockerfile-weak-password",
                    message=f"Weak password in ENV {key}",
                    file_path=path,
                    line=line,
                    severity=Severity.CRITICAL,
                    category="dockerfile",
                    snippet=f"ENV {key}=***",
                    recommendation="Remove the value and inject a strong secret at runtime",
                    cwe_id="CWE-521",
                )
            )
        else:
            findings.append(
                StandardFinding(
                    rule_name="dockerfile-hardcoded-secret",
                    message=f"Hardcoded secret in ENV instruction: {key}",
                    file_path=path,
                    line=line,
                    severity=Severity.HIGH,
                    category="dockerfile",
                    snippet=f"ENV {key}=***",
                    recommendation="Inject the value at runtime (compose secrets, env_file outside the image)",
                    cwe_id="CWE-798",
                )
            )
        return findings

    if matches_secret_pattern(value):
        findings.append(
            StandardFinding(
                rule_name="dockerfile-secret-pattern",
                message=f"Detected secret pattern in ENV {key}",
                file_path=path,
                line=line,
                severity=Severity.CRITICAL,
                category="dockerfile",
                snippet=f"ENV {key}=[REDACTED]",
                recommendation="Revoke the token and pass it at runtime instead",
                cwe_id="CWE-798",
            )
        )
    elif contains_private_key(value):
        findings.append(
            StandardFinding(
                rule_name="dockerfile-private-key",
                message=f"Private key embedded in ENV {key}",
                file_path=path,
                line=line,
                severity=Severity.CRITICAL,
                category="dockerfile",
                snippet=f"ENV {key}=[PRIVATE KEY REDACTED]",
                cwe_id="CWE-321",
            )
        )
    elif is_high_entropy(value):
        findings.append(
            StandardFinding(
                rule_name="dockerfile-high-entropy",
                message=f"High entropy value in ENV {key} - possible secret",
                file_path=path,
                line=line,
                severity=Severity.MEDIUM,
                category="dockerfile",
                confidence=Confidence.LOW,
                snippet=f"ENV {key}=[REDACTED]",
                cwe_id="CWE-798",
            )
        )

    return findings


def _check_arg(context: StandardRuleContext, inst) -> list[StandardFinding]:
    """ARG values are visible in `docker history` of the image."""
    name, sep, default = inst.arguments.partition("=")
    name = name.strip()
    if not is_sensitive_key(name):
        return []

    default = default.strip().strip("\"'")
    if sep and default and not is_variable_reference(default):
        severity = Severity.HIGH
        message = f"Secret default value in ARG instruction: {name}"
    else:
        severity = Severity.MEDIUM
        message = f"Potential secret passed as build argument: {name}"

    return [
        StandardFinding(
            rule_name="dockerfile-arg-secret",
            message=message,
            file_path=context.display_path,
            line=inst.line,
            severity=severity,
            category="dockerfile",
            snippet=f"ARG {name}=***" if sep else f"ARG {name}",
            recommendation="Use RUN --mount=type=secret,id=... and `docker build --secret`",
            cwe_id="CWE-798",
        )
    ]


def _check_copied_files(context: StandardRuleContext, inst) -> list[StandardFinding]:
    findings = []
    if not copies_from_context(inst):
        return findings

    for source in copy_sources(inst):
        basename = source.rstrip("/").rsplit("/", 1)[-1]
        if basename.endswith(SAFE_FILE_SUFFIXES):
            continue
        for pattern in SECRET_FILE_PATTERNS:
            if fnmatch.fnmatch(basename, pattern) or source.endswith(pattern):
                findings.append(
                    StandardFinding(
                        rule_name="dockerfile-secret-file-copied",
                        message=f"{inst.instruction} copies credential file '{source}' into the image",
                        file_path=context.display_path,
                        line=inst.line,
                        severity=Severity.HIGH,
                        category="dockerfile",
                        snippet=context.get_snippet(inst.line),
                        recommendation="Mount it during the build with RUN --mount=type=secret instead",
                        cwe_id="CWE-538",
                    )
                )
                break

    return findings
