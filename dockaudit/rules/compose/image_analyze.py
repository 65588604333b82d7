"""Docker Compose image analyzer."""

from dockaudit.parsers.dockerfile_parser import split_image_reference
from dockaudit.rules.base import (
    RuleMetadata,
    RuleResult,
    Severity,
    StandardFinding,
    StandardRuleContext,
)
from dockaudit.rules.common.patterns import OFFICIAL_BASE_IMAGES
from dockaudit.rules.common.util import eol_image_advice, is_unpinned, official_name, uses_variable

METADATA = RuleMetadata(
    name="compose-image-pinning",
    category="compose",
    target="compose",
    title="Pin service images to a supported version",
    rationale=(
        "`latest` or a missing tag pulls whatever was pushed last, so two hosts "
        "can run different code from the same file. End-of-life images no longer "
        "receive security fixes."
    ),
    references=["https://docs.docker.com/reference/compose-file/services/#image"],
    default_severity=Severity.MEDIUM,
)


def find_image_issues(context: StandardRuleContext) -> RuleResult:
    """Check image references of services that are not built locally."""
    compose = context.compose
    if compose is None:
        return RuleResult(applicable=False)

    # Services with `build:` tag their own image; `image:` is the output name
    services = [s for s in compose.services if s.image and s.build is None]
    if not services:
        return RuleResult(applicable=False)

    findings = []
    for service in services:
        findings.extend(check_image_security(context, service))
    return RuleResult(findings=findings)


def check_image_security(context: StandardRuleContext, service) -> list[StandardFinding]:
    """Check a Docker image reference for pinning, EOL and namespace issues."""
    findings = []
    image = service.image
    line = service.line_of("image")
    path = context.display_path
    snippet = f"image: {image}"

    if uses_variable(image):
        return findings

    if is_unpinned(image):
        findings.append(
            StandardFinding(
                rule_name="compose-unpinned-image",
                message=f'Service "{service.name}" uses unpinned image version',
                file_path=path,
                line=line,
                severity=Severity.MEDIUM,
                category="compose",
                snippet=snippet,
                recommendation="Pin a version tag, ideally with an @sha256 digest",
                cwe_id="CWE-1357",
            )
        )

    eol = eol_image_advice(image)
    if eol:
        reference, advice = eol
        findings.append(
            StandardFinding(
                rule_name="compose-vulnerable-image",
                message=f'Service "{service.name}" uses end-of-life image {reference} ({advice})',
                file_path=path,
                line=line,
                severity=Severity.HIGH,
                category="compose",
                snippet=snippet,
                cwe_id="CWE-1104",
            )
        )

    name, _tag, _digest = split_image_reference(image)
    name = official_name(name)
    if "/" not in name and name not in OFFICIAL_BASE_IMAGES:
        findings.append(
            StandardFinding(
                rule_name="compose-unofficial-image",
                message=f'Service "{service.name}" uses potentially unofficial image without namespace',
                file_path=path,
                line=line,
                severity=Severity.LOW,
                category="compose",
                snippet=snippet,
                cwe_id="CWE-494",
            )
        )

    return findings
