"""Base image analyzer.

Detects FROM images that make builds non-reproducible or unsupported:
- Unpinned versions (no tag, or :latest) (CWE-494)
- End-of-life images that no longer receive security fixes (CWE-1104)
- Images without a registry namespace that are not official library images
  (typosquatting risk)
"""

from dockaudit.parsers.dockerfile_parser import split_image_reference
from dockaudit.rules.base import (
    RuleMetadata,
    RuleResult,
    Severity,
    StandardFinding,
    StandardRuleContext,
)
from dockaudit.rules.common.patterns import OFFICIAL_BASE_IMAGES
from dockaudit.rules.common.util import eol_image_advice, is_unpinned, resolve_build_args

METADATA = RuleMetadata(
    name="dockerfile-base-image",
    category="dockerfile",
    target="dockerfile",
    title="Pin supported base images",
    rationale=(
        "A moving tag such as 'latest' changes underneath the build, so two builds of "
        "the same commit can differ. End-of-life images stop receiving security fixes. "
        "Pin a specific version (ideally with a digest) of a maintained image."
    ),
    references=["https://docs.docker.com/build/building/best-practices/#from"],
    default_severity=Severity.MEDIUM,
)


def find_base_image_issues(context: StandardRuleContext) -> RuleResult:
    """Check every external FROM image for pinning, support and provenance."""
    dockerfile = context.dockerfile
    if dockerfile is None or not dockerfile.stages:
        return RuleResult(applicable=False)

    findings = []
    checked = 0

    for stage in dockerfile.stages:
        if stage.parent_stage:
            continue

        image = stage.base_image
        if "$" in image:
            image = resolve_build_args(image, dockerfile.global_args)
            if image is None:
                continue

        if image.lower() == "scratch":
            continue

        checked += 1
        findings.extend(_check_image(context, stage.line, image, stage.base_image))

    if not checked:
        return RuleResult(applicable=False)

    return RuleResult(findings=findings)


def _check_image(
    context: StandardRuleContext, line: int, image: str, written_as: str
) -> list[StandardFinding]:
    findings = []
    path = context.display_path
    shown = image if image == written_as else f"{written_as} (= {image})"

    if is_unpinned(image):
        findings.append(
            StandardFinding(
                rule_name="dockerfile-unpinned-image",
                message=f"Base image {shown} uses unpinned version (non-reproducible builds)",
                file_path=path,
                line=line,
                severity=Severity.MEDIUM,
                category="dockerfile",
                snippet=context.get_snippet(line),
                recommendation="Pin an explicit version tag, e.g. python:3.12-slim, or a @sha256 digest",
                cwe_id="CWE-494",
            )
        )

    eol = eol_image_advice(image)
    if eol:
        reference, advice = eol
        findings.append(
            StandardFinding(
                rule_name="dockerfile-eol-image",
                message=f"Base image {reference} is deprecated/EOL ({advice})",
                file_path=path,
                line=line,
                severity=Severity.HIGH,
                category="dockerfile",
                snippet=context.get_snippet(line),
                recommendation=advice,
                cwe_id="CWE-1104",
            )
        )

    image_name, _tag, _digest = split_image_reference(image)
    if "/" not in image_name and image_name.lower() not in OFFICIAL_BASE_IMAGES:
        findings.append(
            StandardFinding(
                rule_name="dockerfile-unofficial-image",
                message=f"Image {image_name} lacks registry namespace and is not a known official image (typosquatting risk)",
                file_path=path,
                line=line,
                severity=Severity.LOW,
                category="dockerfile",
                snippet=context.get_snippet(line),
                recommendation="Double-check the image name, or use a fully qualified reference",
                cwe_id="CWE-494",
            )
        )

    return findings
