"""Minimal runtime image analyzer.

Recommends slim, alpine or distroless bases for the final stage. A
distroless image ships no package manager and no shell, which removes most
of the attack surface an exploited process could use.
"""

from dockaudit.parsers.dockerfile_parser import split_image_reference
from dockaudit.rules.base import (
    RuleMetadata,
    RuleResult,
    Severity,
    StandardFinding,
    StandardRuleContext,
)
from dockaudit.rules.common.patterns import HEAVY_BUILD_IMAGES
from dockaudit.rules.common.util import is_minimal_image, official_name, resolve_build_args

METADATA = RuleMetadata(
    name="dockerfile-minimal-runtime",
    category="dockerfile",
    target="dockerfile",
    title="Use a minimal runtime image",
    rationale=(
        "Full distribution images carry shells, package managers and hundreds of "
        "packages the application never uses; each one is CVE surface and download "
        "weight. Prefer -slim, alpine or distroless bases for the final stage."
    ),
    references=["https://github.com/GoogleContainerTools/distroless"],
    default_severity=Severity.LOW,
)

# SDK images only belong in builder stages
BUILD_TOOLCHAIN_IMAGES = frozenset(["golang", "rust", "gcc", "maven", "gradle", "dotnet/sdk", "buildpack-deps"])


def find_heavy_runtime_image(context: StandardRuleContext) -> RuleResult:
    """Check the image the final stage runs on."""
    dockerfile = context.dockerfile
    if dockerfile is None or dockerfile.final_stage is None:
        return RuleResult(applicable=False)

    image = dockerfile.runtime_base_image()
    if image and "$" in image:
        image = resolve_build_args(image, dockerfile.global_args)
    if not image or image.lower() == "scratch" or is_minimal_image(image):
        return RuleResult()

    final_stage = dockerfile.final_stage
    name, _tag, _digest = split_image_reference(image)
    name = official_name(name)
    findings = []

    if name in BUILD_TOOLCHAIN_IMAGES or name.endswith("/sdk"):
        findings.append(
            StandardFinding(
                rule_name="dockerfile-build-tools-in-runtime",
                message=f"Final stage runs on build toolchain image {image}",
                file_path=context.display_path,
                line=final_stage.line,
                severity=Severity.MEDIUM,
                category="dockerfile",
                snippet=context.get_snippet(final_stage.line),
                recommendation=(
                    "Compile in a builder stage and copy the binary into a distroless "
                    "or scratch final stage"
                ),
            )
        )
    elif name in HEAVY_BUILD_IMAGES:
        findings.append(
            StandardFinding(
                rule_name="dockerfile-heavy-runtime-image",
                message=f"Final stage uses full distribution image {image}",
                file_path=context.display_path,
                line=final_stage.line,
                severity=Severity.LOW,
                category="dockerfile",
                snippet=context.get_snippet(final_stage.line),
                recommendation="Use a -slim, alpine or distroless variant for the runtime stage",
            )
        )

    return RuleResult(findings=findings)
