"""Multi-stage build analyzer.

A multi-stage build keeps compilers, package caches and sources in builder
stages and copies only the artifacts into the final image. This rule passes
for Dockerfiles with two or more FROM instructions whose stage references
resolve, and warns for single-stage builds.
"""

from dockaudit.rules.base import (
    RuleMetadata,
    RuleResult,
    Severity,
    StandardFinding,
    StandardRuleContext,
)
from dockaudit.rules.common.patterns import OFFICIAL_BASE_IMAGES

METADATA = RuleMetadata(
    name="dockerfile-multi-stage",
    category="dockerfile",
    target="dockerfile",
    title="Use a multi-stage build",
    rationale=(
        "Separating build-time tooling from the runtime image shrinks the image, "
        "removes compilers and package managers from production, and lets BuildKit "
        "build independent stages in parallel. COPY --from must reference a stage "
        "defined earlier in the file."
    ),
    references=["https://docs.docker.com/build/building/multi-stage/"],
    default_severity=Severity.LOW,
)


def find_multi_stage_build(context: StandardRuleContext) -> RuleResult:
    """Check the build is split into stages and stage references are valid."""
    dockerfile = context.dockerfile
    if dockerfile is None or not dockerfile.stages:
        return RuleResult(applicable=False)

    findings = []
    path = context.display_path

    if not dockerfile.is_multistage:
        stage = dockerfile.stages[0]
        findings.append(
            StandardFinding(
                rule_name="dockerfile-single-stage",
                message="Single-stage build - build tooling ships in the runtime image",
                file_path=path,
                line=stage.line,
                severity=Severity.LOW,
                category="dockerfile",
                snippet=context.get_snippet(stage.line),
                recommendation=(
                    "Build in a 'builder' stage and COPY --from=builder only the "
                    "artifacts into a slim or distroless final stage"
                ),
            )
        )

    findings.extend(_check_duplicate_stage_names(context))
    findings.extend(_check_copy_from_references(context))

    return RuleResult(findings=findings)


def _check_duplicate_stage_names(context: StandardRuleContext) -> list[StandardFinding]:
    findings = []
    seen: dict[str, int] = {}

    for stage in context.dockerfile.stages:
        if not stage.name:
            continue
        if stage.name in seen:
            findings.append(
                StandardFinding(
                    rule_name="dockerfile-duplicate-stage-name",
                    message=(
                        f"Stage name '{stage.name}' already used on line {seen[stage.name]} "
                        "- the build will fail"
                    ),
                    file_path=context.display_path,
                    line=stage.line,
                    severity=Severity.HIGH,
                    category="dockerfile",
                    snippet=context.get_snippet(stage.line),
                )
            )
        else:
            seen[stage.name] = stage.line

    return findings


def _check_copy_from_references(context: StandardRuleContext) -> list[StandardFinding]:
    """COPY --from / RUN --mount=from must point at an earlier stage or an image."""
    findings = []
    defined: list[str] = []

    for stage in context.dockerfile.stages:
        for inst in stage.instructions:
            for reference in _stage_references(inst):
                problem = _resolve_reference(reference, stage.index, stage.name, defined)
                if problem is None:
                    continue
                findings.append(
                    StandardFinding(
                        rule_name="dockerfile-invalid-stage-reference",
                        message=f"{inst.instruction} references {problem}",
                        file_path=context.display_path,
                        line=inst.line,
                        severity=Severity.HIGH,
                        category="dockerfile",
                        snippet=context.get_snippet(inst.line),
                        recommendation="Reference a stage defined above with 'FROM <image> AS <name>'",
                    )
                )
        if stage.name:
            defined.append(stage.name)

    return findings


def _stage_references(inst) -> list[str]:
    references = []
    if inst.instruction in ("COPY", "ADD"):
        references.extend(value for value in inst.flag_values("from") if value)
    elif inst.instruction == "RUN":
        for mount in inst.flag_values("mount"):
            for option in mount.split(","):
                key, _, value = option.partition("=")
                if key == "from" and value:
                    references.append(value)
    return references


def _resolve_reference(
    reference: str, stage_index: int, stage_name: str | None, defined: list[str]
) -> str | None:
    """Return a description of the problem, or None when the reference is fine."""
    if "$" in reference:
        return None

    if reference.isdigit():
        if int(reference) >= stage_index:
            return f"stage index {reference}, which is not an earlier stage"
        return None

    lowered = reference.lower()
    if lowered in defined:
        return None
    if stage_name and lowered == stage_name:
        return f"its own stage '{reference}'"

    # Anything that looks like an image reference is pulled as an image
    if any(marker in reference for marker in ("/", ":", "@", ".")):
        return None
    if lowered in OFFICIAL_BASE_IMAGES:
        return None

    return f"undefined stage '{reference}' (it would be pulled as an image)"
