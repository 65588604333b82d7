"""BuildKit usage analyzer.

BuildKit runs independent stages in parallel and adds cache and secret
mounts. Heredocs and RUN --mount need the Dockerfile frontend declared with
a `# syntax=` directive on older engines.
"""

import re

from dockaudit.rules.base import (
    RuleMetadata,
    RuleResult,
    Severity,
    StandardFinding,
    StandardRuleContext,
)

METADATA = RuleMetadata(
    name="dockerfile-buildkit",
    category="dockerfile",
    target="dockerfile",
    title="Use BuildKit features deliberately",
    rationale=(
        "BuildKit is Docker's pluggable build engine. Pin the Dockerfile frontend "
        "with '# syntax=docker/dockerfile:1' when using RUN --mount or heredocs, "
        "and use cache mounts so package downloads survive between builds "
        "without ending up in the image."
    ),
    references=[
        "https://docs.docker.com/build/buildkit/",
        "https://docs.docker.com/build/cache/optimize/#use-cache-mounts",
    ],
    default_severity=Severity.LOW,
)

PACKAGE_DOWNLOAD = re.compile(
    r"\b(?:apt-get\s+(?:-\S+\s+)*install|apk\s+add|pip[0-9.]*\s+install|npm\s+(?:ci|install)"
    r"|yarn\s+install|go\s+(?:mod\s+download|build)|cargo\s+build|mvn\s|gradle\s)"
)


def find_buildkit_usage(context: StandardRuleContext) -> RuleResult:
    """Check BuildKit-only syntax has a frontend and downloads use cache mounts."""
    dockerfile = context.dockerfile
    if dockerfile is None or not dockerfile.instructions:
        return RuleResult(applicable=False)

    findings = []
    has_syntax = "syntax" in dockerfile.directives

    buildkit_inst = None
    for inst in dockerfile.instructions:
        if inst.flag_values("mount") or inst.flag_values("security") or "<<" in inst.value:
            buildkit_inst = inst
            break

    if buildkit_inst is not None and not has_syntax:
        findings.append(
            StandardFinding(
                rule_name="dockerfile-missing-syntax-directive",
                message=(
                    f"{buildkit_inst.instruction} uses BuildKit syntax but the file does not "
                    "declare a Dockerfile frontend"
                ),
                file_path=context.display_path,
                line=buildkit_inst.line,
                severity=Severity.LOW,
                category="dockerfile",
                snippet=context.get_snippet(buildkit_inst.line),
                recommendation="Add '# syntax=docker/dockerfile:1' as the first line",
            )
        )

    has_cache_mount = any(
        "type=cache" in mount
        for inst in dockerfile.find("RUN")
        for mount in inst.flag_values("mount")
    )
    if not has_cache_mount:
        for inst in dockerfile.find("RUN"):
            if PACKAGE_DOWNLOAD.search(inst.arguments):
                findings.append(
                    StandardFinding(
                        rule_name="dockerfile-no-cache-mount",
                        message="Package downloads do not use a BuildKit cache mount",
                        file_path=context.display_path,
                        line=inst.line,
                        severity=Severity.INFO,
                        category="dockerfile",
                        snippet=context.get_snippet(inst.line),
                        recommendation=(
                            "Use 'RUN --mount=type=cache,target=/root/.cache/pip pip install ...' "
                            "(or the package manager's cache dir)"
                        ),
                    )
                )
                break

    return RuleResult(findings=findings)
