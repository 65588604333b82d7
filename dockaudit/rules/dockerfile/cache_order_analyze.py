"""Build cache ordering analyzer.

The builder reuses a cached layer only while every earlier layer is
unchanged. Copying the whole context before installing dependencies means
any source edit reinstalls every dependency. Copy the manifests, install,
then copy the rest.
"""

import re

from dockaudit.rules.base import (
    RuleMetadata,
    RuleResult,
    Severity,
    StandardFinding,
    StandardRuleContext,
)
from dockaudit.rules.common.util import is_whole_context_copy

METADATA = RuleMetadata(
    name="dockerfile-copy-order",
    category="dockerfile",
    target="dockerfile",
    title="Copy dependency manifests before the source tree",
    rationale=(
        "Order instructions from least to most frequently changing. COPY the "
        "lockfile, install dependencies, then COPY the source so code edits keep "
        "the dependency layer cached."
    ),
    references=["https://docs.docker.com/build/cache/optimize/#order-your-layers"],
    default_severity=Severity.LOW,
)

DEPENDENCY_INSTALL = re.compile(
    r"\b(?:"
    r"npm\s+(?:ci|install|i)\b"
    r"|yarn(?:\s+install)?\s*(?:--\S+\s*)*(?:$|&&|;)"
    r"|pnpm\s+(?:install|i)\b"
    r"|pip[0-9.]*\s+install\s+(?:-\S+\s+)*-r\b"
    r"|poetry\s+install\b"
    r"|uv\s+sync\b"
    r"|pipenv\s+install\b"
    r"|bundle\s+install\b"
    r"|composer\s+install\b"
    r"|go\s+mod\s+download\b"
    r"|cargo\s+fetch\b"
    r"|mvn\s+(?:\S+\s+)*dependency:\S+"
    r"|dotnet\s+restore\b"
    r")"
)


def find_copy_before_install(context: StandardRuleContext) -> RuleResult:
    """Detect a whole-context COPY that precedes a dependency install in a stage."""
    dockerfile = context.dockerfile
    if dockerfile is None or not dockerfile.stages:
        return RuleResult(applicable=False)

    findings = []
    installs_seen = False

    for stage in dockerfile.stages:
        context_copy = None
        for inst in stage.instructions:
            if context_copy is None and is_whole_context_copy(inst):
                context_copy = inst
                continue
            if inst.instruction != "RUN":
                continue
            command = " ".join(inst.exec_args) if inst.exec_args is not None else inst.arguments
            match = DEPENDENCY_INSTALL.search(command)
            if not match:
                continue
            installs_seen = True
            if context_copy is None:
                continue
            findings.append(
                StandardFinding(
                    rule_name="dockerfile-copy-before-install",
                    message=(
                        f"Whole build context copied on line {context_copy.line} before "
                        f"'{match.group(0).strip()}' - every source change invalidates the "
                        "dependency layer"
                    ),
                    file_path=context.display_path,
                    line=context_copy.line,
                    severity=Severity.LOW,
                    category="dockerfile",
                    snippet=context.get_snippet(context_copy.line),
                    recommendation=(
                        "COPY the dependency manifests (package*.json, requirements.txt, "
                        "go.mod ...) first, install, then COPY the rest"
                    ),
                )
            )
            break

    if not installs_seen:
        return RuleResult(applicable=False)
    return RuleResult(findings=findings)
