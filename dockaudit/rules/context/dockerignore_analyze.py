"""Build context .dockerignore analyzer.

`COPY . /app` sends the whole directory to the builder and into the image:
VCS history, local .env files with credentials, host-built dependency
folders. A .dockerignore next to the Dockerfile keeps them out.

The build context is assumed to be the Dockerfile's directory.
"""

from dockaudit.rules.base import (
    RuleMetadata,
    RuleResult,
    Severity,
    StandardFinding,
    StandardRuleContext,
)
from dockaudit.rules.common.util import copies_from_context, is_whole_context_copy

METADATA = RuleMetadata(
    name="context-dockerignore",
    category="context",
    target="dockerfile",
    title="Exclude secrets and build junk from the build context",
    rationale=(
        "Without a .dockerignore every file in the context is uploaded to the "
        "builder and copied by `COPY .`, including .git, .env files and "
        "node_modules built for the host platform."
    ),
    references=["https://docs.docker.com/build/concepts/context/#dockerignore-files"],
    default_severity=Severity.MEDIUM,
)

# Context entries that must not reach the image: (path, severity, why)
SENSITIVE_CONTEXT_PATHS = [
    (".env", Severity.HIGH, "local environment file with credentials"),
    (".git", Severity.LOW, "repository history"),
    ("node_modules", Severity.LOW, "host-built dependencies"),
    (".venv", Severity.LOW, "host virtualenv"),
    ("venv", Severity.LOW, "host virtualenv"),
]


def find_dockerignore_issues(context: StandardRuleContext) -> RuleResult:
    """Check the build context is filtered when the Dockerfile copies from it."""
    dockerfile = context.dockerfile
    if dockerfile is None:
        return RuleResult(applicable=False)

    context_copies = [inst for inst in dockerfile.instructions if copies_from_context(inst)]
    if not context_copies:
        return RuleResult(applicable=False)

    whole_copy = next((inst for inst in context_copies if is_whole_context_copy(inst)), None)
    path = context.display_path
    findings = []

    if context.dockerignore is None:
        if whole_copy is not None:
            findings.append(
                StandardFinding(
                    rule_name="context-missing-dockerignore",
                    message="Whole build context copied but no .dockerignore exists next to the Dockerfile",
                    file_path=path,
                    line=whole_copy.line,
                    severity=Severity.MEDIUM,
                    category="context",
                    snippet=context.get_snippet(whole_copy.line),
                    recommendation="Add a .dockerignore excluding .git, .env* and dependency folders",
                    cwe_id="CWE-538",
                )
            )
        else:
            first = context_copies[0]
            findings.append(
                StandardFinding(
                    rule_name="context-missing-dockerignore",
                    message="No .dockerignore - the entire directory is uploaded to the builder",
                    file_path=path,
                    line=first.line,
                    severity=Severity.LOW,
                    category="context",
                    snippet=context.get_snippet(first.line),
                    recommendation="Add a .dockerignore to keep the build context small",
                )
            )
        return RuleResult(findings=findings)

    if context.dockerignore.error:
        first = whole_copy or context_copies[0]
        findings.append(
            StandardFinding(
                rule_name="context-dockerignore-unreadable",
                message=f"{context.dockerignore.path} could not be read ({context.dockerignore.error})",
                file_path=path,
                line=first.line,
                severity=Severity.MEDIUM,
                category="context",
                snippet=context.get_snippet(first.line),
                recommendation="Make the .dockerignore a readable UTF-8 text file",
            )
        )
        return RuleResult(findings=findings)

    if whole_copy is None:
        return RuleResult()

    context_dir = context.file_path.parent
    for entry, severity, description in SENSITIVE_CONTEXT_PATHS:
        if not (context_dir / entry).exists():
            continue
        if context.dockerignore.excludes(entry):
            continue
        findings.append(
            StandardFinding(
                rule_name="context-path-not-ignored",
                message=f"'{entry}' ({description}) is not excluded by {context.dockerignore.path} and is copied here",
                file_path=path,
                line=whole_copy.line,
                severity=severity,
                category="context",
                snippet=context.get_snippet(whole_copy.line),
                recommendation=f"Add '{entry}' to the .dockerignore",
                cwe_id="CWE-538" if severity == Severity.HIGH else None,
            )
        )

    return RuleResult(findings=findings)
