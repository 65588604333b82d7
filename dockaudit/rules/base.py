"""Base contracts for rule standardization."""

import inspect
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Literal

from dockaudit.parsers.compose_parser import ComposeFile
from dockaudit.parsers.dockerfile_parser import Dockerfile
from dockaudit.parsers.dockerignore_parser import DockerIgnore


class Severity(Enum):
    """Standardized severity levels."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"


class Confidence(Enum):
    """Confidence in finding accuracy."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class RuleStatus(Enum):
    """Per-rule verdict for one file."""

    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"
    SKIP = "skip"


FAILING_SEVERITIES = frozenset([Severity.CRITICAL, Severity.HIGH])

TargetKind = Literal["dockerfile", "compose"]


@dataclass
class StandardRuleContext:
    """Immutable input handed to every rule."""

    file_path: Path
    display_path: str
    content: str
    target: TargetKind
    project_path: Path

    dockerfile: Dockerfile | None = None
    compose: ComposeFile | None = None
    dockerignore: DockerIgnore | None = None

    extra: dict[str, Any] = field(default_factory=dict)

    def get_lines(self) -> list[str]:
        """Get file content as list of lines."""
        return self.content.splitlines() if self.content else []

    def get_snippet(self, line_num: int, context_lines: int = 0) -> str:
        """Extract the source around a line number."""
        lines = self.get_lines()
        if not lines or line_num < 1 or line_num > len(lines):
            return ""

        start = max(1, line_num - context_lines)
        end = min(len(lines), line_num + context_lines)

        if start == end:
            return lines[line_num - 1].strip()

        snippet_lines = []
        for i in range(start, end + 1):
            prefix = ">> " if i == line_num else "   "
            snippet_lines.append(f"{i:4d}{prefix}{lines[i - 1]}")

        return "\n".join(snippet_lines)


@dataclass
class StandardFinding:
    """Standardized output from all rules."""

    rule_name: str
    message: str
    file_path: str
    line: int

    column: int = 0
    severity: Severity | str = Severity.MEDIUM
    category: str = "dockerfile"
    confidence: Confidence | str = Confidence.HIGH
    snippet: str = ""
    recommendation: str = ""

    references: list[str] | None = None
    cwe_id: str | None = None
    additional_info: dict[str, Any] | None = None

    @property
    def severity_enum(self) -> Severity:
        if isinstance(self.severity, Severity):
            return self.severity
        return Severity(str(self.severity).lower())

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result = {
            "rule": self.rule_name,
            "message": self.message,
            "file": self.file_path,
            "line": self.line,
            "column": self.column,
            "severity": self.severity.value
            if isinstance(self.severity, Severity)
            else self.severity,
            "category": self.category,
            "confidence": self.confidence.value
            if isinstance(self.confidence, Confidence)
            else self.confidence,
            "code_snippet": self.snippet,
        }

        if self.recommendation:
            result["recommendation"] = self.recommendation
        if self.references:
            result["references"] = self.references
        if self.cwe_id:
            result["cwe"] = self.cwe_id
        if self.additional_info:
            result["details"] = self.additional_info

        return result


@dataclass
class RuleResult:
    """What a rule function returns.

    ``applicable=False`` means the practice does not apply to this file
    (for example a stage-reference check on a file without COPY --from).
    """

    findings: list[StandardFinding] = field(default_factory=list)
    applicable: bool = True


def compute_status(findings: list[StandardFinding], applicable: bool = True) -> RuleStatus:
    """Derive PASS/WARN/FAIL from the findings that survived suppression."""
    if not applicable:
        return RuleStatus.SKIP
    if not findings:
        return RuleStatus.PASS
    if any(f.severity_enum in FAILING_SEVERITIES for f in findings):
        return RuleStatus.FAIL
    return RuleStatus.WARN


@dataclass
class RuleOutcome:
    """Verdict of one rule on one file."""

    rule: str
    category: str
    file_path: str
    status: RuleStatus
    findings: list[StandardFinding] = field(default_factory=list)
    reason: str = ""

    def to_dict(self) -> dict[str, Any]:
        result = {
            "rule": self.rule,
            "category": self.category,
            "file": self.file_path,
            "status": self.status.value,
            "findings": len(self.findings),
        }
        if self.reason:
            result["reason"] = self.reason
        return result


def validate_rule_signature(func: Callable) -> bool:
    """Check if a function follows the standard rule signature."""
    sig = inspect.signature(func)
    params = list(sig.parameters.keys())

    return len(params) == 1 and params[0] == "context"


@dataclass
class RuleMetadata:
    """Metadata describing a rule: what it checks, where it applies and why."""

    name: str
    category: str
    target: TargetKind
    title: str

    rationale: str = ""
    references: list[str] = field(default_factory=list)
    default_severity: Severity = Severity.MEDIUM
