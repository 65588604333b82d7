"""Lint report assembly and rendering.

Collects per-file results from the orchestrator, applies the reporting
severity filter, and renders either a Rich text report or JSON. Exit codes
are derived from the findings that survived suppression, independent of the
display filter.
"""

import json
from collections import Counter
from dataclasses import dataclass, field
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from dockaudit import __version__
from dockaudit.discovery import LintTarget
from dockaudit.rules.base import RuleOutcome, RuleStatus, StandardFinding
from dockaudit.rules.orchestrator import FileResult
from dockaudit.ui import console as default_console
from dockaudit.ui import print_header, print_status_panel
from dockaudit.utils.exit_codes import ExitCodes
from dockaudit.utils.finding_priority import normalize_severity, severity_at_least, sort_findings

SEVERITY_LEVELS = ("critical", "high", "medium", "low", "info")
STATUS_LEVELS = tuple(status.value for status in RuleStatus)
FAIL_ON_CHOICES = ("critical", "high", "medium", "low", "never")


@dataclass
class LintReport:
    """Everything one lint run produced."""

    targets: list[LintTarget] = field(default_factory=list)
    outcomes: list[RuleOutcome] = field(default_factory=list)
    parse_errors: list[StandardFinding] = field(default_factory=list)
    min_severity: str = "all"

    @classmethod
    def from_results(cls, results: list[FileResult], min_severity: str = "all") -> "LintReport":
        report = cls(min_severity=min_severity)
        for result in results:
            report.targets.append(result.target)
            report.outcomes.extend(result.outcomes)
            report.parse_errors.extend(result.errors)
        return report

    @property
    def all_findings(self) -> list[StandardFinding]:
        """Every finding, unfiltered."""
        findings = list(self.parse_errors)
        for outcome in self.outcomes:
            findings.extend(outcome.findings)
        return findings

    @property
    def findings(self) -> list[dict[str, Any]]:
        """Reported finding dicts: severity filter applied, most severe first."""
        selected = [
            finding.to_dict()
            for finding in self.all_findings
            if self.min_severity == "all" or severity_at_least(finding.severity, self.min_severity)
        ]
        return sort_findings(selected)

    def severity_counts(self, findings: list[dict[str, Any]] | None = None) -> dict[str, int]:
        if findings is None:
            findings = self.findings
        counts = Counter(normalize_severity(f.get("severity")) for f in findings)
        return {sev: counts.get(sev, 0) for sev in SEVERITY_LEVELS}

    def status_counts(self) -> dict[str, int]:
        counts = Counter(outcome.status.value for outcome in self.outcomes)
        return {status: counts.get(status, 0) for status in STATUS_LEVELS}

    def summary(self) -> dict[str, Any]:
        findings = self.findings
        return {
            "files": len(self.targets),
            "rules_evaluated": len(self.outcomes),
            "severity": self.severity_counts(findings),
            "status": self.status_counts(),
            "parse_errors": len(self.parse_errors),
        }

    def exit_code(self, fail_on: str = "high") -> int:
        """Exit code for CI: findings at or above fail_on fail the run.

        Suppressed findings are already gone; the --severity display filter
        is not applied.
        """
        if fail_on == "never":
            return ExitCodes.SUCCESS

        severities = [normalize_severity(f.severity) for f in self.all_findings]
        if "critical" in severities and severity_at_least("critical", fail_on):
            return ExitCodes.CRITICAL_SEVERITY
        if any(severity_at_least(sev, fail_on) for sev in severities):
            return ExitCodes.HIGH_SEVERITY
        return ExitCodes.SUCCESS

    def to_dict(self) -> dict[str, Any]:
        findings = self.findings
        return {
            "version": __version__,
            "files": [
                {"path": target.display_path, "kind": target.kind} for target in self.targets
            ],
            "outcomes": [outcome.to_dict() for outcome in self.outcomes],
            "findings": findings,
            "summary": self.summary(),
            "total": len(findings),
        }


def render_json(report: LintReport) -> str:
    return json.dumps(report.to_dict(), indent=2)


def render_text(report: LintReport, target: Console | None = None) -> None:
    """Print the report grouped by file, then the rule status table and summary."""
    out = target or default_console
    findings = report.findings

    by_file: dict[str, list[dict[str, Any]]] = {}
    for finding in findings:
        by_file.setdefault(finding["file"], []).append(finding)

    print_header("DOCKAUDIT LINT RESULTS", out)

    for lint_target in report.targets:
        path = lint_target.display_path
        file_findings = sorted(by_file.get(path, []), key=lambda f: (f["line"], f["rule"]))
        out.print(f"\n[path]{escape(path)}[/path] [dim]({lint_target.kind})[/dim]", highlight=False)

        if not file_findings:
            out.print("  [success]No findings[/success]")
            continue

        for finding in file_findings:
            severity = normalize_severity(finding["severity"])
            out.print(
                f"  [{severity}]{severity.upper():8}[/{severity}] "
                f"line {finding['line']:<4} [rule]{finding['rule']}[/rule]  {escape(finding['message'])}",
                highlight=False,
            )
            if finding.get("recommendation"):
                out.print(f"           [dim]Fix: {escape(finding['recommendation'])}[/dim]", highlight=False)

    if report.outcomes:
        out.print()
        out.print(_status_table(report))

    _print_summary(report, findings, out)


def _status_table(report: LintReport) -> Table:
    """One row per rule: how many files passed, warned, failed or skipped it."""
    counts: dict[str, Counter] = {}
    categories: dict[str, str] = {}
    for outcome in report.outcomes:
        counts.setdefault(outcome.rule, Counter())[outcome.status.value] += 1
        categories[outcome.rule] = outcome.category

    table = Table(title="Rule status")
    table.add_column("Rule", style="rule", no_wrap=True)
    table.add_column("Category", style="dim")
    for status in STATUS_LEVELS:
        table.add_column(status.upper(), justify="right", style=status)

    for rule in sorted(counts, key=lambda r: (categories[r], r)):
        row = [rule, categories[rule]]
        row.extend(str(counts[rule][status]) if counts[rule][status] else "-" for status in STATUS_LEVELS)
        table.add_row(*row)

    return table


def _print_summary(report: LintReport, findings: list[dict[str, Any]], out: Console) -> None:
    counts = report.severity_counts(findings)
    status_counts = report.status_counts()

    out.print()
    out.print(
        f"Files: {len(report.targets)}   Rules evaluated: {len(report.outcomes)}   "
        + "   ".join(f"{status.upper()}: {count}" for status, count in status_counts.items()),
        highlight=False,
    )

    if not findings:
        print_status_panel("CLEAN", "No findings", f"{len(report.targets)} file(s) linted", "success", out)
        return

    detail = "  ".join(f"{sev.upper()}: {counts[sev]}" for sev in SEVERITY_LEVELS if counts[sev])
    worst = next(sev for sev in SEVERITY_LEVELS if counts[sev])
    print_status_panel(
        worst.upper(),
        f"{len(findings)} finding(s) in {len(report.targets)} file(s)",
        detail,
        worst,
        out,
    )
