"""Layer hygiene analyzer.

Every RUN produces a layer, and files deleted in a later layer still ship
in the earlier one. Package manager caches must therefore be cleaned in the
same RUN that creates them. Detects:
- `apt-get update` in its own RUN (stale index cached by the builder)
- apt lists not removed, missing `--no-install-recommends`, missing `-y`
- `apk add` without `--no-cache`
- `pip install` without `--no-cache-dir`
- yum/dnf installs without a `clean all`
- Consecutive RUN instructions that could share a layer
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
    name="dockerfile-layer-hygiene",
    category="dockerfile",
    target="dockerfile",
    title="Keep layers small and package caches out of the image",
    rationale=(
        "Combine `apt-get update` with the install it feeds, skip recommended "
        "packages, and remove package manager caches in the same RUN. Chains of "
        "short RUN instructions add layers without isolating anything."
    ),
    references=[
        "https://docs.docker.com/build/building/best-practices/#run",
        "https://docs.docker.com/build/cache/optimize/",
    ],
    default_severity=Severity.LOW,
)

APT_INSTALL = re.compile(r"\bapt(?:-get)?\s+(?:-\S+\s+)*install\b")
APT_UPDATE = re.compile(r"\bapt(?:-get)?\s+(?:-\S+\s+)*update\b")
APT_LISTS_REMOVED = re.compile(r"rm\s+(?:-\S+\s+)*[^&;|]*/var/lib/apt/lists")
APK_ADD = re.compile(r"\bapk\s+(?:-\S+\s+)*add\b")
PIP_INSTALL = re.compile(r"\bpip[0-9.]*\s+(?:-\S+\s+)*install\b|\bpython[0-9.]*\s+-m\s+pip\s+install\b")
RPM_INSTALL = re.compile(r"\b(yum|dnf|microdnf)\s+(?:-\S+\s+)*install\b")
RPM_CLEAN = re.compile(r"\b(yum|dnf|microdnf)\s+clean\s+all\b|rm\s+-rf\s+/var/cache/(yum|dnf)")
ASSUME_YES = re.compile(r"(?:^|\s)(-y|--yes|--assume-yes|-qq?y|-yq+)(?:\s|$)")

# Minimum run of back-to-back RUN instructions worth reporting
CONSECUTIVE_RUN_THRESHOLD = 3


def find_layer_issues(context: StandardRuleContext) -> RuleResult:
    """Check RUN instructions for cache leftovers and wasted layers."""
    dockerfile = context.dockerfile
    if dockerfile is None or not dockerfile.stages:
        return RuleResult(applicable=False)

    findings = []
    pip_cache_disabled = _pip_cache_disabled_by_env(dockerfile)

    for stage in dockerfile.stages:
        for inst in stage.find("RUN"):
            findings.extend(_check_run(context, inst, pip_cache_disabled))
        findings.extend(_check_consecutive_runs(context, stage))

    return RuleResult(findings=findings)


def _check_run(context: StandardRuleContext, inst, pip_cache_disabled: bool) -> list[StandardFinding]:
    findings = []
    command = " ".join(inst.exec_args) if inst.exec_args is not None else inst.arguments
    line = inst.line
    has_cache_mount = any("type=cache" in mount for mount in inst.flag_values("mount"))

    def add(rule_name: str, message: str, severity: Severity, recommendation: str) -> None:
        findings.append(
            StandardFinding(
                rule_name=rule_name,
                message=message,
                file_path=context.display_path,
                line=line,
                severity=severity,
                category="dockerfile",
                snippet=context.get_snippet(line),
                recommendation=recommendation,
            )
        )

    has_update = APT_UPDATE.search(command)
    has_install = APT_INSTALL.search(command)

    if has_update and not has_install:
        add(
            "dockerfile-apt-update-alone",
            "apt-get update in its own RUN - the cached index goes stale for later installs",
            Severity.MEDIUM,
            "Run 'apt-get update && apt-get install -y ...' in a single RUN",
        )

    if has_install:
        segment = _segment_after(command, has_install.start())
        if "--no-install-recommends" not in segment:
            add(
                "dockerfile-apt-install-recommends",
                "apt-get install without --no-install-recommends pulls in extra packages",
                Severity.LOW,
                "Add --no-install-recommends",
            )
        if not ASSUME_YES.search(segment):
            add(
                "dockerfile-apt-missing-yes",
                "apt-get install without -y will wait for confirmation and fail the build",
                Severity.MEDIUM,
                "Add -y to the install command",
            )
        if not APT_LISTS_REMOVED.search(command) and not has_cache_mount:
            add(
                "dockerfile-apt-lists-not-removed",
                "apt lists are left in the layer",
                Severity.LOW,
                "End the RUN with 'rm -rf /var/lib/apt/lists/*'",
            )

    for match in APK_ADD.finditer(command):
        segment = _segment_after(command, match.start())
        if "--no-cache" not in segment and not has_cache_mount:
            add(
                "dockerfile-apk-cache",
                "apk add without --no-cache leaves the package index in the layer",
                Severity.LOW,
                "Use 'apk add --no-cache ...'",
            )
            break

    for match in PIP_INSTALL.finditer(command):
        segment = _segment_after(command, match.start())
        if "--no-cache-dir" in segment or has_cache_mount or pip_cache_disabled:
            continue
        add(
            "dockerfile-pip-cache",
            "pip install without --no-cache-dir stores wheels in the layer",
            Severity.LOW,
            "Use 'pip install --no-cache-dir ...' or a BuildKit cache mount",
        )
        break

    if RPM_INSTALL.search(command) and not RPM_CLEAN.search(command) and not has_cache_mount:
        add(
            "dockerfile-rpm-cache",
            "yum/dnf install without cleaning the package cache",
            Severity.LOW,
            "Append '&& dnf clean all' (or 'yum clean all') to the RUN",
        )

    return findings


def _check_consecutive_runs(context: StandardRuleContext, stage) -> list[StandardFinding]:
    """Report runs of adjacent RUN instructions once, at the first of them."""
    findings = []
    run_start = None
    run_length = 0

    def flush() -> None:
        if run_start is not None and run_length >= CONSECUTIVE_RUN_THRESHOLD:
            findings.append(
                StandardFinding(
                    rule_name="dockerfile-consecutive-run",
                    message=f"{run_length} consecutive RUN instructions could be combined",
                    file_path=context.display_path,
                    line=run_start,
                    severity=Severity.INFO,
                    category="dockerfile",
                    snippet=context.get_snippet(run_start),
                    recommendation="Chain related commands with && in one RUN",
                )
            )

    for inst in stage.instructions:
        # Cache mounts and heredocs deliberately split layers
        if inst.instruction == "RUN" and not inst.flags and "<<" not in inst.value:
            if run_start is None:
                run_start = inst.line
            run_length += 1
            continue
        flush()
        run_start = None
        run_length = 0
    flush()

    return findings


def _segment_after(command: str, start: int) -> str:
    """The shell command starting at `start`, up to the next && ; | or line end.

    Line breaks only occur in heredoc bodies; escaped ones continue the command.
    """
    rest = command[start:].replace("\\\n", " ")
    return re.split(r"&&|;|\|\|?|\n", rest, maxsplit=1)[0]


def _pip_cache_disabled_by_env(dockerfile) -> bool:
    for inst in dockerfile.find("ENV"):
        if re.search(r"\bPIP_NO_CACHE_DIR[=\s]", inst.arguments + " "):
            return True
    return False
