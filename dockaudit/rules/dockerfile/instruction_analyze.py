"""Instruction hygiene analyzer.

Detects instructions that work but are error prone or unsafe:
- ADD for local files (COPY is explicit) and ADD of URLs without --checksum
- Deprecated MAINTAINER
- `cd` inside RUN instead of WORKDIR, relative WORKDIR paths
- `sudo` in RUN (the build already runs as the stage user)
- Piping a downloaded script into a shell (CWE-494)
- World-writable permissions (CWE-732)
"""

import re

from dockaudit.rules.base import (
    RuleMetadata,
    RuleResult,
    Severity,
    StandardFinding,
    StandardRuleContext,
)
from dockaudit.rules.common.util import copy_sources

METADATA = RuleMetadata(
    name="dockerfile-instruction-hygiene",
    category="dockerfile",
    target="dockerfile",
    title="Prefer explicit, predictable instructions",
    rationale=(
        "COPY only copies; ADD also fetches URLs and unpacks archives. WORKDIR "
        "persists across instructions where `cd` does not. Scripts piped from the "
        "network into a shell run unverified code as part of the build."
    ),
    references=["https://docs.docker.com/build/building/best-practices/"],
    default_severity=Severity.LOW,
)

ARCHIVE_SUFFIXES = (".tar", ".tar.gz", ".tgz", ".tar.bz2", ".tbz2", ".tar.xz", ".txz", ".tar.zst")
URL_PREFIXES = ("http://", "https://", "git@")

PIPE_TO_SHELL = re.compile(r"\b(?:curl|wget)\b[^|;&\n]*\|\s*(?:sudo\s+)?(?:ba|z|da)?sh\b")
CD_COMMAND = re.compile(r"(?:^|&&|;|\|\||\n)\s*cd\s+\S")
SUDO_COMMAND = re.compile(r"(?:^|&&|;|\|\|?|\n)\s*sudo\s")
WORLD_WRITABLE = re.compile(r"\bchmod\s+(?:-\S+\s+)*(?:0?777|a\+rwx|ugo\+rwx|o\+w)\b")


def find_instruction_issues(context: StandardRuleContext) -> RuleResult:
    """Check individual instructions for unsafe or deprecated usage."""
    dockerfile = context.dockerfile
    if dockerfile is None or not dockerfile.instructions:
        return RuleResult(applicable=False)

    findings = []
    path = context.display_path

    def add(inst, rule_name: str, message: str, severity: Severity, recommendation: str = "", cwe_id=None):
        findings.append(
            StandardFinding(
                rule_name=rule_name,
                message=message,
                file_path=path,
                line=inst.line,
                severity=severity,
                category="dockerfile",
                snippet=context.get_snippet(inst.line),
                recommendation=recommendation,
                cwe_id=cwe_id,
            )
        )

    for inst in dockerfile.instructions:
        keyword = inst.instruction

        if keyword == "MAINTAINER":
            add(
                inst,
                "dockerfile-maintainer-deprecated",
                "MAINTAINER is deprecated",
                Severity.LOW,
                'Use LABEL org.opencontainers.image.authors="..."',
            )

        elif keyword == "ADD":
            for source in copy_sources(inst):
                if source.startswith(URL_PREFIXES):
                    if not inst.flag("checksum"):
                        add(
                            inst,
                            "dockerfile-add-remote-url",
                            f"ADD downloads {source} without verifying a checksum",
                            Severity.MEDIUM,
                            "Use ADD --checksum=sha256:... or download with curl and verify",
                            "CWE-494",
                        )
                elif not source.lower().endswith(ARCHIVE_SUFFIXES):
                    add(
                        inst,
                        "dockerfile-add-instead-of-copy",
                        f"ADD used for local file '{source}'",
                        Severity.LOW,
                        "Use COPY for local files; ADD is only needed to unpack archives",
                    )
                    break

        elif keyword == "WORKDIR":
            workdir = inst.arguments.strip("\"'")
            if workdir and not workdir.startswith(("/", "$")) and not re.match(r"^[A-Za-z]:[\\/]", workdir):
                add(
                    inst,
                    "dockerfile-relative-workdir",
                    f"WORKDIR '{workdir}' is relative to the previous WORKDIR",
                    Severity.LOW,
                    "Use an absolute path",
                )

        elif keyword == "RUN":
            command = " ".join(inst.exec_args) if inst.exec_args is not None else inst.arguments

            if PIPE_TO_SHELL.search(command):
                add(
                    inst,
                    "dockerfile-pipe-to-shell",
                    "Remote script piped directly into a shell",
                    Severity.HIGH,
                    "Download the script, verify its checksum or signature, then run it",
                    "CWE-494",
                )
            if SUDO_COMMAND.search(command):
                add(
                    inst,
                    "dockerfile-sudo",
                    "sudo in RUN - switch USER instead",
                    Severity.MEDIUM,
                    "Run privileged steps before USER, or use gosu/su-exec at runtime",
                )
            if WORLD_WRITABLE.search(command):
                add(
                    inst,
                    "dockerfile-world-writable",
                    "chmod grants world-writable permissions",
                    Severity.MEDIUM,
                    "Grant the minimal permissions needed and chown to the runtime user",
                    "CWE-732",
                )
            if CD_COMMAND.search(command):
                add(
                    inst,
                    "dockerfile-cd-in-run",
                    "cd in RUN - the directory change does not persist",
                    Severity.LOW,
                    "Use WORKDIR",
                )

    return RuleResult(findings=findings)
