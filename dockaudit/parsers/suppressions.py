"""Inline suppression comments shared by the Dockerfile and Compose parsers.

Syntax (the comment may stand alone or trail a YAML value):

    # dockaudit: ignore=dockerfile-root-user,dockerfile-missing-healthcheck
    # dockaudit: ignore-file=compose-missing-restart

A standalone ``ignore`` comment applies to the next non-blank, non-comment
line. A trailing one applies to its own line. ``ignore-file`` applies to the
whole file and is stored under line 0.
"""

import re

FILE_SCOPE = 0

_SUPPRESS_RE = re.compile(r"#\s*dockaudit:\s*(ignore|ignore-file)\s*=\s*([A-Za-z0-9_,\-\s]+)")


def parse_suppressions(lines: list[str]) -> dict[int, set[str]]:
    """Map 1-based line numbers (0 for file scope) to suppressed rule names."""
    suppressions: dict[int, set[str]] = {}
    pending: set[str] = set()

    for index, raw_line in enumerate(lines, start=1):
        stripped = raw_line.strip()
        match = _SUPPRESS_RE.search(raw_line)

        if match:
            names = {name.strip() for name in match.group(2).split(",") if name.strip()}
            if match.group(1) == "ignore-file":
                suppressions.setdefault(FILE_SCOPE, set()).update(names)
                continue
            if stripped.startswith("#"):
                pending |= names
                continue
            suppressions.setdefault(index, set()).update(names)

        if not stripped or stripped.startswith("#"):
            continue

        if pending:
            suppressions.setdefault(index, set()).update(pending)
            pending = set()

    return suppressions


def is_suppressed(suppressions: dict[int, set[str]], line: int, *rule_names: str) -> bool:
    """Return True if any of rule_names is suppressed on line or file-wide."""
    for scope in (FILE_SCOPE, line):
        names = suppressions.get(scope)
        if names and ("all" in names or any(name in names for name in rule_names)):
            return True
    return False
