"""Centralized finding prioritization for report ordering and thresholds."""

PRIORITY_ORDER = {
    "critical": 0,
    "high": 1,
    "medium": 2,
    "low": 3,
    "info": 4,
    "unknown": 5,
}


CATEGORY_IMPORTANCE = {
    "parser": 0,
    "compose": 1,
    "dockerfile": 1,
    "context": 2,
}


SEVERITY_MAPPINGS = {
    4: "critical",
    3: "high",
    2: "medium",
    1: "low",
    0: "info",
    "error": "high",
    "warning": "medium",
    "warn": "medium",
    "note": "low",
    "style": "info",
    "fatal": "critical",
    "critical": "critical",
    "high": "high",
    "medium": "medium",
    "low": "low",
    "info": "info",
}


def normalize_severity(severity_value) -> str:
    """Normalize severity from various formats to a standard string."""
    if severity_value is None:
        return "unknown"

    value = getattr(severity_value, "value", severity_value)

    if isinstance(value, (int, float)):
        return SEVERITY_MAPPINGS.get(int(value), "unknown")

    severity_str = str(value).lower().strip()

    if severity_str in PRIORITY_ORDER:
        return severity_str

    return SEVERITY_MAPPINGS.get(severity_str, "unknown")


def severity_at_least(severity_value, threshold: str) -> bool:
    """Return True when severity_value is as severe as threshold or more."""
    rank = PRIORITY_ORDER.get(normalize_severity(severity_value), PRIORITY_ORDER["unknown"])
    return rank <= PRIORITY_ORDER.get(normalize_severity(threshold), PRIORITY_ORDER["unknown"])


def get_sort_key(finding):
    """Generate sort key for a finding dict."""

    normalized_severity = normalize_severity(finding.get("severity"))
    category = str(finding.get("category", "unknown")).lower()

    return (
        PRIORITY_ORDER.get(normalized_severity, 5),
        finding.get("file", "zzz"),
        finding.get("line", 999999),
        CATEGORY_IMPORTANCE.get(category, 3),
        finding.get("rule", ""),
    )


def sort_findings(findings):
    """Sort finding dicts by priority for report organization."""
    if not findings:
        return findings

    return sorted(findings, key=get_sort_key)
