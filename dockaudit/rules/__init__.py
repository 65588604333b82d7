"""dockaudit best-practice rule definitions.

Each module under a category package (dockerfile/, compose/, context/)
exports a METADATA and one find_*(context) function. Rules are discovered
by RuleRegistry in orchestrator.py.
"""

from .base import (
    RuleMetadata,
    RuleOutcome,
    RuleResult,
    RuleStatus,
    Severity,
    StandardFinding,
    StandardRuleContext,
)

__all__ = [
    "RuleMetadata",
    "RuleOutcome",
    "RuleResult",
    "RuleStatus",
    "Severity",
    "StandardFinding",
    "StandardRuleContext",
]
