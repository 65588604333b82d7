"""Unified orchestrator for dynamic rule discovery and execution.

This module provides:
1. RuleRegistry - discovers every rule module under dockaudit/rules/<category>/
2. RulesOrchestrator - parses each target once and runs the matching rules,
   producing one RuleOutcome per (rule, file)
"""

import importlib
import inspect
import pkgutil
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from dockaudit.discovery import LintTarget
from dockaudit.exceptions import ConfigError, RuleDiscoveryError
from dockaudit.parsers import ComposeParser, DockerfileParser, DockerIgnoreParser, find_dockerignore
from dockaudit.parsers.suppressions import is_suppressed
from dockaudit.rules.base import (
    Confidence,
    RuleMetadata,
    RuleOutcome,
    RuleResult,
    RuleStatus,
    Severity,
    StandardFinding,
    StandardRuleContext,
    compute_status,
    validate_rule_signature,
)
from dockaudit.utils.logging import logger

# Packages under dockaudit/rules that hold helpers, not rules
NON_RULE_PACKAGES = frozenset(["common"])


@dataclass
class RuleInfo:
    """Metadata about a discovered rule."""

    name: str
    module: str
    function: Callable
    category: str
    metadata: RuleMetadata

    @property
    def target(self) -> str:
        return self.metadata.target

    @property
    def function_name(self) -> str:
        return self.function.__name__


class RuleRegistry:
    """Registry of every best-practice rule shipped in dockaudit.rules."""

    def __init__(self, package: str = "dockaudit.rules"):
        self.package = package
        self.rules: dict[str, list[RuleInfo]] = self._discover_all_rules()
        self._by_name = {rule.name: rule for rules in self.rules.values() for rule in rules}

    def _discover_all_rules(self) -> dict[str, list[RuleInfo]]:
        """Dynamically discover all rules below the rules package.

        Returns:
            Dictionary mapping category name to list of RuleInfo objects
        """
        rules_package = importlib.import_module(self.package)
        rules_dir = Path(rules_package.__file__).parent
        rules_by_category: dict[str, list[RuleInfo]] = {}
        seen: dict[str, str] = {}

        for subdir in sorted(rules_dir.iterdir()):
            if not subdir.is_dir() or subdir.name.startswith("__") or subdir.name in NON_RULE_PACKAGES:
                continue
            if not (subdir / "__init__.py").exists():
                continue

            category = subdir.name
            rules_by_category[category] = []

            for module_info in pkgutil.iter_modules([str(subdir)]):
                if module_info.name.startswith("_"):
                    continue
                module_name = f"{self.package}.{category}.{module_info.name}"
                module = importlib.import_module(module_name)

                rule_info = self._analyze_module(module, module_name, category)
                if rule_info is None:
                    continue

                if rule_info.name in seen:
                    raise RuleDiscoveryError(
                        f"Duplicate rule name '{rule_info.name}' in {module_name} "
                        f"(already defined in {seen[rule_info.name]})",
                        module=module_name,
                    )
                seen[rule_info.name] = module_name
                rules_by_category[category].append(rule_info)
                logger.debug("Found rule: {}/{} ({})", category, rule_info.name, rule_info.function_name)

        for rules in rules_by_category.values():
            rules.sort(key=lambda r: r.name)

        logger.debug(
            "Discovered {} rules across {} categories",
            sum(len(r) for r in rules_by_category.values()),
            len(rules_by_category),
        )
        return rules_by_category

    def _analyze_module(self, module: Any, module_name: str, category: str) -> RuleInfo | None:
        """Return the module's rule, or None for helper modules without METADATA."""
        metadata = getattr(module, "METADATA", None)
        if metadata is None:
            logger.debug("Skipping {}: no METADATA", module_name)
            return None
        if not isinstance(metadata, RuleMetadata):
            raise RuleDiscoveryError(f"{module_name}.METADATA is not a RuleMetadata", module=module_name)

        candidates = [
            obj
            for name, obj in inspect.getmembers(module, inspect.isfunction)
            if name.startswith("find_") and obj.__module__ == module_name
        ]
        functions = [func for func in candidates if validate_rule_signature(func)]
        for func in candidates:
            if func not in functions:
                logger.warning(
                    "Ignoring {}.{}: rule functions take a single 'context' parameter",
                    module_name,
                    func.__name__,
                )

        if len(functions) != 1:
            raise RuleDiscoveryError(
                f"{module_name} must define exactly one find_*(context) function, found {len(functions)}",
                module=module_name,
            )

        return RuleInfo(
            name=metadata.name,
            module=module_name,
            function=functions[0],
            category=metadata.category or category,
            metadata=metadata,
        )

    def all_rules(self) -> list[RuleInfo]:
        return [rule for category in sorted(self.rules) for rule in self.rules[category]]

    def get(self, name: str) -> RuleInfo | None:
        return self._by_name.get(name)

    def names(self) -> list[str]:
        return sorted(self._by_name)

    def for_target(self, target: str) -> list[RuleInfo]:
        return [rule for rule in self.all_rules() if rule.target == target]

    def validate_names(self, names: Iterable[str]) -> None:
        """Raise ConfigError listing any names that are not registered rules."""
        unknown = sorted(set(names) - set(self._by_name))
        if unknown:
            raise ConfigError(
                f"Unknown rule(s): {', '.join(unknown)}. Run 'dockaudit rules' to list rule names.",
                details={"unknown": unknown},
            )

    def get_rule_stats(self) -> dict[str, Any]:
        """Get statistics about discovered rules."""
        all_rules = self.all_rules()
        return {
            "total_rules": len(all_rules),
            "categories": sorted(self.rules),
            "by_category": {cat: len(rules) for cat, rules in sorted(self.rules.items())},
            "by_target": {
                target: sum(1 for r in all_rules if r.target == target)
                for target in ("dockerfile", "compose")
            },
        }


@dataclass
class FileResult:
    """Everything the orchestrator learned about one target."""

    target: LintTarget
    outcomes: list[RuleOutcome] = field(default_factory=list)
    errors: list[StandardFinding] = field(default_factory=list)

    @property
    def findings(self) -> list[StandardFinding]:
        collected = list(self.errors)
        for outcome in self.outcomes:
            collected.extend(outcome.findings)
        return collected


class RulesOrchestrator:
    """Runs registered rules against lint targets."""

    def __init__(self, registry: RuleRegistry | None = None, disabled: Iterable[str] = ()):
        """Initialize the orchestrator.

        Args:
            registry: Rule registry (discovered on demand when omitted)
            disabled: Rule names that yield SKIP without running
        """
        self.registry = registry or RuleRegistry()
        self.disabled = set(disabled)
        self.dockerfile_parser = DockerfileParser()
        self.compose_parser = ComposeParser()
        self.dockerignore_parser = DockerIgnoreParser()

    def lint(self, targets: Iterable[LintTarget]) -> list[FileResult]:
        return [self.lint_target(target) for target in targets]

    def lint_target(self, target: LintTarget) -> FileResult:
        """Parse one target and evaluate every rule registered for its kind."""
        result = FileResult(target=target)
        rules = self.registry.for_target(target.kind)
        context = self._build_context(target)

        parsed = context.dockerfile if target.kind == "dockerfile" else context.compose
        if parsed.error:
            logger.info("Could not parse {}: {}", target.display_path, parsed.error)
            result.errors.append(
                StandardFinding(
                    rule_name="parse-error",
                    message=f"Could not parse file: {parsed.error}",
                    file_path=target.display_path,
                    line=1,
                    severity=Severity.HIGH,
                    category="parser",
                )
            )
            result.outcomes = [
                RuleOutcome(
                    rule=rule.name,
                    category=rule.category,
                    file_path=target.display_path,
                    status=RuleStatus.SKIP,
                    reason="parse error",
                )
                for rule in rules
            ]
            return result

        suppressions = parsed.suppressions
        for rule in rules:
            result.outcomes.append(self._execute_rule(rule, context, suppressions))

        return result

    def _build_context(self, target: LintTarget) -> StandardRuleContext:
        display_path = target.display_path
        if target.kind == "dockerfile":
            dockerfile = self.dockerfile_parser.parse_file(target.path, display_path)
            dockerignore = None
            ignore_path = find_dockerignore(target.path)
            if ignore_path is not None:
                dockerignore = self.dockerignore_parser.parse_file(
                    ignore_path, _relative_display(ignore_path, target)
                )
                if dockerignore.error:
                    logger.warning("Could not read {}: {}", ignore_path, dockerignore.error)
            return StandardRuleContext(
                file_path=target.path,
                display_path=display_path,
                content=dockerfile.content,
                target="dockerfile",
                project_path=target.project_path,
                dockerfile=dockerfile,
                dockerignore=dockerignore,
            )

        compose = self.compose_parser.parse_file(target.path, display_path)
        return StandardRuleContext(
            file_path=target.path,
            display_path=display_path,
            content=compose.content,
            target="compose",
            project_path=target.project_path,
            compose=compose,
        )

    def _execute_rule(
        self, rule: RuleInfo, context: StandardRuleContext, suppressions: dict[int, set[str]]
    ) -> RuleOutcome:
        """Execute a single rule and fold its result into an outcome."""
        outcome = RuleOutcome(
            rule=rule.name,
            category=rule.category,
            file_path=context.display_path,
            status=RuleStatus.SKIP,
        )

        if rule.name in self.disabled:
            outcome.reason = "disabled"
            return outcome

        try:
            result = rule.function(context)
        except Exception as e:
            logger.opt(exception=True).error(
                "Rule {} failed on {}: {}", rule.name, context.display_path, e
            )
            outcome.reason = "internal error"
            outcome.findings = [
                StandardFinding(
                    rule_name="internal-error",
                    message=f"Rule {rule.name} crashed: {type(e).__name__}: {e}",
                    file_path=context.display_path,
                    line=1,
                    severity=Severity.INFO,
                    category=rule.category,
                    confidence=Confidence.LOW,
                )
            ]
            return outcome

        if result is None:
            result = RuleResult()
        elif isinstance(result, list):
            result = RuleResult(findings=result)

        kept = [
            finding
            for finding in result.findings
            if not is_suppressed(suppressions, finding.line, finding.rule_name, rule.name)
        ]
        dropped = len(result.findings) - len(kept)
        if dropped:
            logger.debug("{}: suppressed {} finding(s) of {}", context.display_path, dropped, rule.name)

        outcome.findings = kept
        outcome.status = compute_status(kept, result.applicable)
        if not result.applicable:
            outcome.reason = "not applicable"
        return outcome


def _relative_display(path: Path, target: LintTarget) -> str:
    """Display an ignore file relative to the target's displayed directory."""
    parent = target.display_path.rsplit("/", 1)[0] if "/" in target.display_path else ""
    return f"{parent}/{path.name}" if parent else path.name
