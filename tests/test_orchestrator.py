"""Tests for rule discovery and orchestration."""

import pytest

from conftest import GOOD_DOCKERFILE
from dockaudit.exceptions import ConfigError
from dockaudit.rules.base import RuleStatus, StandardFinding
from dockaudit.rules.orchestrator import RuleRegistry, RulesOrchestrator

EXPECTED_RULES = {
    "dockerfile": {
        "dockerfile-base-image",
        "dockerfile-buildkit",
        "dockerfile-copy-order",
        "dockerfile-exec-form",
        "dockerfile-exposed-ports",
        "dockerfile-healthcheck",
        "dockerfile-instruction-hygiene",
        "dockerfile-layer-hygiene",
        "dockerfile-minimal-runtime",
        "dockerfile-multi-stage",
        "dockerfile-secrets",
        "dockerfile-user",
    },
    "compose": {
        "compose-container-hardening",
        "compose-exposed-ports",
        "compose-healthcheck",
        "compose-image-pinning",
        "compose-logging",
        "compose-named-volumes",
        "compose-resource-limits",
        "compose-restart-policy",
        "compose-secrets",
        "compose-structure",
    },
    "context": {"context-dockerignore"},
}


class TestRuleRegistry:
    """Rule modules are discovered from the rules package."""

    def test_discovers_every_rule(self, registry):
        """Test every shipped rule is registered under its category."""
        for category, names in EXPECTED_RULES.items():
            assert {rule.name for rule in registry.rules[category]} == names

    def test_helper_package_not_loaded(self, registry):
        """Test the common helpers are not a rule category."""
        assert "common" not in registry.rules

    def test_targets(self, registry):
        """Test context rules run on Dockerfiles."""
        dockerfile_rules = {rule.name for rule in registry.for_target("dockerfile")}
        assert "context-dockerignore" in dockerfile_rules
        assert "compose-logging" not in dockerfile_rules
        assert len(registry.for_target("compose")) == len(EXPECTED_RULES["compose"])

    def test_each_rule_has_metadata_and_function(self, registry):
        """Test every rule carries a title and a find_* function."""
        for rule in registry.all_rules():
            assert rule.metadata.title
            assert rule.function_name.startswith("find_")

    def test_validate_names(self, registry):
        """Test unknown names raise ConfigError listing them."""
        registry.validate_names(["dockerfile-user", "compose-logging"])
        with pytest.raises(ConfigError) as excinfo:
            registry.validate_names(["dockerfile-user", "no-such-rule"])
        assert excinfo.value.details == {"unknown": ["no-such-rule"]}
        assert excinfo.value.exit_code == 3

    def test_stats(self, registry):
        """Test rule statistics add up."""
        stats = registry.get_rule_stats()
        assert stats["total_rules"] == sum(len(names) for names in EXPECTED_RULES.values())
        assert stats["categories"] == ["compose", "context", "dockerfile"]
        assert stats["by_target"]["compose"] == len(EXPECTED_RULES["compose"])


def outcome_map(result):
    return {outcome.rule: outcome for outcome in result.outcomes}


class TestRulesOrchestrator:
    """One outcome per rule and file."""

    def test_one_outcome_per_rule(self, registry, write_file, make_target):
        """Test every Dockerfile rule reports on the file."""
        target = make_target(write_file("Dockerfile", GOOD_DOCKERFILE))
        result = RulesOrchestrator(registry).lint_target(target)
        assert len(result.outcomes) == len(registry.for_target("dockerfile"))
        assert {outcome.file_path for outcome in result.outcomes} == {"Dockerfile"}
        assert result.errors == []

    def test_statuses(self, registry, write_file, make_target):
        """Test PASS, WARN, FAIL and SKIP outcomes for one Dockerfile."""
        target = make_target(write_file("Dockerfile", """
            FROM python:3.12-slim
            USER root
            CMD ["python"]
        """))
        outcomes = outcome_map(RulesOrchestrator(registry).lint_target(target))
        assert outcomes["dockerfile-exec-form"].status == RuleStatus.PASS
        assert outcomes["dockerfile-multi-stage"].status == RuleStatus.WARN
        assert outcomes["dockerfile-user"].status == RuleStatus.FAIL
        assert outcomes["dockerfile-copy-order"].status == RuleStatus.SKIP
        assert outcomes["dockerfile-copy-order"].reason == "not applicable"

    def test_disabled_rule_skipped(self, registry, write_file, make_target):
        """Test a disabled rule yields SKIP without findings."""
        target = make_target(write_file("Dockerfile", "FROM python:3.12-slim\nUSER root\n"))
        orchestrator = RulesOrchestrator(registry, disabled=["dockerfile-user"])
        outcome = outcome_map(orchestrator.lint_target(target))["dockerfile-user"]
        assert outcome.status == RuleStatus.SKIP
        assert outcome.reason == "disabled"
        assert outcome.findings == []

    def test_crashing_rule_is_isolated(self, registry, write_file, make_target, monkeypatch):
        """Test an exception inside a rule becomes SKIP with an internal-error finding."""
        rule = registry.get("dockerfile-user")

        def explode(context):
            raise RuntimeError("boom")

        monkeypatch.setattr(rule, "function", explode)
        target = make_target(write_file("Dockerfile", "FROM python:3.12-slim\n"))
        result = RulesOrchestrator(registry).lint_target(target)
        outcomes = outcome_map(result)

        crashed = outcomes["dockerfile-user"]
        assert crashed.status == RuleStatus.SKIP
        assert crashed.reason == "internal error"
        assert [f.rule_name for f in crashed.findings] == ["internal-error"]
        assert "boom" in crashed.findings[0].message
        assert outcomes["dockerfile-healthcheck"].status == RuleStatus.WARN

    def test_list_results_are_normalized(self, registry, write_file, make_target, monkeypatch):
        """Test rules may return a bare list of findings."""
        rule = registry.get("dockerfile-user")

        def list_rule(context):
            return [
                StandardFinding(
                    rule_name="dockerfile-root-user",
                    message="root",
                    file_path=context.display_path,
                    line=1,
                    severity="high",
                )
            ]

        monkeypatch.setattr(rule, "function", list_rule)
        target = make_target(write_file("Dockerfile", "FROM python:3.12-slim\n"))
        outcome = outcome_map(RulesOrchestrator(registry).lint_target(target))["dockerfile-user"]
        assert outcome.status == RuleStatus.FAIL

    def test_parse_error(self, registry, write_file, make_target):
        """Test an unparseable file reports parse-error and skips every rule."""
        target = make_target(write_file("docker-compose.yml", "services:\n  web: [unclosed\n"))
        result = RulesOrchestrator(registry).lint_target(target)
        assert [f.rule_name for f in result.errors] == ["parse-error"]
        assert result.errors[0].category == "parser"
        assert result.errors[0].severity_enum.value == "high"
        assert all(o.status == RuleStatus.SKIP and o.reason == "parse error" for o in result.outcomes)
        assert len(result.outcomes) == len(registry.for_target("compose"))

    def test_suppression_comment(self, registry, write_file, make_target):
        """Test an ignore comment removes the finding and turns FAIL into PASS."""
        target = make_target(write_file("Dockerfile", """
            FROM python:3.12-slim
            # dockaudit: ignore=dockerfile-root-user
            USER root
        """))
        outcome = outcome_map(RulesOrchestrator(registry).lint_target(target))["dockerfile-user"]
        assert outcome.findings == []
        assert outcome.status == RuleStatus.PASS

    def test_file_scope_suppression(self, registry, write_file, make_target):
        """Test ignore-file silences a rule for the whole Compose file."""
        target = make_target(write_file("docker-compose.yml", """
            # dockaudit: ignore-file=compose-logging,compose-missing-restart
            services:
              web:
                image: nginx:1.27
        """))
        outcomes = outcome_map(RulesOrchestrator(registry).lint_target(target))
        assert outcomes["compose-logging"].status == RuleStatus.PASS
        assert outcomes["compose-restart-policy"].status == RuleStatus.PASS
        assert outcomes["compose-healthcheck"].status == RuleStatus.WARN

    def test_dockerignore_next_to_dockerfile(self, registry, write_file, make_target):
        """Test the Dockerfile's .dockerignore is loaded into the context."""
        write_file("api/.dockerignore", ".env\n")
        write_file("api/.env", "TOKEN=1\n")
        target = make_target(write_file("api/Dockerfile", "FROM python:3.12-slim\nCOPY . /app\n"))
        outcome = outcome_map(RulesOrchestrator(registry).lint_target(target))["context-dockerignore"]
        assert outcome.status == RuleStatus.PASS

    def test_unreadable_dockerignore(self, registry, tmp_path, write_file, make_target):
        """Test a .dockerignore that cannot be decoded is reported, not treated as empty."""
        write_file("api/.env", "TOKEN=1\n")
        (tmp_path / "api" / ".dockerignore").write_bytes(b"\xff\xfe.env\n")
        target = make_target(write_file("api/Dockerfile", "FROM python:3.12-slim\nCOPY . /app\n"))
        outcome = outcome_map(RulesOrchestrator(registry).lint_target(target))["context-dockerignore"]
        assert [f.rule_name for f in outcome.findings] == ["context-dockerignore-unreadable"]
        assert outcome.findings[0].line == 2
        assert "api/.dockerignore" in outcome.findings[0].message
        assert outcome.status == RuleStatus.WARN
