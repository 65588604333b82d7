"""Tests for inline suppression comments."""

from dockaudit.parsers.suppressions import FILE_SCOPE, is_suppressed, parse_suppressions


class TestParseSuppressions:
    """Comment placement decides which line is suppressed."""

    def test_standalone_comment_targets_next_code_line(self):
        """Test blank lines and comments between are skipped."""
        lines = [
            "FROM alpine:3.20",
            "# dockaudit: ignore=dockerfile-root-user",
            "",
            "# switch user",
            "USER root",
        ]
        assert parse_suppressions(lines) == {5: {"dockerfile-root-user"}}

    def test_trailing_comment_targets_own_line(self):
        """Test a trailing comment suppresses the line it is on."""
        lines = ["services:", "  web:", "    privileged: true  # dockaudit: ignore=all"]
        assert parse_suppressions(lines) == {3: {"all"}}

    def test_multiple_names(self):
        """Test comma separated rule names."""
        lines = ["# dockaudit: ignore=dockerfile-base-image, dockerfile-user", "FROM ubuntu"]
        assert parse_suppressions(lines) == {2: {"dockerfile-base-image", "dockerfile-user"}}

    def test_file_scope(self):
        """Test ignore-file is stored under the file scope."""
        lines = ["# dockaudit: ignore-file=compose-logging", "services: {}"]
        assert parse_suppressions(lines) == {FILE_SCOPE: {"compose-logging"}}

    def test_unrelated_comments(self):
        """Test ordinary comments suppress nothing."""
        assert parse_suppressions(["# build the app", "FROM alpine:3.20"]) == {}


class TestIsSuppressed:
    """Matching findings against suppressions."""

    def test_matches_rule_or_finding_name(self):
        """Test either the rule name or the finding name suppresses."""
        suppressions = {4: {"dockerfile-root-user"}}
        assert is_suppressed(suppressions, 4, "dockerfile-root-user", "dockerfile-user")
        assert is_suppressed({4: {"dockerfile-user"}}, 4, "dockerfile-root-user", "dockerfile-user")
        assert not is_suppressed(suppressions, 5, "dockerfile-root-user")

    def test_all(self):
        """Test 'all' suppresses any rule on the line."""
        assert is_suppressed({2: {"all"}}, 2, "compose-container-hardening")

    def test_file_scope_applies_everywhere(self):
        """Test file-scoped suppressions apply to every line."""
        suppressions = {FILE_SCOPE: {"compose-logging"}}
        assert is_suppressed(suppressions, 1, "compose-logging")
        assert is_suppressed(suppressions, 40, "compose-missing-logging", "compose-logging")
        assert not is_suppressed(suppressions, 40, "compose-restart-policy")
