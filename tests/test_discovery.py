"""Tests for lint target discovery."""

import pytest

from dockaudit.config_runtime import load_runtime_config
from dockaudit.discovery import FileWalker, classify_file, collect_targets


class TestClassifyFile:
    """File names map to target kinds."""

    @pytest.mark.parametrize(
        "name,kind",
        [
            ("Dockerfile", "dockerfile"),
            ("Containerfile", "dockerfile"),
            ("Dockerfile.prod", "dockerfile"),
            ("api.Dockerfile", "dockerfile"),
            ("docker-compose.yml", "compose"),
            ("compose.yaml", "compose"),
            ("docker-compose.override.yml", "compose"),
            ("compose.prod.yaml", "compose"),
            ("Dockerfile.dockerignore", None),
            ("docker-compose.json", None),
            ("README.md", None),
        ],
    )
    def test_classify(self, name, kind):
        """Test recognised and ignored names."""
        assert classify_file(name) == kind


class TestFileWalker:
    """Directory walking."""

    def test_walk_skips_dependency_dirs(self, tmp_path, write_file):
        """Test node_modules and .git are never descended into."""
        write_file("Dockerfile", "FROM alpine:3.20\n")
        write_file("services/api/Dockerfile", "FROM alpine:3.20\n")
        write_file("docker-compose.yml", "services: {}\n")
        write_file("node_modules/pkg/Dockerfile", "FROM alpine:3.20\n")
        write_file(".git/Dockerfile", "FROM alpine:3.20\n")

        targets, stats = FileWalker(tmp_path, load_runtime_config(tmp_path)).walk()
        assert [t.display_path for t in targets] == [
            "Dockerfile",
            "docker-compose.yml",
            "services/api/Dockerfile",
        ]
        assert stats["skipped_dirs"] == 2
        assert stats["lintable_files"] == 3

    def test_large_files_skipped(self, tmp_path, write_file):
        """Test files larger than limits.max_file_size are left out."""
        write_file("Dockerfile", "FROM alpine:3.20\n" + "# padding\n" * 100)
        config = load_runtime_config(tmp_path)
        config["limits"]["max_file_size"] = 64
        targets, stats = FileWalker(tmp_path, config).walk()
        assert targets == []
        assert stats["large_files"] == 1

    def test_file_at_size_limit_is_linted(self, tmp_path, write_file):
        """Test a file of exactly limits.max_file_size bytes is kept."""
        dockerfile = write_file("Dockerfile", "FROM alpine:3.20\n")
        config = load_runtime_config(tmp_path)
        config["limits"]["max_file_size"] = dockerfile.stat().st_size
        targets, stats = FileWalker(tmp_path, config).walk()
        assert [t.display_path for t in targets] == ["Dockerfile"]
        assert stats["large_files"] == 0

    def test_exclude_patterns(self, tmp_path, write_file):
        """Test exclude patterns match names and relative paths."""
        write_file("Dockerfile", "FROM alpine:3.20\n")
        write_file("examples/Dockerfile", "FROM alpine:3.20\n")
        walker = FileWalker(tmp_path, load_runtime_config(tmp_path), exclude_patterns=["examples/*"])
        targets, _stats = walker.walk()
        assert [t.display_path for t in targets] == ["Dockerfile"]


class TestCollectTargets:
    """CLI path arguments."""

    def test_directory_display_paths(self, tmp_path, write_file):
        """Test walked files are displayed below the path given."""
        write_file("app/Dockerfile", "FROM alpine:3.20\n")
        targets, missing = collect_targets([str(tmp_path / "app")], load_runtime_config(tmp_path))
        assert missing == []
        assert [t.display_path for t in targets] == [(tmp_path / "app" / "Dockerfile").as_posix()]
        assert targets[0].kind == "dockerfile"

    def test_explicit_files(self, tmp_path, write_file):
        """Test unknown names are Dockerfiles unless they are YAML."""
        build = write_file("build.docker", "FROM alpine:3.20\n")
        stack = write_file("stack.yml", "services: {}\n")
        targets, _missing = collect_targets([str(build), str(stack)], load_runtime_config(tmp_path))
        assert [t.kind for t in targets] == ["dockerfile", "compose"]

    def test_explicit_large_file_skipped(self, tmp_path, write_file):
        """Test the size limit also applies to files named on the command line."""
        dockerfile = write_file("Dockerfile", "FROM alpine:3.20\n" + "# padding\n" * 100)
        config = load_runtime_config(tmp_path)
        config["limits"]["max_file_size"] = 64
        targets, missing = collect_targets([str(dockerfile)], config)
        assert targets == []
        assert missing == []

    def test_duplicates_and_missing(self, tmp_path, write_file):
        """Test a file reached twice is linted once and missing paths are returned."""
        dockerfile = write_file("Dockerfile", "FROM alpine:3.20\n")
        targets, missing = collect_targets(
            [str(tmp_path), str(dockerfile), str(tmp_path / "nope")],
            load_runtime_config(tmp_path),
        )
        assert len(targets) == 1
        assert missing == [str(tmp_path / "nope")]
