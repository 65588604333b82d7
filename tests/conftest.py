"""Pytest configuration and fixtures."""

import textwrap
from pathlib import Path

import pytest
from click.testing import CliRunner

from dockaudit.discovery import LintTarget, classify_file
from dockaudit.parsers import ComposeParser, DockerfileParser, DockerIgnoreParser
from dockaudit.rules.base import StandardRuleContext
from dockaudit.rules.orchestrator import RuleRegistry


def dedent(content: str) -> str:
    return textwrap.dedent(content).lstrip("\n")


def dockerfile_context(content: str, dockerignore: str | None = None, project: Path | None = None):
    """Build the context a Dockerfile rule receives, without touching disk."""
    content = dedent(content)
    project = project or Path(".")
    ignore = None
    if dockerignore is not None:
        ignore = DockerIgnoreParser().parse_content(dedent(dockerignore))
    return StandardRuleContext(
        file_path=project / "Dockerfile",
        display_path="Dockerfile",
        content=content,
        target="dockerfile",
        project_path=project,
        dockerfile=DockerfileParser().parse_content(content),
        dockerignore=ignore,
    )


def compose_context(content: str):
    """Build the context a Compose rule receives, without touching disk."""
    content = dedent(content)
    return StandardRuleContext(
        file_path=Path("docker-compose.yml"),
        display_path="docker-compose.yml",
        content=content,
        target="compose",
        project_path=Path("."),
        compose=ComposeParser().parse_content(content),
    )


def rule_names(result) -> list[str]:
    """Finding rule names of a rule result, in order."""
    findings = result.findings if hasattr(result, "findings") else result
    return [finding.rule_name for finding in findings]


@pytest.fixture
def runner():
    """Create CLI test runner."""
    return CliRunner()


@pytest.fixture(scope="session")
def registry():
    """Rule registry discovered once per test session."""
    return RuleRegistry()


@pytest.fixture
def write_file(tmp_path):
    """Write a dedented file below tmp_path and return its path."""

    def _write(relative: str, content: str) -> Path:
        path = tmp_path / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(dedent(content), encoding="utf-8")
        return path

    return _write


@pytest.fixture
def make_target(tmp_path):
    """Turn a file below tmp_path into a LintTarget."""

    def _target(path: Path) -> LintTarget:
        return LintTarget(
            path=path,
            display_path=path.relative_to(tmp_path).as_posix(),
            kind=classify_file(path.name) or "dockerfile",
            project_path=tmp_path,
        )

    return _target


GOOD_DOCKERFILE = """
    # syntax=docker/dockerfile:1
    FROM python:3.12-slim AS builder
    WORKDIR /app
    COPY requirements.txt .
    RUN --mount=type=cache,target=/root/.cache/pip pip install -r requirements.txt
    COPY src/ ./src/

    FROM python:3.12-slim
    WORKDIR /app
    COPY --from=builder /app /app
    USER 10001
    HEALTHCHECK --interval=30s CMD ["python", "-m", "app.health"]
    CMD ["python", "-m", "app"]
"""

GOOD_COMPOSE = """
    services:
      web:
        image: nginx:1.27-alpine
        restart: unless-stopped
        user: "101"
        cap_drop: [ALL]
        ports:
          - "127.0.0.1:8080:80"
        healthcheck:
          test: ["CMD", "wget", "-qO-", "http://localhost/"]
        logging:
          driver: json-file
          options:
            max-size: 10m
        deploy:
          resources:
            limits:
              memory: 256M
              cpus: "0.5"
"""
