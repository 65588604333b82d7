"""Centralized constants for dockaudit.

Single source of truth for paths, file name patterns and limits used
across the package.
"""

from pathlib import Path

# ============================================================================
# OUTPUT DIRECTORIES
# ============================================================================

# Working directory for dockaudit artifacts (error log, optional log file)
STATE_DIR = Path("./.dockaudit")

ERROR_LOG_FILE = STATE_DIR / "error.log"

# Project-level configuration file, looked up in the lint root
CONFIG_FILE_NAME = ".dockaudit.json"

# ============================================================================
# FILE CLASSIFICATION
# ============================================================================

DOCKERFILE_NAMES = frozenset([
    "dockerfile",
    "containerfile",
])

# Dockerfile.prod, api.Dockerfile, Containerfile.dev ...
DOCKERFILE_PREFIXES = ("dockerfile.", "containerfile.")
DOCKERFILE_SUFFIXES = (".dockerfile", ".containerfile")

COMPOSE_NAMES = frozenset([
    "docker-compose.yml",
    "docker-compose.yaml",
    "compose.yml",
    "compose.yaml",
])

# docker-compose.override.yml, compose.prod.yaml ...
COMPOSE_PREFIXES = ("docker-compose.", "compose.")
COMPOSE_EXTENSIONS = (".yml", ".yaml")

DOCKERIGNORE_NAME = ".dockerignore"

# ============================================================================
# FILE PROCESSING LIMITS
# ============================================================================

# Maximum file size to lint (default: 2MB)
DEFAULT_MAX_FILE_SIZE = 2 * 1024 * 1024

# Directories never descended into during discovery
SKIP_DIRS: frozenset[str] = frozenset([
    ".git",
    ".hg",
    ".svn",
    "node_modules",
    "bower_components",
    "vendor",
    ".venv",
    "venv",
    "virtualenv",
    "__pycache__",
    ".mypy_cache",
    ".pytest_cache",
    ".ruff_cache",
    ".tox",
    ".nox",
    "dist",
    "build",
    "target",
    ".dockaudit",
])

# ============================================================================
# ENVIRONMENT VARIABLES
# ============================================================================

ENV_PREFIX = "DOCKAUDIT"
