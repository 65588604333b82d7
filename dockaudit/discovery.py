"""Discovery of lintable files in a project tree.

Walks the given paths, skipping VCS, dependency and build directories, and
classifies what it finds as Dockerfiles or Compose files.
"""

import fnmatch
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from dockaudit.rules.base import TargetKind
from dockaudit.utils.constants import (
    COMPOSE_EXTENSIONS,
    COMPOSE_NAMES,
    COMPOSE_PREFIXES,
    DOCKERFILE_NAMES,
    DOCKERFILE_PREFIXES,
    DOCKERFILE_SUFFIXES,
    SKIP_DIRS,
)
from dockaudit.utils.logging import logger


@dataclass(frozen=True)
class LintTarget:
    """A file to lint."""

    path: Path
    display_path: str
    kind: TargetKind
    project_path: Path


def classify_file(filename: str) -> TargetKind | None:
    """Return the target kind for a file name, or None when it is not lintable."""
    name = filename.lower()

    if name in DOCKERFILE_NAMES or name.endswith(DOCKERFILE_SUFFIXES):
        return "dockerfile"
    if name.startswith(DOCKERFILE_PREFIXES) and not name.endswith(".dockerignore"):
        return "dockerfile"

    if name in COMPOSE_NAMES:
        return "compose"
    if name.startswith(COMPOSE_PREFIXES) and name.endswith(COMPOSE_EXTENSIONS):
        return "compose"

    return None


class FileWalker:
    """Handles directory walking and filtering."""

    def __init__(
        self,
        root_path: Path,
        config: dict[str, Any],
        follow_symlinks: bool = False,
        exclude_patterns: list[str] | None = None,
    ):
        """Initialize the file walker.

        Args:
            root_path: Root directory to walk
            config: Runtime configuration
            follow_symlinks: Whether to follow symbolic links
            exclude_patterns: Additional file name or relative path patterns to exclude
        """
        self.root_path = Path(root_path)
        self.config = config
        self.follow_symlinks = follow_symlinks
        self.exclude_patterns = exclude_patterns or []
        self.skip_dirs = set(SKIP_DIRS)

        self.stats = {
            "total_files": 0,
            "lintable_files": 0,
            "large_files": 0,
            "skipped_dirs": 0,
        }

    def process_file(self, file: Path, display_root: str | None = None) -> LintTarget | None:
        """Classify a single file and return it as a lint target.

        Args:
            file: Path to the file to process
            display_root: Prefix for the displayed path (the path the user typed)

        Returns:
            LintTarget, or None if the file should be skipped
        """
        kind = classify_file(file.name)
        if kind is None:
            return None

        relative_path = file.relative_to(self.root_path).as_posix()
        for pattern in self.exclude_patterns:
            if fnmatch.fnmatch(file.name, pattern) or fnmatch.fnmatch(relative_path, pattern):
                return None

        try:
            if not self.follow_symlinks and file.is_symlink():
                return None
            file_size = file.stat().st_size
        except OSError:
            return None

        if file_size > self.config["limits"]["max_file_size"]:
            self.stats["large_files"] += 1
            logger.warning("Skipping {} ({} bytes exceeds limits.max_file_size)", relative_path, file_size)
            return None

        self.stats["lintable_files"] += 1
        return LintTarget(
            path=file,
            display_path=_display_path(display_root, relative_path),
            kind=kind,
            project_path=self.root_path,
        )

    def walk(self, display_root: str | None = None) -> tuple[list[LintTarget], dict[str, Any]]:
        """Walk directory and collect lint targets.

        Returns:
            Tuple of (targets sorted by path, statistics)
        """
        targets = []

        for dirpath, dirnames, filenames in os.walk(self.root_path, followlinks=self.follow_symlinks):
            skipped_count = len([d for d in dirnames if d in self.skip_dirs])
            self.stats["skipped_dirs"] += skipped_count

            dirnames[:] = sorted(d for d in dirnames if d not in self.skip_dirs)

            if not os.access(dirpath, os.R_OK):
                continue

            for filename in filenames:
                self.stats["total_files"] += 1
                target = self.process_file(Path(dirpath) / filename, display_root)
                if target:
                    targets.append(target)

        targets.sort(key=lambda t: t.display_path)
        logger.debug(
            "Walked {}: {} lintable of {} files",
            self.root_path,
            self.stats["lintable_files"],
            self.stats["total_files"],
        )
        return targets, self.stats


def collect_targets(paths: list[str], config: dict[str, Any]) -> tuple[list[LintTarget], list[str]]:
    """Resolve CLI path arguments into lint targets.

    Directories are walked. Files are linted when their name is recognised;
    an explicitly named file with an unknown name is treated as a Dockerfile
    unless it has a YAML extension. Files larger than limits.max_file_size
    are skipped, whether walked or named.

    Returns:
        (targets without duplicates, paths that do not exist)
    """
    targets: list[LintTarget] = []
    missing: list[str] = []
    seen: set[Path] = set()

    for raw in paths:
        path = Path(raw)
        if path.is_dir():
            walker = FileWalker(path, config)
            found, _stats = walker.walk(display_root=raw)
        elif path.is_file():
            size = path.stat().st_size
            if size > config["limits"]["max_file_size"]:
                logger.warning("Skipping {} ({} bytes exceeds limits.max_file_size)", raw, size)
                continue
            kind = classify_file(path.name)
            if kind is None:
                kind = "compose" if path.suffix.lower() in COMPOSE_EXTENSIONS else "dockerfile"
            found = [
                LintTarget(
                    path=path,
                    display_path=Path(os.path.normpath(raw)).as_posix(),
                    kind=kind,
                    project_path=path.parent,
                )
            ]
        else:
            missing.append(raw)
            continue

        for target in found:
            resolved = target.path.resolve()
            if resolved in seen:
                continue
            seen.add(resolved)
            targets.append(target)

    return targets, missing


def _display_path(display_root: str | None, relative_path: str) -> str:
    if not display_root:
        return relative_path
    return Path(os.path.normpath(os.path.join(display_root, relative_path))).as_posix()
