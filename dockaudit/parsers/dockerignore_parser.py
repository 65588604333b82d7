"""Parser for .dockerignore files.

Docker matches each pattern against paths relative to the build context.
Later patterns win, and a leading ``!`` re-includes previously excluded paths.
"""

import re
from dataclasses import dataclass, field
from pathlib import Path

from dockaudit.utils.constants import DOCKERIGNORE_NAME


@dataclass
class IgnorePattern:
    pattern: str
    negated: bool
    line: int
    regex: re.Pattern


@dataclass
class DockerIgnore:
    """Parsed .dockerignore file."""

    path: str
    patterns: list[IgnorePattern] = field(default_factory=list)
    error: str | None = None

    def excludes(self, relative_path: str) -> bool:
        """Return True if relative_path would be left out of the build context."""
        candidate = _clean(relative_path)
        excluded = False
        for pattern in self.patterns:
            if _matches(pattern.regex, candidate):
                excluded = not pattern.negated
        return excluded

    @property
    def raw_patterns(self) -> list[str]:
        return [("!" if p.negated else "") + p.pattern for p in self.patterns]


class DockerIgnoreParser:
    """Parser for .dockerignore files."""

    def parse_file(self, file_path: Path, display_path: str | None = None) -> DockerIgnore:
        path_str = display_path or str(file_path)
        try:
            content = Path(file_path).read_text(encoding="utf-8")
        except (FileNotFoundError, PermissionError, UnicodeDecodeError) as e:
            return DockerIgnore(path=path_str, error=str(e))
        return self.parse_content(content, path_str)

    def parse_content(self, content: str, file_path: str = ".dockerignore") -> DockerIgnore:
        ignore = DockerIgnore(path=file_path)
        for line_no, raw_line in enumerate(content.splitlines(), start=1):
            line = raw_line.strip()
            if not line or line.startswith("#"):
                continue
            negated = line.startswith("!")
            if negated:
                line = line[1:].strip()
            cleaned = _clean(line)
            if not cleaned:
                continue
            ignore.patterns.append(
                IgnorePattern(
                    pattern=cleaned,
                    negated=negated,
                    line=line_no,
                    regex=_compile(cleaned),
                )
            )
        return ignore


def _clean(path: str) -> str:
    """Normalize a pattern or path the way Docker's filepath.Clean does."""
    path = path.replace("\\", "/")
    parts = []
    for part in path.split("/"):
        if part in ("", "."):
            continue
        if part == ".." and parts:
            parts.pop()
            continue
        parts.append(part)
    return "/".join(parts)


def _compile(pattern: str) -> re.Pattern:
    """Translate a Go filepath.Match pattern with ``**`` support into a regex."""
    out = []
    i = 0
    while i < len(pattern):
        char = pattern[i]
        if char == "*":
            if pattern[i:i + 2] == "**":
                # '**/' matches zero or more directories
                if pattern[i:i + 3] == "**/":
                    out.append("(?:.*/)?")
                    i += 3
                else:
                    out.append(".*")
                    i += 2
                continue
            out.append("[^/]*")
        elif char == "?":
            out.append("[^/]")
        elif char == "[":
            closing = pattern.find("]", i + 1)
            if closing == -1:
                out.append(re.escape(char))
            else:
                body = pattern[i + 1:closing]
                if body.startswith("^"):
                    body = "!" + body[1:]
                if body.startswith("!"):
                    body = "^" + body[1:]
                out.append(f"[{body}]")
                i = closing
        elif char == "\\" and i + 1 < len(pattern):
            i += 1
            out.append(re.escape(pattern[i]))
        else:
            out.append(re.escape(char))
        i += 1
    return re.compile("".join(out) + r"\Z")


def _matches(regex: re.Pattern, path: str) -> bool:
    """A pattern excluding a directory also excludes everything below it."""
    if regex.match(path):
        return True
    parts = path.split("/")
    return any(regex.match("/".join(parts[:depth])) for depth in range(1, len(parts)))


def find_dockerignore(dockerfile_path: Path) -> Path | None:
    """Locate the ignore file for a Dockerfile built from its own directory.

    BuildKit prefers ``<Dockerfile name>.dockerignore`` next to the Dockerfile
    over the context's ``.dockerignore``.
    """
    dockerfile_path = Path(dockerfile_path)
    for candidate in (
        dockerfile_path.with_name(dockerfile_path.name + DOCKERIGNORE_NAME),
        dockerfile_path.parent / DOCKERIGNORE_NAME,
    ):
        if candidate.is_file():
            return candidate
    return None
