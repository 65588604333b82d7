"""Parser for Dockerfile files.

This module turns a Dockerfile into an ordered instruction sequence grouped
by build stage, for best-practice rules to evaluate. Parsing is delegated to
the dockerfile-parse library; this module adds line numbers, flag
extraction, stage grouping, parser directives and suppression comments.
"""

import io
import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from dockerfile_parse import DockerfileParser as DFParser

from dockaudit.parsers.suppressions import parse_suppressions
from dockaudit.utils.logging import logger

# Instructions that accept BuildKit heredocs (RUN <<EOF ... EOF)
HEREDOC_INSTRUCTIONS = frozenset(["RUN", "COPY", "ADD"])

_DIRECTIVE_RE = re.compile(r"^#\s*([A-Za-z][A-Za-z0-9_-]*)\s*=\s*(\S.*?)\s*$")
_LEADING_FLAGS_RE = re.compile(r"^\s*(?:--\S+\s*)+")
_HEREDOC_RE = re.compile(r"(?<!<)<<(?!<)-?([\"']?)([A-Za-z_][A-Za-z0-9_]*)\1")


@dataclass
class Instruction:
    """A single Dockerfile instruction."""

    instruction: str
    value: str
    line: int
    end_line: int
    original: str = ""
    flags: list[tuple[str, str]] = field(default_factory=list)
    stage_index: int = -1

    @property
    def arguments(self) -> str:
        """Instruction value with leading --flags removed."""
        return _LEADING_FLAGS_RE.sub("", self.value).strip()

    @property
    def exec_args(self) -> list[str] | None:
        """JSON array arguments, or None when written in shell form."""
        args = self.arguments
        if self.instruction == "HEALTHCHECK":
            parts = args.split(None, 1)
            if len(parts) != 2 or parts[0].upper() != "CMD":
                return None
            args = parts[1]
        if not args.startswith("["):
            return None
        try:
            parsed = json.loads(args)
        except json.JSONDecodeError:
            return None
        if isinstance(parsed, list) and all(isinstance(item, str) for item in parsed):
            return parsed
        return None

    @property
    def is_exec_form(self) -> bool:
        return self.exec_args is not None

    def flag(self, name: str) -> str | None:
        """Return the first value of --name, or None when absent."""
        for flag_name, flag_value in self.flags:
            if flag_name == name:
                return flag_value
        return None

    def flag_values(self, name: str) -> list[str]:
        return [flag_value for flag_name, flag_value in self.flags if flag_name == name]


@dataclass
class BuildStage:
    """One FROM block of a (possibly multi-stage) Dockerfile."""

    index: int
    base_image: str
    line: int
    name: str | None = None
    platform: str | None = None
    parent_stage: str | None = None
    instructions: list[Instruction] = field(default_factory=list)

    @property
    def from_instruction(self) -> Instruction:
        return self.instructions[0]

    @property
    def label(self) -> str:
        """Human-readable stage label for messages."""
        return self.name or f"stage {self.index}"

    def find(self, keyword: str) -> list[Instruction]:
        keyword = keyword.upper()
        return [inst for inst in self.instructions if inst.instruction == keyword]

    def last(self, keyword: str) -> Instruction | None:
        matches = self.find(keyword)
        return matches[-1] if matches else None

    @property
    def user(self) -> str | None:
        """Effective USER at the end of the stage (None when never set)."""
        inst = self.last("USER")
        return inst.arguments.strip() if inst else None


@dataclass
class Dockerfile:
    """Parsed Dockerfile."""

    path: str
    content: str = ""
    instructions: list[Instruction] = field(default_factory=list)
    stages: list[BuildStage] = field(default_factory=list)
    global_args: list[Instruction] = field(default_factory=list)
    directives: dict[str, str] = field(default_factory=dict)
    suppressions: dict[int, set[str]] = field(default_factory=dict)
    error: str | None = None

    @property
    def final_stage(self) -> BuildStage | None:
        return self.stages[-1] if self.stages else None

    @property
    def is_multistage(self) -> bool:
        return len(self.stages) > 1

    @property
    def stage_names(self) -> list[str]:
        return [stage.name for stage in self.stages if stage.name]

    def find(self, keyword: str) -> list[Instruction]:
        keyword = keyword.upper()
        return [inst for inst in self.instructions if inst.instruction == keyword]

    def stage_by_name(self, name: str) -> BuildStage | None:
        name = name.lower()
        for stage in self.stages:
            if stage.name == name:
                return stage
        return None

    def lineage(self, stage: BuildStage) -> list[BuildStage]:
        """The stage followed by the stages it is built FROM, nearest first."""
        chain = [stage]
        current = stage
        while current.parent_stage:
            parent = None
            for candidate in self.stages[: current.index]:
                if candidate.name == current.parent_stage:
                    parent = candidate
            if parent is None or parent in chain:
                break
            chain.append(parent)
            current = parent
        return chain

    def runtime_base_image(self) -> str | None:
        """External image the final stage ultimately builds on."""
        if not self.final_stage:
            return None
        return self.lineage(self.final_stage)[-1].base_image

    def get_lines(self) -> list[str]:
        return self.content.splitlines() if self.content else []


class DockerfileParser:
    """Parser for Dockerfile files."""

    def parse_file(self, file_path: Path, display_path: str | None = None) -> Dockerfile:
        """
        Parse a Dockerfile from disk.

        Args:
            file_path: Path to the Dockerfile
            display_path: Path to record on the result (defaults to file_path)

        Returns:
            Parsed Dockerfile. Read failures are reported in ``error``.
        """
        path_str = display_path or str(file_path)
        try:
            with open(file_path, encoding="utf-8") as f:
                content = f.read()
        except FileNotFoundError:
            return Dockerfile(path=path_str, error=f"File not found: {file_path}")
        except PermissionError:
            return Dockerfile(path=path_str, error=f"Permission denied: {file_path}")
        except UnicodeDecodeError as e:
            return Dockerfile(path=path_str, error=f"Not a UTF-8 text file: {e.reason}")

        return self.parse_content(content, path_str)

    def parse_content(self, content: str, file_path: str = "Dockerfile") -> Dockerfile:
        """
        Parse Dockerfile content string.

        Args:
            content: Dockerfile content as string
            file_path: File path for reference

        Returns:
            Parsed Dockerfile with instructions grouped into stages
        """
        dockerfile = Dockerfile(path=file_path, content=content)
        lines = content.splitlines()
        dockerfile.directives = _parse_directives(lines)
        dockerfile.suppressions = parse_suppressions(lines)

        try:
            # env_replace=False: rules must see values exactly as written
            parser = DFParser(fileobj=io.StringIO(content), env_replace=False)
            structure = parser.structure
        except Exception as e:
            logger.debug("dockerfile-parse failed on {}: {}", file_path, e)
            dockerfile.error = f"Parsing error: {e}"
            return dockerfile

        instructions = []
        for entry in structure:
            instruction = _build_instruction(entry)
            if instruction is not None:
                instructions.append(instruction)

        dockerfile.instructions = _fold_heredocs(instructions, lines)
        _group_stages(dockerfile)
        logger.debug(
            "Parsed {}: {} instructions, {} stages",
            file_path,
            len(dockerfile.instructions),
            len(dockerfile.stages),
        )
        return dockerfile


def _build_instruction(entry: dict[str, Any]) -> Instruction | None:
    """Convert one dockerfile-parse structure entry into an Instruction."""
    keyword = str(entry.get("instruction", "")).upper()
    if not keyword or keyword == "COMMENT":
        return None

    value = str(entry.get("value", ""))
    start = int(entry.get("startline", 0)) + 1
    end = int(entry.get("endline", start - 1)) + 1

    return Instruction(
        instruction=keyword,
        value=value,
        line=start,
        end_line=end,
        original=str(entry.get("content", "")).rstrip("\n"),
        flags=_parse_flags(value),
    )


def _fold_heredocs(instructions: list[Instruction], lines: list[str]) -> list[Instruction]:
    """Attach heredoc bodies to the RUN/COPY/ADD that opens them.

    dockerfile-parse does not know BuildKit heredocs: the opener keeps only
    ``<<EOF`` and every body line comes back as an instruction of its own.
    Bodies are appended to the opener's value (one command per line) and the
    bogus instructions inside them are dropped.
    """
    folded = []
    consumed_until = 0

    for inst in instructions:
        if inst.line <= consumed_until:
            continue
        folded.append(inst)
        if inst.instruction not in HEREDOC_INSTRUCTIONS:
            continue

        terminators = [match.group(2) for match in _HEREDOC_RE.finditer(inst.value)]
        if not terminators:
            continue

        body = []
        # end_line is 1-based, so it indexes the line after the opener
        index = inst.end_line
        for terminator in terminators:
            while index < len(lines):
                text = lines[index]
                index += 1
                if text.strip() == terminator:
                    break
                body.append(text)

        inst.value = "\n".join([inst.value, *body])
        inst.original = "\n".join(lines[inst.line - 1:index])
        inst.end_line = index
        consumed_until = index

    return folded


def _parse_flags(value: str) -> list[tuple[str, str]]:
    """Extract leading --name[=value] options (COPY --from=..., RUN --mount=...)."""
    flags = []
    for token in value.split():
        if not token.startswith("--"):
            break
        name, _, flag_value = token[2:].partition("=")
        flags.append((name.lower(), flag_value))
    return flags


def _parse_directives(lines: list[str]) -> dict[str, str]:
    """Read parser directives (# syntax=..., # escape=...) from the file head.

    Directives are only honoured before the first blank line, regular comment
    or instruction.
    """
    directives: dict[str, str] = {}
    for line in lines:
        stripped = line.strip()
        if not stripped.startswith("#"):
            break
        match = _DIRECTIVE_RE.match(stripped)
        if not match:
            break
        key = match.group(1).lower()
        if key in directives:
            break
        directives[key] = match.group(2)
    return directives


def _group_stages(dockerfile: Dockerfile) -> None:
    """Split instructions into BuildStage blocks at each FROM."""
    known_names: set[str] = set()
    current: BuildStage | None = None

    for inst in dockerfile.instructions:
        if inst.instruction == "FROM":
            image, name = _split_from(inst.arguments)
            current = BuildStage(
                index=len(dockerfile.stages),
                base_image=image,
                line=inst.line,
                name=name,
                platform=inst.flag("platform"),
            )
            if image.lower() in known_names:
                current.parent_stage = image.lower()
            if name:
                known_names.add(name)
            dockerfile.stages.append(current)

        if current is None:
            # ARG before the first FROM is global to the build
            if inst.instruction == "ARG":
                dockerfile.global_args.append(inst)
            continue

        inst.stage_index = current.index
        current.instructions.append(inst)


def _split_from(arguments: str) -> tuple[str, str | None]:
    """Split 'image[:tag] [AS name]' into (image, lowercased name)."""
    tokens = arguments.split()
    if not tokens:
        return "", None
    image = tokens[0]
    if len(tokens) >= 3 and tokens[1].lower() == "as":
        return image, tokens[2].lower()
    return image, None


def split_image_reference(image: str) -> tuple[str, str | None, str | None]:
    """Split an image reference into (name, tag, digest).

    Handles registry ports: ``registry:5000/team/app:1.2`` has tag ``1.2``.
    """
    digest = None
    if "@" in image:
        image, digest = image.split("@", 1)

    tag = None
    last_slash = image.rfind("/")
    last_colon = image.rfind(":")
    if last_colon > last_slash:
        image, tag = image[:last_colon], image[last_colon + 1:]

    return image, tag, digest
