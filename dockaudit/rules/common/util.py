"""Shared helpers for Dockerfile and Compose rules.

This is a utility module, not a rule: it defines no METADATA and no find_*
function, so the registry never loads it as a rule.
"""

import math
import re

from dockaudit.parsers.dockerfile_parser import split_image_reference
from dockaudit.rules.common.patterns import (
    DISTROLESS_PREFIXES,
    EOL_IMAGES,
    MINIMAL_BASE_IMAGES,
    MINIMAL_TAG_MARKERS,
    NON_SECRET_KEYS,
    PRIVATE_KEY_INDICATORS,
    SECRET_VALUE_PATTERNS,
    SENSITIVE_ENV_KEYWORDS,
    WEAK_PASSWORDS,
)


def calculate_entropy(value: str) -> float:
    """Shannon entropy of a string in bits per character."""
    if not value:
        return 0.0

    char_freq: dict[str, int] = {}
    for char in value:
        char_freq[char] = char_freq.get(char, 0) + 1

    entropy = 0.0
    for count in char_freq.values():
        probability = count / len(value)
        entropy -= probability * math.log2(probability)

    return entropy


def is_high_entropy(value: str, threshold: float = 4.0) -> bool:
    """Check if a string looks random enough to be a secret."""
    if len(value) < 10:
        return False

    # Values with spaces are prose, not credentials
    if " " in value:
        return False

    return calculate_entropy(value) > threshold


def is_sensitive_key(key: str) -> bool:
    key_upper = key.upper()
    if key_upper in NON_SECRET_KEYS:
        return False
    return any(keyword in key_upper for keyword in SENSITIVE_ENV_KEYWORDS)


def is_variable_reference(value: str) -> bool:
    """True for values taken from the environment ($VAR, ${VAR:-x}) at build/run time."""
    return value.startswith("$")


def is_weak_password(value: str) -> bool:
    return value.lower() in WEAK_PASSWORDS


def matches_secret_pattern(value: str) -> bool:
    return any(pattern.match(value) for pattern in SECRET_VALUE_PATTERNS)


def contains_private_key(value: str) -> bool:
    return any(indicator in value for indicator in PRIVATE_KEY_INDICATORS)


def eol_image_advice(image: str) -> tuple[str, str] | None:
    """Return (matched prefix, upgrade advice) when the image is end-of-life."""
    name, tag, _digest = split_image_reference(image)
    if not tag:
        return None
    short_name = official_name(name)
    reference = f"{short_name}:{tag}"
    for prefix, advice in EOL_IMAGES.items():
        prefix_name, prefix_tag = prefix.split(":", 1)
        if short_name != prefix_name:
            continue
        # "node:12" matches "node:12", "node:12.22", "node:12-alpine" but not "node:120"
        if tag == prefix_tag or tag.startswith((prefix_tag + ".", prefix_tag + "-")):
            return reference, advice
    return None


def is_unpinned(image: str) -> bool:
    """No tag, or the moving 'latest' tag, and no digest."""
    _name, tag, digest = split_image_reference(image)
    if digest:
        return False
    return tag is None or tag == "latest"


def is_minimal_image(image: str) -> bool:
    """Distroless, scratch, alpine, slim and similar small runtime bases."""
    name, tag, _digest = split_image_reference(image)
    short_name = name.rsplit("/", 1)[-1]
    if name.startswith(DISTROLESS_PREFIXES) or short_name in MINIMAL_BASE_IMAGES:
        return True
    tag = (tag or "").lower()
    return any(marker in tag for marker in MINIMAL_TAG_MARKERS)


def uses_variable(image: str) -> bool:
    """Image references built from ARGs cannot be judged statically."""
    return "$" in image


def official_name(name: str) -> str:
    """Strip the Docker Hub library prefix: docker.io/library/node -> node."""
    for prefix in ("docker.io/library/", "index.docker.io/library/", "library/"):
        if name.startswith(prefix):
            return name[len(prefix):]
    return name


_VARIABLE_RE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)(?::-([^}]*))?\}|\$([A-Za-z_][A-Za-z0-9_]*)")


def resolve_build_args(image: str, global_args) -> str | None:
    """Substitute global ARG defaults into a FROM image reference.

    Returns None when a variable has no default and cannot be resolved.
    """
    defaults: dict[str, str] = {}
    for inst in global_args:
        name, sep, value = inst.arguments.partition("=")
        if sep:
            defaults[name.strip()] = value.strip().strip("\"'")

    unresolved = False

    def _substitute(match: re.Match) -> str:
        nonlocal unresolved
        name = match.group(1) or match.group(3)
        if name in defaults:
            return defaults[name]
        if match.group(2) is not None:
            return match.group(2)
        unresolved = True
        return match.group(0)

    resolved = _VARIABLE_RE.sub(_substitute, image)
    return None if unresolved else resolved


WHOLE_CONTEXT_SOURCES = frozenset([".", "./", "*", "./*", "./."])


def copy_sources(inst) -> list[str]:
    """Source paths of a COPY/ADD instruction (everything but the destination)."""
    if inst.exec_args is not None:
        args = inst.exec_args
    else:
        # Heredoc bodies follow the first line
        args = inst.arguments.split("\n", 1)[0].split()
    # Heredoc sources (COPY <<EOF /dst) are inline, not context files
    return [arg for arg in args[:-1] if not arg.startswith("<<")]


def copies_from_context(inst) -> bool:
    return inst.instruction in ("COPY", "ADD") and not inst.flag("from")


def is_whole_context_copy(inst) -> bool:
    """COPY . /app and similar: everything in the build context goes in."""
    if not copies_from_context(inst):
        return False
    return any(source in WHOLE_CONTEXT_SOURCES for source in copy_sources(inst))
