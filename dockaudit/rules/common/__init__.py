"""Common utility functions and pattern tables for rules.

Module Type: Utility Package
Usage: from dockaudit.rules.common.util import calculate_entropy
"""

from dockaudit.rules.common.util import (
    calculate_entropy,
    contains_private_key,
    copies_from_context,
    copy_sources,
    eol_image_advice,
    is_high_entropy,
    is_minimal_image,
    is_sensitive_key,
    is_unpinned,
    is_variable_reference,
    is_weak_password,
    is_whole_context_copy,
    matches_secret_pattern,
    official_name,
    resolve_build_args,
    uses_variable,
)

__all__ = [
    "calculate_entropy",
    "contains_private_key",
    "copies_from_context",
    "copy_sources",
    "eol_image_advice",
    "is_high_entropy",
    "is_minimal_image",
    "is_sensitive_key",
    "is_unpinned",
    "is_variable_reference",
    "is_weak_password",
    "is_whole_context_copy",
    "matches_secret_pattern",
    "official_name",
    "resolve_build_args",
    "uses_variable",
]
