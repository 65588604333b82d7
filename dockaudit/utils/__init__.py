"""dockaudit utilities package."""

from .constants import CONFIG_FILE_NAME, ERROR_LOG_FILE, SKIP_DIRS, STATE_DIR
from .error_handler import handle_exceptions
from .exit_codes import ExitCodes
from .finding_priority import (
    PRIORITY_ORDER,
    SEVERITY_MAPPINGS,
    get_sort_key,
    normalize_severity,
    severity_at_least,
    sort_findings,
)
from .logging import logger

__all__ = [
    "STATE_DIR",
    "ERROR_LOG_FILE",
    "CONFIG_FILE_NAME",
    "SKIP_DIRS",
    "handle_exceptions",
    "ExitCodes",
    "PRIORITY_ORDER",
    "SEVERITY_MAPPINGS",
    "get_sort_key",
    "normalize_severity",
    "severity_at_least",
    "sort_findings",
    "logger",
]
