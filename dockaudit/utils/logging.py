"""Centralized logging configuration using Loguru.

Human-readable output goes to stderr so that report output on stdout stays
clean (``dockaudit lint --format json | jq`` must keep working). JSON mode
emits one NDJSON record per log line for CI log collectors.

Usage:
    from dockaudit.utils.logging import logger
    logger.info("Message")
    logger.debug("Debug message")  # Only shows if DOCKAUDIT_LOG_LEVEL=DEBUG

Environment Variables:
    DOCKAUDIT_LOG_LEVEL: DEBUG|INFO|WARNING|ERROR (default: WARNING)
    DOCKAUDIT_LOG_JSON: 0|1 (default: 0, human-readable)
    DOCKAUDIT_LOG_FILE: path to log file (optional, always NDJSON)
    DOCKAUDIT_RUN_ID: correlation ID attached to JSON records
"""

import json
import os
import sys
import uuid
from pathlib import Path

from loguru import logger

# Remove default handler
logger.remove()

NUMERIC_LEVELS = {
    "TRACE": 10,
    "DEBUG": 20,
    "INFO": 30,
    "SUCCESS": 30,
    "WARNING": 40,
    "ERROR": 50,
    "CRITICAL": 60,
}

_log_level = os.environ.get("DOCKAUDIT_LOG_LEVEL", "WARNING").upper()
_json_mode = os.environ.get("DOCKAUDIT_LOG_JSON", "0") == "1"
_log_file = os.environ.get("DOCKAUDIT_LOG_FILE")
_run_id = os.environ.get("DOCKAUDIT_RUN_ID") or str(uuid.uuid4())


def _format_ndjson(record) -> str:
    """Serialize a loguru record as a single NDJSON line."""
    payload = {
        "level": NUMERIC_LEVELS.get(record["level"].name, 30),
        "time": int(record["time"].timestamp() * 1000),
        "msg": record["message"],
        "pid": record["process"].id,
        "run_id": record["extra"].get("run_id", _run_id),
    }

    for key, value in record["extra"].items():
        if key != "run_id":
            payload[key] = value

    if record["exception"]:
        payload["err"] = {
            "type": record["exception"].type.__name__ if record["exception"].type else "Error",
            "message": str(record["exception"].value) if record["exception"].value else "",
        }

    return json.dumps(payload, default=str)


def ndjson_sink(message):
    """Write NDJSON records to stderr.

    Never call logger.* inside a sink - causes infinite recursion.
    """
    sys.stderr.write(_format_ndjson(message.record) + "\n")
    sys.stderr.flush()


# No emojis - Windows CP1252 consoles must render this
_human_format = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}:{function}:{line}</cyan> - "
    "<level>{message}</level>"
)

logger.level("DEBUG", color="<blue>")
logger.level("INFO", color="<white>")
logger.level("WARNING", color="<yellow>")
logger.level("ERROR", color="<red>")
logger.level("CRITICAL", color="<red><bold>")

if _json_mode:
    logger.add(
        ndjson_sink,
        level=_log_level,
        colorize=False,
    )
else:
    logger.add(
        sys.stderr,
        level=_log_level,
        format=_human_format,
        colorize=None,  # Auto-detect: colors if TTY, plain if piped
    )

if _log_file:
    def _file_ndjson_sink(message):
        """Append NDJSON records to the configured log file."""
        with open(_log_file, "a", encoding="utf-8") as f:
            f.write(_format_ndjson(message.record) + "\n")

    logger.add(
        _file_ndjson_sink,
        level="DEBUG",
    )


def configure_file_logging(log_dir: Path, level: str = "DEBUG") -> int:
    """Add rotating file handler for persistent logs.

    Args:
        log_dir: Directory for log files (e.g., Path(".dockaudit"))
        level: Minimum log level for file output

    Returns:
        The loguru handler id, for later removal.
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "dockaudit.log"

    return logger.add(
        log_file,
        rotation="10 MB",
        retention="7 days",
        level=level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
    )


def get_run_id() -> str:
    """Get the current run ID for correlation."""
    return _run_id


__all__ = [
    "logger",
    "configure_file_logging",
    "get_run_id",
    "ndjson_sink",
]
