"""Runtime configuration for dockaudit - centralized configuration management."""

import copy
import json
import os
from pathlib import Path
from typing import Any

from dockaudit.utils.constants import CONFIG_FILE_NAME, DEFAULT_MAX_FILE_SIZE, ENV_PREFIX
from dockaudit.utils.logging import logger

DEFAULTS = {
    "rules": {
        "disabled": [],
    },
    "limits": {
        "max_file_size": DEFAULT_MAX_FILE_SIZE,
    },
    "report": {
        "format": "text",
        "min_severity": "all",
        "fail_on": "high",
    },
}

SECTIONS = tuple(DEFAULTS)


def load_runtime_config(root: str | Path = ".") -> dict[str, Any]:
    """
    Load runtime configuration from .dockaudit.json and environment variables.

    Config priority (highest to lowest):
    1. Environment variables (DOCKAUDIT_<SECTION>_<KEY>)
    2. .dockaudit.json in the root directory
    3. Built-in defaults

    Unknown keys and values of the wrong type are ignored with a warning.

    Args:
        root: Directory to look for the config file in

    Returns:
        Configuration dictionary with merged values
    """

    cfg = copy.deepcopy(DEFAULTS)

    path = Path(root) / CONFIG_FILE_NAME
    try:
        if path.is_file():
            with open(path, encoding="utf-8") as f:
                user = json.load(f)

            if isinstance(user, dict):
                _merge_user_config(cfg, user, path)
            else:
                logger.warning("Ignoring {}: top level must be a JSON object", path)
    except (json.JSONDecodeError, OSError) as e:
        logger.warning("Could not load config file from {}: {}", path, e)
        logger.info("Continuing with default configuration")

    for section in cfg:
        for key in cfg[section]:
            env_var = f"{ENV_PREFIX}_{section.upper()}_{key.upper()}"
            if env_var in os.environ:
                value = os.environ[env_var]
                try:
                    default_value = cfg[section][key]
                    if isinstance(default_value, bool):
                        cfg[section][key] = value.strip().lower() in ("1", "true", "yes", "on")
                    elif isinstance(default_value, int):
                        cfg[section][key] = int(value)
                    elif isinstance(default_value, list):
                        cfg[section][key] = [v.strip() for v in value.split(",") if v.strip()]
                    else:
                        cfg[section][key] = value
                except (ValueError, AttributeError) as e:
                    logger.warning(
                        "Invalid value for environment variable {}: '{}' - {}", env_var, value, e
                    )
                    logger.info("Using value: {}", cfg[section][key])

    return cfg


def _merge_user_config(cfg: dict[str, Any], user: dict[str, Any], path: Path) -> None:
    """Copy type-compatible values from the user file into cfg in place."""
    for section, values in user.items():
        if section not in cfg:
            logger.warning("Unknown config section '{}' in {}", section, path)
            continue
        if not isinstance(values, dict):
            logger.warning("Config section '{}' in {} must be an object", section, path)
            continue

        for key, value in values.items():
            if key not in cfg[section]:
                logger.warning("Unknown config key '{}.{}' in {}", section, key, path)
                continue
            if isinstance(value, type(cfg[section][key])):
                cfg[section][key] = value
            else:
                logger.warning(
                    "Config key '{}.{}' in {} has wrong type {}, keeping default",
                    section,
                    key,
                    path,
                    type(value).__name__,
                )
