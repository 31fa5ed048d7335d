"""Weave Configuration — project-level .weaverc.yml support.

Loads configuration from .weaverc.yml (or .weaverc.yaml, .weaverc.json,
weave.config.yml) found in the script's directory or any parent.

Example .weaverc.yml:
    error_format: json     # "text" (default) or "json"
    log_level: DEBUG       # standard logging level name
    max_call_depth: 500
    dump_tokens: false
    dump_ast: false
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import yaml

from weave.interpreter import DEFAULT_MAX_CALL_DEPTH

logger = logging.getLogger(__name__)

ERROR_FORMATS = ("text", "json")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConfigError(Exception):
    """Raised when a configuration file cannot be read or has invalid values."""


@dataclass
class WeaveConfig:
    """Interpreter settings."""
    error_format: str = "text"
    log_level: str = "WARNING"
    max_call_depth: int = DEFAULT_MAX_CALL_DEPTH
    dump_tokens: bool = False
    dump_ast: bool = False
    # Path of the file these settings came from, if any
    source: Optional[str] = None


# ---------------------------------------------------------------------------
# Config file names (in priority order)
# ---------------------------------------------------------------------------

_CONFIG_FILES = [
    ".weaverc.yml",
    ".weaverc.yaml",
    ".weaverc.json",
    "weave.config.yml",
]


def find_config(start_dir: str = ".") -> Optional[str]:
    """Find the nearest config file by walking up from start_dir."""
    current = os.path.abspath(start_dir)
    while True:
        for name in _CONFIG_FILES:
            path = os.path.join(current, name)
            if os.path.isfile(path):
                return path
        parent = os.path.dirname(current)
        if parent == current:
            break
        current = parent
    return None


def load_config(path: Optional[str] = None, start_dir: str = ".") -> WeaveConfig:
    """Load configuration from a file.

    If no path is given, searches for a config file starting from start_dir.
    If no config file is found, returns defaults.
    """
    if path is None:
        path = find_config(start_dir)

    if path is None:
        return WeaveConfig()

    try:
        with open(path, "r", encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        raise ConfigError(f"cannot read config file '{path}': {e}") from e

    try:
        if path.endswith(".json"):
            data = json.loads(content)
        else:
            data = yaml.safe_load(content)
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"invalid config file '{path}': {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigError(f"config file '{path}' must contain a mapping")

    logger.debug("loaded config from %s", path)
    config = _dict_to_config(data)
    config.source = path
    return config


def _dict_to_config(data: Dict[str, Any]) -> WeaveConfig:
    """Convert a parsed dict to WeaveConfig. Unknown keys are ignored."""
    config = WeaveConfig()

    if "error_format" in data:
        fmt = str(data["error_format"]).lower()
        if fmt not in ERROR_FORMATS:
            raise ConfigError(f"error_format must be one of {', '.join(ERROR_FORMATS)}, got '{fmt}'")
        config.error_format = fmt
    if "log_level" in data:
        level = str(data["log_level"]).upper()
        if level not in LOG_LEVELS:
            raise ConfigError(f"log_level must be one of {', '.join(LOG_LEVELS)}, got '{level}'")
        config.log_level = level
    if "max_call_depth" in data:
        depth = data["max_call_depth"]
        if isinstance(depth, bool) or not isinstance(depth, int) or depth < 1:
            raise ConfigError(f"max_call_depth must be a positive integer, got {depth!r}")
        config.max_call_depth = depth
    if "dump_tokens" in data:
        config.dump_tokens = bool(data["dump_tokens"])
    if "dump_ast" in data:
        config.dump_ast = bool(data["dump_ast"])

    return config
