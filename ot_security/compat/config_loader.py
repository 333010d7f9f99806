#!/usr/bin/env python3
# CUI // SP-CTI
"""Operational configuration for the OT security engine.

Reads args/ot_security_config.yaml (or the file named by OT_MCP_CONFIG_PATH)
and deep-merges it over DEFAULT_CONFIG. A missing file yields the defaults;
a file that is present but unparseable raises ConfigurationError. Query
operations log that as a store fault; the server CLI fails at start.

Usage:
    from ot_security.compat.config_loader import load_config, get_setting

    config = load_config()
    limit = get_setting("search.default_limit", config=config)
"""

import copy
import os
from pathlib import Path
from typing import Any, Optional, Union

import yaml

from ot_security.resilience.errors import ConfigurationError

# Project root: 3 levels up from ot_security/compat/config_loader.py
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
CONFIG_PATH = _PROJECT_ROOT / "args" / "ot_security_config.yaml"

DEFAULT_CONFIG = {
    "database": {
        "path": None,
    },
    "search": {
        "default_limit": 10,
        "max_limit": 100,
        "snippet_length": 150,
        "context_before": 50,
        "context_after": 100,
    },
    "server": {
        "name": "ot-security-mcp",
        "version": "0.1.0",
    },
    "logging": {
        "level": "INFO",
    },
}


def get_config_path(explicit: Optional[Union[str, Path]] = None) -> Path:
    """Resolve the config file path: explicit > OT_MCP_CONFIG_PATH > default."""
    if explicit:
        return Path(explicit)

    env_path = os.environ.get("OT_MCP_CONFIG_PATH")
    if env_path:
        return Path(env_path)

    return CONFIG_PATH


def _deep_merge(base, override):
    """Deep merge two dicts. Override values win for non-dict values."""
    result = copy.deepcopy(base)
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = copy.deepcopy(value)
    return result


def load_config(config_path: Optional[Union[str, Path]] = None) -> dict:
    """Load configuration merged over DEFAULT_CONFIG.

    Raises:
        ConfigurationError: The file exists but is not a YAML mapping.
    """
    path = get_config_path(config_path)
    if not path.exists():
        return copy.deepcopy(DEFAULT_CONFIG)

    try:
        with open(path, "r", encoding="utf-8") as f:
            loaded = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Cannot read config {path}: {exc}", config_key=str(path))

    if not isinstance(loaded, dict):
        raise ConfigurationError(
            f"Config {path} must contain a mapping, got {type(loaded).__name__}",
            config_key=str(path),
        )
    return _deep_merge(DEFAULT_CONFIG, loaded)


def get_setting(dotted_key: str, default: Any = None, config: Optional[dict] = None) -> Any:
    """Look up a dotted key such as "search.max_limit"."""
    node = config if config is not None else load_config()
    for part in dotted_key.split("."):
        if not isinstance(node, dict) or part not in node:
            return default
        node = node[part]
    return node
