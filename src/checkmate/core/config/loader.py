"""
Configuration loading with multi-layer merging.

Implements the configuration precedence chain:
    defaults < user config < project config < env vars
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

from .defaults import default_metadata
from .models import CheckmateConfig

logger = logging.getLogger(__name__)

# Global cache to avoid reloading config multiple times per session
_config_cache: CheckmateConfig | None = None

_TRUE_VALUES = ("1", "true", "yes", "on")


def get_xdg_config_home() -> Path:
    """
    Get XDG config home directory.

    Returns:
        Path to config directory (defaults to ~/.config)
    """
    if xdg_home := os.environ.get("XDG_CONFIG_HOME"):
        return Path(xdg_home)
    return Path.home() / ".config"


def get_user_config_path() -> Path:
    """
    Get path to user configuration file.

    Returns:
        Path to ~/.config/checkmate/config.json (or XDG equivalent)
    """
    return get_xdg_config_home() / "checkmate" / "config.json"


def get_project_config_path(cwd: Path | None = None) -> Path:
    """
    Get path to project configuration file.

    Args:
        cwd: Working directory to search from (defaults to current directory)

    Returns:
        Path to .checkmate.json in the project root
    """
    if cwd is None:
        cwd = Path.cwd()
    return cwd / ".checkmate.json"


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries.

    Values in `override` take precedence over values in `base`. Nested dicts
    are merged, not replaced; every other value (lists included) is replaced.

    Example:
        >>> deep_merge({"archive": {"newest_first": True, "parent_spacing": 0}},
        ...            {"archive": {"parent_spacing": 1}})
        {'archive': {'newest_first': True, 'parent_spacing': 1}}
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def load_json_file(path: Path) -> dict[str, Any] | None:
    """
    Load a JSON file, returning None if it doesn't exist or is invalid.

    Args:
        path: Path to JSON file

    Returns:
        Parsed JSON as dict, or None if file doesn't exist or can't be parsed
    """
    if not path.exists():
        return None

    try:
        with path.open(encoding="utf-8") as f:
            data = json.load(f)
            if isinstance(data, dict):
                return data
            logger.warning(f"Ignoring config at {path}: top level is not an object")
            return None
    except (json.JSONDecodeError, OSError) as e:
        logger.warning(f"Failed to parse config at {path}: {e}")
        return None


def _set_nested(config_dict: dict[str, Any], keys: tuple[str, ...], value: Any) -> None:
    node = config_dict
    for key in keys[:-1]:
        if not isinstance(node.get(key), dict):
            node[key] = {}
        node = node[key]
    node[keys[-1]] = value


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    Env vars have the highest precedence and override all config files.

    Supported env vars:
        CHECKMATE_SMART_TOGGLE - overrides smart_toggle.enabled
        CHECKMATE_DEFAULT_LIST_MARKER - overrides default_list_marker
        CHECKMATE_ARCHIVE_HEADING - overrides archive.heading.title
        CHECKMATE_LOG_LEVEL - overrides logging.level

    Args:
        config_dict: Configuration dictionary to override

    Returns:
        Configuration dictionary with env var overrides applied
    """
    result = deep_merge({}, config_dict)

    if (toggle_str := os.environ.get("CHECKMATE_SMART_TOGGLE")) is not None:
        _set_nested(result, ("smart_toggle", "enabled"), toggle_str.lower() in _TRUE_VALUES)

    if marker := os.environ.get("CHECKMATE_DEFAULT_LIST_MARKER"):
        if marker in ("-", "*", "+"):
            result["default_list_marker"] = marker
        else:
            logger.warning(f"Invalid CHECKMATE_DEFAULT_LIST_MARKER value '{marker}', ignoring")

    if heading := os.environ.get("CHECKMATE_ARCHIVE_HEADING"):
        _set_nested(result, ("archive", "heading", "title"), heading)

    if level := os.environ.get("CHECKMATE_LOG_LEVEL"):
        level = level.lower()
        if level in ("debug", "info", "warning", "error"):
            _set_nested(result, ("logging", "level"), level)
        else:
            logger.warning(f"Invalid CHECKMATE_LOG_LEVEL value '{level}', ignoring")

    return result


def get_default_config() -> dict[str, Any]:
    """
    Get hardcoded default configuration.

    Returns:
        Dictionary with default configuration values
    """
    return {
        "todo_states": {
            "unchecked": {"marker": "□", "markdown": [" "], "type": "incomplete", "order": 1},
            "checked": {"marker": "✔", "markdown": ["x", "X"], "type": "complete", "order": 2},
        },
        "default_list_marker": "-",
        "smart_toggle": {
            "enabled": True,
            "check_down": "direct_children",
            "uncheck_down": "none",
            "check_up": "direct_children",
            "uncheck_up": "direct_children",
        },
        "metadata": default_metadata(),
        "archive": {
            "heading": {"title": "Archive", "level": 2},
            "parent_spacing": 0,
            "newest_first": True,
        },
    }


def load_config(project_dir: Path | None = None, use_cache: bool = True) -> CheckmateConfig:
    """
    Load configuration with multi-layer merging.

    Configuration precedence (highest to lowest):
        1. Environment variables (CHECKMATE_*)
        2. Project config (.checkmate.json)
        3. User config (~/.config/checkmate/config.json)
        4. Hardcoded defaults

    Args:
        project_dir: Project directory to load .checkmate.json from (defaults to cwd)
        use_cache: If True, return cached config from previous load

    Returns:
        Validated CheckmateConfig instance

    Raises:
        ValidationError: If the merged config fails Pydantic validation

    Example:
        >>> config = load_config()
        >>> config.archive.heading.title
        'Archive'
    """
    global _config_cache

    if use_cache and _config_cache is not None:
        return _config_cache

    merged = get_default_config()

    user_config_path = get_user_config_path()
    if user_config := load_json_file(user_config_path):
        logger.debug(f"Merging user config from {user_config_path}")
        merged = deep_merge(merged, user_config)

    project_config_path = get_project_config_path(project_dir)
    if project_config := load_json_file(project_config_path):
        logger.debug(f"Merging project config from {project_config_path}")
        merged = deep_merge(merged, project_config)

    merged = apply_env_overrides(merged)

    config = CheckmateConfig(**merged)

    _config_cache = config

    return config


def clear_cache() -> None:
    """
    Clear the cached configuration.

    Useful for testing or when config files change during execution.
    """
    global _config_cache
    _config_cache = None
