"""
Configuration loading with multi-layer merging.

Implements the configuration precedence chain:
    defaults < user config < workspace .taskconfig < env vars
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from .models import AdbConfig

logger = logging.getLogger(__name__)

WORKSPACE_CONFIG_FILE = ".taskconfig"

# Global cache to avoid reloading config multiple times per process
_config_cache: AdbConfig | None = None


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
    """Path to ~/.config/adb/config.yaml (or XDG equivalent)."""
    return get_xdg_config_home() / "adb" / "config.yaml"


def get_workspace_config_path(workspace_dir: Path | None = None) -> Path:
    """Path to .taskconfig at the workspace root (defaults to cwd)."""
    if workspace_dir is None:
        workspace_dir = Path.cwd()
    return workspace_dir / WORKSPACE_CONFIG_FILE


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """
    Deep merge two dictionaries.

    Values in `override` take precedence over values in `base`; nested dicts
    are merged, not replaced.

    Example:
        >>> deep_merge({"a": 1, "b": {"x": 10}}, {"b": {"y": 30}})
        {'a': 1, 'b': {'x': 10, 'y': 30}}
    """
    result = base.copy()

    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value

    return result


def load_yaml_file(path: Path) -> dict[str, Any] | None:
    """
    Load a YAML mapping, returning None if the file is missing or invalid.

    A broken config file is reported and skipped so the remaining layers
    still apply.
    """
    if not path.exists():
        return None

    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (yaml.YAMLError, OSError) as e:
        logger.warning("Failed to parse config at %s: %s", path, e)
        return None

    if isinstance(data, dict):
        return data
    if data is not None:
        logger.warning("Ignoring config at %s: expected a mapping", path)
    return None


def _set(result: dict[str, Any], section: str, key: str, value: Any) -> None:
    result[section] = {**result.get(section, {}), key: value}


def apply_env_overrides(config_dict: dict[str, Any]) -> dict[str, Any]:
    """
    Apply environment variable overrides to configuration.

    Supported env vars:
        ADB_TASK_ID_PREFIX - overrides task_id.prefix
        ADB_TASK_ID_PAD_WIDTH - overrides task_id.pad_width
        ADB_DEFAULT_PRIORITY - overrides defaults.priority
        ADB_DEFAULT_OWNER - overrides defaults.owner
        ADB_BRANCH_PATTERN - overrides branch.pattern
    """
    result = config_dict.copy()

    if prefix := os.environ.get("ADB_TASK_ID_PREFIX"):
        _set(result, "task_id", "prefix", prefix)

    if width_str := os.environ.get("ADB_TASK_ID_PAD_WIDTH"):
        try:
            _set(result, "task_id", "pad_width", int(width_str))
        except ValueError:
            logger.warning("Invalid ADB_TASK_ID_PAD_WIDTH value '%s', ignoring", width_str)

    if priority := os.environ.get("ADB_DEFAULT_PRIORITY"):
        _set(result, "defaults", "priority", priority)

    if owner := os.environ.get("ADB_DEFAULT_OWNER"):
        _set(result, "defaults", "owner", owner)

    if pattern := os.environ.get("ADB_BRANCH_PATTERN"):
        _set(result, "branch", "pattern", pattern)

    return result


def get_default_config() -> dict[str, Any]:
    """Hardcoded default configuration."""
    return {
        "task_id": {"prefix": "TASK", "pad_width": 5},
        "defaults": {"priority": "P2", "owner": ""},
        "branch": {"pattern": "{type}/{id}-{description}"},
    }


def load_config(workspace_dir: Path | None = None, use_cache: bool = True) -> AdbConfig:
    """
    Load configuration with multi-layer merging.

    Configuration precedence (highest to lowest):
        1. Environment variables (ADB_*)
        2. Workspace config (.taskconfig)
        3. User config (~/.config/adb/config.yaml)
        4. Hardcoded defaults

    Args:
        workspace_dir: Workspace root holding .taskconfig (defaults to cwd)
        use_cache: If True, return cached config from previous load

    Raises:
        ValidationError: If the merged config fails Pydantic validation

    Example:
        >>> config = load_config()
        >>> config.task_id.prefix
        'TASK'
    """
    global _config_cache

    if use_cache and _config_cache is not None:
        return _config_cache

    merged = get_default_config()

    if user_config := load_yaml_file(get_user_config_path()):
        merged = deep_merge(merged, user_config)

    if workspace_config := load_yaml_file(get_workspace_config_path(workspace_dir)):
        merged = deep_merge(merged, workspace_config)

    merged = apply_env_overrides(merged)

    config = AdbConfig(**merged)
    _config_cache = config
    return config


def clear_cache() -> None:
    """Clear the cached configuration (tests, or config files changed)."""
    global _config_cache
    _config_cache = None
