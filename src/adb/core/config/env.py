"""
Layered ``.env`` support for the adb CLI.

Two files can seed ``ADB_*`` settings before the config loader reads the
environment:

    $XDG_CONFIG_HOME/adb/.env      per-user defaults
    <workspace>/.env               per-workspace values, override the user file

Anything already exported in the shell is left untouched.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from pathlib import Path

from dotenv import dotenv_values

from .loader import get_xdg_config_home

logger = logging.getLogger(__name__)

ENV_FILENAME = ".env"


def get_user_env_path() -> Path:
    return get_xdg_config_home() / "adb" / ENV_FILENAME


def read_env_file(path: Path) -> dict[str, str]:
    """Parse one env file; a missing file or a bare ``KEY`` line contributes nothing."""
    if not path.is_file():
        return {}
    return {key: value for key, value in dotenv_values(path).items() if value is not None}


def merge_env_files(paths: Iterable[Path]) -> dict[str, str]:
    """Read ``paths`` in order. A later file's value replaces an earlier one."""
    merged: dict[str, str] = {}
    for path in paths:
        values = read_env_file(Path(path))
        if values:
            logger.debug("Read %d variable(s) from %s", len(values), path)
        merged.update(values)
    return merged


def load_layered_env(
    *,
    workspace_dir: Path | None = None,
    user_env_paths: Iterable[Path] | None = None,
    workspace_env_paths: Iterable[Path] | None = None,
) -> dict[str, str]:
    """
    Export variables from the user and workspace env files.

    Args:
        workspace_dir: Directory holding the workspace ``.env`` (default: cwd)
        user_env_paths: Replaces the default user env file
        workspace_env_paths: Replaces the default workspace env file

    Returns:
        The variables that were exported, after layering
    """
    if user_env_paths is None:
        user_env_paths = [get_user_env_path()]
    if workspace_env_paths is None:
        workspace_env_paths = [(workspace_dir or Path.cwd()) / ENV_FILENAME]

    layered = merge_env_files([*user_env_paths, *workspace_env_paths])
    applied = {key: value for key, value in layered.items() if key not in os.environ}
    os.environ.update(applied)

    shadowed = sorted(layered.keys() - applied.keys())
    if shadowed:
        logger.debug("Shell environment wins for %s", ", ".join(shadowed))
    return applied
