"""
Configuration models and loading.

Pydantic models for adb configuration with multi-layer merging:
defaults < user < workspace < env vars.
"""

from .env import load_layered_env
from .loader import (
    clear_cache,
    get_user_config_path,
    get_workspace_config_path,
    get_xdg_config_home,
    load_config,
)
from .models import AdbConfig, BranchConfig, DefaultsConfig, TaskIdConfig

__all__ = [
    # Models
    "AdbConfig",
    "BranchConfig",
    "DefaultsConfig",
    "TaskIdConfig",
    # Loader functions
    "clear_cache",
    "get_user_config_path",
    "get_workspace_config_path",
    "get_xdg_config_home",
    "load_config",
    "load_layered_env",
]
