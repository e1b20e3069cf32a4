"""
Configuration models and loading.

This module provides Pydantic models for checkmate configuration
with multi-layer merging: defaults < user < project < env vars.
"""

from .env import load_layered_env
from .loader import (
    clear_cache,
    deep_merge,
    get_default_config,
    get_project_config_path,
    get_user_config_path,
    get_xdg_config_home,
    load_config,
)
from .models import (
    ArchiveConfig,
    ArchiveHeadingConfig,
    CheckmateConfig,
    LinterConfig,
    LoggingConfig,
    MetadataTagConfig,
    SmartToggleConfig,
    TodoStateConfig,
)

__all__ = [
    # Models
    "ArchiveConfig",
    "ArchiveHeadingConfig",
    "CheckmateConfig",
    "LinterConfig",
    "LoggingConfig",
    "MetadataTagConfig",
    "SmartToggleConfig",
    "TodoStateConfig",
    # Loader functions
    "clear_cache",
    "deep_merge",
    "get_default_config",
    "get_project_config_path",
    "get_user_config_path",
    "get_xdg_config_home",
    "load_config",
    "load_layered_env",
]
