"""Application configuration helpers."""

from __future__ import annotations

from .env import env_flag, env_list, optional_env_var, require_env_var, require_env_vars
from .errors import (
    ConfigurationError,
    InvalidConfigurationValueError,
    MissingConfigurationError,
)
from .library import DEFAULT_EXCLUDED_FRAGMENTS, LibraryConfig, get_library_config
from .logging import configure_logging, log_level_from_env
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "DEFAULT_EXCLUDED_FRAGMENTS",
    "ConfigurationError",
    "DatabaseConfig",
    "InvalidConfigurationValueError",
    "LibraryConfig",
    "MissingConfigurationError",
    "StorageConfig",
    "configure_logging",
    "env_flag",
    "env_list",
    "get_database_config",
    "get_library_config",
    "get_storage_config",
    "log_level_from_env",
    "optional_env_var",
    "require_env_var",
    "require_env_vars",
]
