"""Application configuration helpers."""

from __future__ import annotations

from .database import DatabaseConfig, get_database_config, link_data_dir
from .env import read_env, require_env_var
from .errors import ConfigurationError, MissingConfigurationError
from .logging import configure_logging, get_log_level
from .sync import DEFAULT_AUDIT_COLLECTION, SyncConfig, get_sync_config, require_mappings_file

__all__ = [
    "DEFAULT_AUDIT_COLLECTION",
    "ConfigurationError",
    "DatabaseConfig",
    "MissingConfigurationError",
    "SyncConfig",
    "configure_logging",
    "get_database_config",
    "get_log_level",
    "get_sync_config",
    "link_data_dir",
    "read_env",
    "require_env_var",
    "require_mappings_file",
]
