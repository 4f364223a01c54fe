"""
Configuration module for skipgate.

Uses pydantic-settings for environment variable and YAML loading.
"""

from skipgate.config.settings import (
    DEFAULT_CONFIG_FILE,
    Settings,
    get_config_file_path,
)

__all__ = ["DEFAULT_CONFIG_FILE", "Settings", "get_config_file_path"]
