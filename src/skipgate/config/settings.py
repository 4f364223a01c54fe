"""
Settings configuration using pydantic-settings.

Loads configuration from:
1. Constructor arguments (highest precedence)
2. Environment variables with SKIPGATE_ prefix
3. .env file (if present)
4. Project config file: .skipgate.yaml in the working directory, or the
   file named by SKIPGATE_CONFIG_FILE (lowest)

List values given through the environment use JSON syntax:
  SKIPGATE_EXCLUSION_PATHS='["excludes/", "extra.yaml"]'
"""

import logging as _logging
import os as _os
import pathlib as _pathlib
import typing as _typing

import pydantic as _pydantic
import pydantic_settings as _pydantic_settings

import skipgate.environment as environment

DEFAULT_CONFIG_FILE = ".skipgate.yaml"

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _get_env_file() -> str | None:
    """Determine which .env file to load.

    SKIPGATE_ENV_FILE wins when set. If it points at a missing file nothing
    is loaded rather than silently falling back to ./.env.
    """
    if env_file := _os.environ.get("SKIPGATE_ENV_FILE"):
        if _pathlib.Path(env_file).exists():
            return env_file
        return None

    if _pathlib.Path(".env").exists():
        return ".env"

    return None


def get_config_file_path() -> _pathlib.Path:
    """Get the path of the project YAML config file."""
    if config_file := _os.environ.get("SKIPGATE_CONFIG_FILE"):
        return _pathlib.Path(config_file)
    return _pathlib.Path.cwd() / DEFAULT_CONFIG_FILE


class Settings(_pydantic_settings.BaseSettings):
    """
    skipgate configuration settings.

    All settings can be overridden via environment variables with the
    SKIPGATE_ prefix, e.g. SKIPGATE_OS_FAMILY=windows.
    """

    model_config = _pydantic_settings.SettingsConfigDict(
        env_prefix="SKIPGATE_",
        env_file=_get_env_file(),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[_pydantic_settings.BaseSettings],
        init_settings: _pydantic_settings.PydanticBaseSettingsSource,
        env_settings: _pydantic_settings.PydanticBaseSettingsSource,
        dotenv_settings: _pydantic_settings.PydanticBaseSettingsSource,
        file_secret_settings: _pydantic_settings.PydanticBaseSettingsSource,
    ) -> tuple[_pydantic_settings.PydanticBaseSettingsSource, ...]:
        """
        Configure settings sources with precedence:
        1. init_settings (constructor args), highest
        2. env_settings (SKIPGATE_* env vars)
        3. dotenv_settings (.env file)
        4. yaml settings (.skipgate.yaml)
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            _pydantic_settings.YamlConfigSettingsSource(
                settings_cls, yaml_file=get_config_file_path()
            ),
            file_secret_settings,
        )

    @classmethod
    def construct_without_dotenv(cls, **kwargs: _typing.Any) -> "Settings":
        """Create Settings without loading a .env file.

        Useful for test isolation and for reproducing CI behaviour locally.
        """
        return cls(_env_file=None, **kwargs)  # type: ignore[call-arg]

    exclusion_paths: list[_pathlib.Path] = _pydantic.Field(default_factory=list)
    """Exclusion files or directories to load."""

    os_family: environment.OsFamily | None = None
    """Force the OS family of the environment snapshot (default: detect)."""

    host_os: str | None = None
    """Force the raw host OS string (default: sys.platform)."""

    warn_on_duplicates: bool = True
    """Log a warning when a test id is excluded more than once."""

    log_level: str = "WARNING"
    """Log level applied by the command line interface."""

    @_pydantic.field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(_LOG_LEVELS)}, got {value!r}")
        return level

    @property
    def log_level_number(self) -> int:
        """Numeric logging level for log_level."""
        return _logging.getLevelName(self.log_level)  # type: ignore[no-any-return]

    def snapshot(self) -> environment.EnvironmentSnapshot:
        """Capture the environment snapshot, applying any overrides."""
        return environment.EnvironmentSnapshot.capture(
            host_os=self.host_os,
            os_family=self.os_family,
        )
