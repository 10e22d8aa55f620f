"""
Configuration for debug-capture services.

Shared settings and helper functions for the MCP server and the CLI.
"""

from __future__ import annotations

import os
import pathlib
from typing import TypeVar

import lazy_object_proxy
import pydantic
import pydantic_settings


T = TypeVar('T', bound='CaptureSettings')


class CaptureSettings(pydantic_settings.BaseSettings):
    """Shared configuration across all debug-capture entry points (MCP, CLI)."""

    model_config = pydantic_settings.SettingsConfigDict(
        env_prefix='DEBUG_CAPTURE_',
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=True,  # Fail fast on misconfiguration
        extra='ignore',  # .env files are shared with the instrumented project
    )

    # Persisted storage, relative to the working directory
    PORT_FILE: pathlib.Path = pathlib.Path('.debug-capture/debug.port')
    LOG_FILE: pathlib.Path = pathlib.Path('.debug-capture/debug.log')

    # Listener
    BIND_HOST: str = '127.0.0.1'
    URL_HOST: str = 'localhost'  # Host used in URLs handed to instrumented code

    # Durable log writer
    FLUSH_INTERVAL_SECONDS: float = 5.0
    WRITE_BUFFER_BYTES: int = 8 * 1024

    @pydantic.field_validator('FLUSH_INTERVAL_SECONDS')
    @classmethod
    def validate_flush_interval(cls, v: float) -> float:
        """Validate flush interval is positive."""
        if v <= 0:
            raise ValueError('FLUSH_INTERVAL_SECONDS must be greater than 0')
        return v

    @pydantic.field_validator('WRITE_BUFFER_BYTES')
    @classmethod
    def validate_buffer_size(cls, v: int) -> int:
        """Validate write buffer size is positive."""
        if v <= 0:
            raise ValueError('WRITE_BUFFER_BYTES must be greater than 0')
        return v


def get_settings(settings_class: type[T], env_file: str | None = None) -> T:
    """
    Factory for creating settings with dynamic .env file loading.

    LOAD_ENV_FILE environment variable specifies custom .env file path.
    When unset, loads from environment variables only.

    Args:
        settings_class: Settings class to instantiate
        env_file: Optional path to .env file (overrides LOAD_ENV_FILE)

    Returns:
        Settings instance

    Raises:
        FileNotFoundError: If specified .env file doesn't exist
    """
    env_file_path = env_file or os.getenv('LOAD_ENV_FILE')

    if not env_file_path:
        return settings_class(_env_file=None)  # No .env file, load from environment only

    resolved_path = pathlib.Path(env_file_path).resolve()
    if not resolved_path.exists():
        raise FileNotFoundError(f'Environment file not found: {resolved_path}')

    return settings_class(_env_file=resolved_path)


def lazy_settings(settings_class: type[T]) -> T:
    """
    Lazy settings - defers instantiation until first access.

    Args:
        settings_class: Settings class to instantiate

    Returns:
        Proxy that instantiates settings on first access
    """
    return lazy_object_proxy.Proxy(lambda: get_settings(settings_class))


# Module-level singleton (lazy-loaded)
settings = lazy_settings(CaptureSettings)
