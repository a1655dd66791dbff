"""
Configuration management for flights-finder.

This module provides centralized configuration for the library,
supporting environment variables, .env files, and programmatic configuration.

Usage:
    >>> from flights_finder.config import get_config, configure
    >>>
    >>> # Get current config
    >>> config = get_config()
    >>> print(config.base_url)

    >>> # Update config programmatically
    >>> configure(environment="local", max_poll_retries=5)
"""

from __future__ import annotations

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings

from .types import Environment


class FinderConfig(BaseSettings):
    """
    Configuration for flights-finder.

    Settings can be provided via:
    1. Environment variables (prefixed with FLIGHTS_FINDER_)
    2. .env file
    3. Direct instantiation

    Example:
        Set via environment:
        $ export FLIGHTS_FINDER_ENVIRONMENT=local
        $ export FLIGHTS_FINDER_MAX_POLL_RETRIES=5

        Or in code:
        >>> from flights_finder.config import configure
        >>> configure(max_poll_retries=5)
    """

    # Endpoint selection
    environment: Environment = Field(
        default="production",
        description="Which portal to talk to: the live one or the local fake server"
    )
    production_base_url: str = Field(
        default="https://www.flightsfinder.com",
        description="Base URL of the live flights-finder portal"
    )
    local_base_url: str = Field(
        default="http://localhost:3000",
        description="Base URL of the canned-response fake server"
    )

    # Poll settings
    max_poll_retries: int = Field(
        default=20,
        ge=1,
        le=200,
        description="Maximum number of unfinished poll responses before giving up"
    )
    poll_interval_seconds: float = Field(
        default=1.0,
        ge=0.0,
        le=60.0,
        description="Fixed delay between poll attempts in seconds"
    )

    # HTTP client settings
    request_timeout_seconds: float = Field(
        default=30.0,
        gt=0.0,
        le=300.0,
        description="Timeout applied to every individual HTTP request"
    )
    impersonate: str = Field(
        default="chrome_131",
        description="Browser fingerprint used by the primp HTTP client"
    )
    verify_tls: bool = Field(
        default=True,
        description="Verify TLS certificates"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )

    model_config = {
        "env_prefix": "FLIGHTS_FINDER_",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    @property
    def base_url(self) -> str:
        """Base URL for the selected environment, without a trailing slash."""
        url = self.local_base_url if self.environment == "local" else self.production_base_url
        return url.rstrip("/")


# Global configuration instance
_config: Optional[FinderConfig] = None


def get_config() -> FinderConfig:
    """
    Get the global configuration instance.

    Creates a new instance from environment variables on first call,
    then returns the cached instance.

    Returns:
        FinderConfig instance

    Example:
        >>> config = get_config()
        >>> print(config.max_poll_retries)
        20
    """
    global _config
    if _config is None:
        _config = FinderConfig()
    return _config


def configure(**kwargs) -> FinderConfig:
    """
    Update global configuration with new values.

    Creates a new configuration instance with the provided values,
    falling back to current values for unspecified options.

    Args:
        **kwargs: Configuration values to set

    Returns:
        Updated FinderConfig instance

    Example:
        >>> configure(environment="local")
        >>> get_config().base_url
        'http://localhost:3000'
    """
    global _config

    current_dict = get_config().model_dump()
    current_dict.update(kwargs)
    _config = FinderConfig(**current_dict)

    return _config


def reset_config() -> None:
    """
    Reset configuration to defaults.

    Clears the cached config so the next get_config() call
    will reload from environment variables.
    """
    global _config
    _config = None


__all__ = [
    "FinderConfig",
    "get_config",
    "configure",
    "reset_config",
]
