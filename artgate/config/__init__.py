"""Configuration management for ArtGate.

This module handles all configuration loading and validation using Pydantic BaseSettings.
Configuration is loaded from environment variables and .env files.
"""

from .config import (
    ApplicationConfig,
    CounterStoreConfig,
    MonitoringConfig,
    PolicyConfig,
    ProviderConfig,
    SecurityConfig,
    ServerConfig,
    StorageConfig,
    str_to_bool,
)


def load_config() -> ApplicationConfig:
    """Load and validate application configuration."""
    return ApplicationConfig()


__all__ = [
    "ApplicationConfig",
    "ServerConfig",
    "CounterStoreConfig",
    "ProviderConfig",
    "StorageConfig",
    "MonitoringConfig",
    "SecurityConfig",
    "PolicyConfig",
    "load_config",
    "str_to_bool",
]
