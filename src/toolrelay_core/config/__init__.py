"""Relay configuration - Config loading and models."""

from .loader import ConfigLoader, deep_merge, load_config, resolve_env_vars
from .models import (
    APIConfig,
    APIKeyDefinition,
    ClientConfig,
    LoggingComponentsConfig,
    LoggingConfig,
    LoggingOptionsConfig,
    RelayConfig,
    ServerConfig,
)

__all__ = [
    # Loader
    "ConfigLoader",
    "deep_merge",
    "load_config",
    "resolve_env_vars",
    # Models
    "RelayConfig",
    "ServerConfig",
    "APIConfig",
    "APIKeyDefinition",
    "ClientConfig",
    "LoggingConfig",
    "LoggingComponentsConfig",
    "LoggingOptionsConfig",
]
