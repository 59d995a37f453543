"""Relay REST API module."""

from toolrelay_core.api.app import create_rest_app
from toolrelay_core.api.config import APIKeyConfig, RESTConfig

__all__ = [
    "create_rest_app",
    "RESTConfig",
    "APIKeyConfig",
]
