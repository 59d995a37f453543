"""REST API configuration models."""

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from toolrelay_core.config.models import APIConfig


@dataclass
class APIKeyConfig:
    """An accepted API key. Scopes are "read" and/or "write"."""

    name: str
    key: str
    scopes: list[str] = field(default_factory=lambda: ["read", "write"])


@dataclass
class RESTConfig:
    """Settings for create_rest_app."""

    prefix: str = "/api/v1"
    title: str = "toolrelay REST API"
    version: str = "0.1.0"

    docs_enabled: bool = True
    docs_path: str = "/docs"
    openapi_path: str = "/openapi.json"

    require_auth: bool = False
    api_keys: list[APIKeyConfig] = field(default_factory=list)

    cors_enabled: bool = True
    cors_origins: list[str] = field(default_factory=lambda: ["*"])

    # Stdio connections spawn processes on this host
    allow_subprocess: bool = True

    @classmethod
    def from_api_config(cls, api: "APIConfig") -> "RESTConfig":
        """Build from the `api` section of the relay config file."""
        return cls(
            prefix=api.prefix.rstrip("/"),
            docs_enabled=api.docs_enabled,
            require_auth=api.require_auth,
            api_keys=[
                APIKeyConfig(name=key.name, key=key.key, scopes=list(key.scopes))
                for key in api.api_keys
            ],
            cors_enabled=api.cors_enabled,
            cors_origins=list(api.cors_origins),
            allow_subprocess=api.allow_subprocess,
        )
