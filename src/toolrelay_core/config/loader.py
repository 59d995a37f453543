"""Relay configuration loader.

YAML file → ${VAR} resolution → CLI overrides → validation → dataclasses.
"""

import os
import re
import typing
from dataclasses import fields, is_dataclass
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from toolrelay_core.errors import create_error
from toolrelay_core.types import LogLevel, ValidationIssue, ValidationResult

from .models import RelayConfig

CONFIG_ENV_VAR = "TOOLRELAY_CONFIG_PATH"
DEFAULT_CONFIG_FILE = "toolrelay.yaml"

# ${VAR}, ${VAR:-default}, ${VAR:?message}
_ENV_REF = re.compile(r"\$\{(?P<name>[^}:]+)(?::(?P<op>[?-])(?P<arg>[^}]*))?\}")


def _env_value(match: re.Match[str]) -> str:
    name, op, arg = match.group("name", "op", "arg")
    value = os.environ.get(name)
    if value is not None:
        return value
    if op == "-":
        return arg or ""
    detail = arg if op == "?" and arg else f"Required environment variable {name} not set"
    raise create_error("CONFIG_INVALID", detail=detail)


def resolve_env_vars(value: str) -> str:
    """Substitute environment variable references in a string.

    Raises:
        RelayError(CONFIG_INVALID): If a variable without a default is unset
    """
    return _ENV_REF.sub(_env_value, value)


def deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Merge override into a copy of base, recursing into nested dicts."""
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def _resolve_env_vars_recursive(data: Any) -> Any:
    if isinstance(data, str):
        return resolve_env_vars(data)
    if isinstance(data, dict):
        return {key: _resolve_env_vars_recursive(value) for key, value in data.items()}
    if isinstance(data, list):
        return [_resolve_env_vars_recursive(item) for item in data]
    return data


class ConfigLoader:
    """Load and validate relay configuration."""

    def __init__(self, logger: Any = None):
        """Initialize config loader.

        Args:
            logger: Optional RelayLogger instance
        """
        self._config: RelayConfig | None = None
        self._config_path: Path | None = None
        self._logger = logger

    def _log(self, level: LogLevel, message: str, **kwargs: Any) -> None:
        """Log message if logger available."""
        if self._logger:
            self._logger._log(level, "config", message, kwargs or None)

    @property
    def config_path(self) -> Path | None:
        """Path of the file the current config came from, if any."""
        return self._config_path

    def load(
        self,
        path: str | Path | None = None,
        use_defaults: bool = True,
        overrides: dict[str, Any] | None = None,
    ) -> RelayConfig:
        """Load configuration from file.

        Resolution order if path not specified:
        1. TOOLRELAY_CONFIG_PATH environment variable
        2. ./toolrelay.yaml
        3. ~/.toolrelay/config.yaml
        4. If use_defaults=True and no file found, use default configuration

        Args:
            path: Explicit config file
            use_defaults: Fall back to defaults when no file exists
            overrides: Nested values applied on top of the file (e.g. from CLI flags)

        Raises:
            RelayError(CONFIG_INVALID): If file missing (use_defaults=False) or invalid
        """
        config_path = Path(path) if path is not None else self._resolve_config_path()
        overrides = overrides or {}

        if not config_path.exists():
            if not use_defaults:
                raise create_error(
                    "CONFIG_INVALID",
                    detail=f"Configuration file not found: {config_path}",
                )
            self._log(LogLevel.INFO, "No config file found, using default configuration")
            return self.load_from_dict(overrides)

        data = _resolve_env_vars_recursive(self._read_yaml(config_path))
        return self.load_from_dict(deep_merge(data, overrides), config_path)

    def _read_yaml(self, config_path: Path) -> dict[str, Any]:
        try:
            data = yaml.safe_load(config_path.read_text()) or {}
        except yaml.YAMLError as e:
            raise create_error("CONFIG_INVALID", detail=f"Invalid YAML in {config_path}: {e}") from e
        if not isinstance(data, dict):
            raise create_error(
                "CONFIG_INVALID",
                detail=f"Config file must contain a mapping: {config_path}",
            )
        return data

    def load_defaults(self) -> RelayConfig:
        """Load default configuration without a file."""
        return self.load_from_dict({})

    def load_from_dict(self, data: dict[str, Any], config_path: Path | None = None) -> RelayConfig:
        """Load configuration from dictionary.

        Raises:
            RelayError(CONFIG_INVALID): If configuration is invalid
        """
        validation = self.validate(data)
        for warning in validation.warnings:
            self._log(LogLevel.WARN, warning.message, path=warning.path)
        if not validation.valid:
            error_messages = [f"- {issue.path}: {issue.message}" for issue in validation.errors]
            raise create_error(
                "CONFIG_INVALID",
                detail="Configuration validation failed:\n" + "\n".join(error_messages),
            )

        try:
            config = self._convert_field(RelayConfig, data)
        except (TypeError, ValueError) as e:
            raise create_error(
                "CONFIG_INVALID",
                detail=f"Failed to parse configuration: {e}",
            ) from e

        self._config = config
        self._config_path = config_path
        self._log(LogLevel.INFO, "Configuration loaded successfully")

        return config

    def validate(self, data: dict[str, Any]) -> ValidationResult:
        """Validate config data without loading."""
        errors: list[ValidationIssue] = []
        warnings: list[ValidationIssue] = []

        valid_keys = {f.name for f in fields(RelayConfig)}

        for key, section in data.items():
            if key not in valid_keys:
                warnings.append(
                    ValidationIssue(
                        path=key,
                        message=f"Unknown configuration key: {key}",
                        severity="warning",
                    )
                )
            elif not isinstance(section, dict):
                errors.append(
                    ValidationIssue(path=key, message=f"{key} must be a dictionary")
                )

        server = data.get("server")
        if isinstance(server, dict) and "port" in server:
            port = server["port"]
            if not isinstance(port, int) or not 0 < port < 65536:
                errors.append(
                    ValidationIssue(
                        path="server.port",
                        message="port must be an integer between 1 and 65535",
                    )
                )

        client = data.get("client")
        if isinstance(client, dict) and "timeout" in client:
            timeout = client["timeout"]
            if not isinstance(timeout, int) or timeout <= 0:
                errors.append(
                    ValidationIssue(
                        path="client.timeout",
                        message="timeout must be a positive integer",
                    )
                )

        return ValidationResult(valid=True, errors=errors, warnings=warnings)

    def get(self) -> RelayConfig:
        """Get current configuration.

        Raises:
            RelayError(CONFIG_INVALID): If configuration not loaded
        """
        if self._config is None:
            raise create_error("CONFIG_INVALID", detail="Configuration not loaded")
        return self._config

    def _resolve_config_path(self) -> Path:
        env_path = os.environ.get(CONFIG_ENV_VAR)
        if env_path:
            return Path(env_path)

        local_path = Path(DEFAULT_CONFIG_FILE)
        if local_path.exists():
            return local_path

        home_path = Path.home() / ".toolrelay" / "config.yaml"
        if home_path.exists():
            return home_path

        # Not found - caller falls back to defaults
        return local_path

    def _convert_field(self, field_type: Any, value: Any) -> Any:
        """Convert a raw YAML value to the annotated field type."""
        if value is None:
            return None

        origin = typing.get_origin(field_type)

        if origin is list:
            if not isinstance(value, list):
                return value
            args = typing.get_args(field_type)
            if args:
                return [self._convert_field(args[0], item) for item in value]
            return value

        if origin is dict:
            if not isinstance(value, dict):
                return value
            args = typing.get_args(field_type)
            if args and len(args) == 2:
                return {k: self._convert_field(args[1], v) for k, v in value.items()}
            return value

        if is_dataclass(field_type) and isinstance(field_type, type):
            if isinstance(value, dict):
                hints = typing.get_type_hints(field_type)
                kwargs = {
                    f.name: self._convert_field(hints[f.name], value[f.name])
                    for f in fields(field_type)
                    if f.name in value
                }
                return field_type(**kwargs)
            return value

        if isinstance(field_type, type) and issubclass(field_type, Enum):
            if isinstance(value, str):
                return field_type(value)
            return value

        return value


def load_config(
    path: str | Path | None = None, overrides: dict[str, Any] | None = None
) -> RelayConfig:
    """Load config with a fresh ConfigLoader."""
    return ConfigLoader().load(path, overrides=overrides)
