"""Shared types for toolrelay.

Import from here rather than submodules:
    from toolrelay_core.types import ConnectionType, LogLevel
"""

from .enums import ConnectionStatus, ConnectionType, LogFormat, LogLevel
from .validation import ValidationIssue, ValidationResult

__all__ = [
    # Enums
    "LogLevel",
    "LogFormat",
    "ConnectionType",
    "ConnectionStatus",
    # Validation
    "ValidationIssue",
    "ValidationResult",
]
