"""Relay error types.

Every failure the relay reports is a RelayError built from an ErrorTemplate.
Provider exceptions are classified by ErrorMatchers before reaching the
REST layer.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class ErrorCategory(str, Enum):
    """Where an error originated."""

    VALIDATION = "VALIDATION"  # caller input
    CONNECTION = "CONNECTION"  # registry / connection lifecycle
    TOOL = "TOOL"  # a provider failed a list or call
    SYSTEM = "SYSTEM"  # config and internal faults


@dataclass
class RelayError(Exception):
    """Structured error with context. Base exception for all relay errors."""

    code: str
    category: ErrorCategory
    message: str
    detail: str | None = None
    suggestion: str | None = None

    retryable: bool = False
    http_status: int = 500

    # Which connection / tool the error concerns
    connection_id: str | None = None
    connection_name: str | None = None
    tool_name: str | None = None

    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        super().__init__(self.message)

    @property
    def is_client_error(self) -> bool:
        """True when the caller, not the relay or a provider, is at fault."""
        return self.http_status < 500

    def to_dict(self) -> dict[str, Any]:
        """Serialize for API responses. Unset context fields are omitted."""
        data: dict[str, Any] = {
            "code": self.code,
            "category": self.category.value,
            "message": self.message,
            "detail": self.detail,
            "suggestion": self.suggestion,
            "retryable": self.retryable,
            "timestamp": self.timestamp.isoformat(),
        }
        for key in ("connection_id", "connection_name", "tool_name"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data

    def with_context(
        self,
        connection_id: str | None = None,
        connection_name: str | None = None,
        tool_name: str | None = None,
    ) -> "RelayError":
        """Return a copy with missing connection/tool context filled in.

        Context already on the error is kept.
        """
        return RelayError(
            code=self.code,
            category=self.category,
            message=self.message,
            detail=self.detail,
            suggestion=self.suggestion,
            retryable=self.retryable,
            http_status=self.http_status,
            connection_id=self.connection_id or connection_id,
            connection_name=self.connection_name or connection_name,
            tool_name=self.tool_name or tool_name,
            timestamp=self.timestamp,
        )


@dataclass
class ErrorTemplate:
    """Template for one error code. Text fields use str.format placeholders."""

    code: str
    category: ErrorCategory
    message_template: str  # "MCP connection not found or not active: {connection_id}"
    detail_template: str | None = None
    suggestion_template: str | None = None
    default_retryable: bool = False
    default_http_status: int = 500

    def render(self, context: dict[str, Any]) -> dict[str, str | None]:
        """Fill message, detail and suggestion from context.

        A placeholder with no matching context key leaves that text
        unformatted. An explicit "detail" in context replaces the template.
        """
        return {
            "message": _format(self.message_template, context) or f"Error {self.code}",
            "detail": context.get("detail") or _format(self.detail_template, context),
            "suggestion": _format(self.suggestion_template, context),
        }


def _format(template: str | None, context: dict[str, Any]) -> str | None:
    if template is None:
        return None
    try:
        return template.format(**context)
    except (KeyError, IndexError):
        return template


@dataclass
class MatchResult:
    """Classification of a provider exception."""

    code: str
    context: dict[str, Any]
    retryable: bool | None = None  # None = template default


class ErrorMatcher(ABC):
    """Recognizes one family of provider exceptions."""

    @abstractmethod
    def matches(self, error: Exception) -> bool:
        """Check if this matcher handles the error."""

    @abstractmethod
    def extract(self, error: Exception) -> MatchResult:
        """Classify the exception into an error code plus context."""
