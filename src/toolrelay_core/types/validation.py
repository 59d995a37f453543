"""Shared validation types for toolrelay."""

from dataclasses import dataclass, field


@dataclass
class ValidationIssue:
    """Single validation issue (error or warning).

    Used by:
    - ConfigLoader (config validation)
    - ConnectionRegistry (connection parameter validation)
    """

    path: str  # e.g., "url" or "api.port"
    message: str  # Human-readable description
    severity: str = "error"  # "error" | "warning"


@dataclass
class ValidationResult:
    """Result of validation (config or connection parameters)."""

    valid: bool
    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Ensure valid is False if there are errors."""
        if self.errors:
            self.valid = False

    def summary(self) -> str:
        """Join error messages into a single line."""
        return "; ".join(f"{issue.path}: {issue.message}" for issue in self.errors)
