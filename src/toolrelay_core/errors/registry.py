"""Error registry for creating errors from templates."""

from typing import Any

from .errors import ErrorCategory, ErrorTemplate, RelayError

V, C, T, S = (
    ErrorCategory.VALIDATION,
    ErrorCategory.CONNECTION,
    ErrorCategory.TOOL,
    ErrorCategory.SYSTEM,
)

BUILTIN_TEMPLATES: tuple[ErrorTemplate, ...] = (
    # Caller input
    ErrorTemplate(
        "VALIDATION_FAILED", V,
        "Invalid connection parameters",
        "The connection parameters failed validation",
        "Check the name, URL or command and try again",
        default_http_status=400,
    ),
    ErrorTemplate(
        "SUBPROCESS_NOT_SUPPORTED", V,
        "Stdio connections are not supported in this environment",
        "This deployment cannot spawn tool provider processes",
        "Use an HTTP connection or enable api.allow_subprocess",
        default_http_status=501,
    ),
    ErrorTemplate(
        "AUTH_MISSING_KEY", V,
        "API key required",
        "Include an X-API-Key header or an Authorization: Bearer header",
        default_http_status=401,
    ),
    ErrorTemplate(
        "AUTH_INVALID_KEY", V,
        "Invalid API key",
        default_http_status=401,
    ),
    ErrorTemplate(
        "AUTH_INSUFFICIENT_SCOPE", V,
        "API key '{key_name}' lacks the '{scope}' scope",
        suggestion_template="Use a key with the '{scope}' scope",
        default_http_status=403,
    ),
    # Connection lifecycle
    ErrorTemplate(
        "CONNECTION_INIT_FAILED", C,
        "Failed to initialize MCP connection '{connection_name}' ({connection_id})",
        "The tool provider could not be started or did not complete the handshake",
        "Check that the MCP server is running and reachable",
        default_retryable=True,
        default_http_status=502,
    ),
    ErrorTemplate(
        "CONNECTION_NOT_ACTIVE", C,
        "MCP connection not found or not active: {connection_id}",
        "No live client is registered for this connection",
        "List connections and re-add the provider if needed",
        default_http_status=404,
    ),
    # Translated provider failures
    ErrorTemplate(
        "TOOL_FAILED", T,
        "{message}",
        "The tool provider returned an error",
        "Check the tool provider logs for more details",
        default_http_status=502,
    ),
    ErrorTemplate(
        "TOOL_TIMEOUT", T,
        "Tool provider timed out",
        "The tool provider did not respond in time",
        "Increase client.timeout or check whether the provider is stuck",
        default_retryable=True,
        default_http_status=504,
    ),
    ErrorTemplate(
        "PROVIDER_UNREACHABLE", T,
        "Tool provider is unreachable",
        "The transport to the tool provider failed",
        "Check that the MCP server is still running",
        default_retryable=True,
        default_http_status=503,
    ),
    # Relay itself
    ErrorTemplate(
        "CONFIG_INVALID", S,
        "Invalid configuration",
        "The toolrelay configuration is invalid",
        "Check the configuration file and fix errors",
    ),
    ErrorTemplate(
        "INTERNAL_ERROR", S,
        "Internal relay error",
        "An unexpected error occurred",
        "Check the logs and report this issue",
    ),
)


class ErrorRegistry:
    """Registry of error templates. Creates errors from templates + context."""

    def __init__(self, templates: tuple[ErrorTemplate, ...] = BUILTIN_TEMPLATES) -> None:
        self._templates: dict[str, ErrorTemplate] = {t.code: t for t in templates}

    def get_template(self, code: str) -> ErrorTemplate | None:
        """Get template by error code."""
        return self._templates.get(code)

    def list_codes(self) -> list[str]:
        """List all registered error codes."""
        return list(self._templates)

    def register(self, template: ErrorTemplate) -> None:
        """Register or replace the template for template.code."""
        self._templates[template.code] = template

    def create(self, code: str, context: dict[str, Any] | None = None) -> RelayError:
        """Create error instance from template + context.

        Args:
            code: Error code
            context: Values for template placeholders; connection_id,
                connection_name and tool_name are also copied onto the error

        Returns:
            RelayError instance

        Raises:
            ValueError: If error code not found
        """
        template = self.get_template(code)
        if template is None:
            raise ValueError(f"Unknown error code: {code}")

        context = context or {}
        return RelayError(
            code=template.code,
            category=template.category,
            **template.render(context),
            retryable=template.default_retryable,
            http_status=template.default_http_status,
            connection_id=context.get("connection_id"),
            connection_name=context.get("connection_name"),
            tool_name=context.get("tool_name"),
        )
