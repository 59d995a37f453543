"""Error factory - turns provider exceptions and error codes into RelayErrors."""

from typing import Any

from .errors import RelayError
from .matchers import ErrorMatcherChain
from .registry import ErrorRegistry


class ErrorFactory:
    """Creates RelayErrors from codes or from arbitrary exceptions."""

    def __init__(
        self,
        registry: ErrorRegistry | None = None,
        matcher_chain: ErrorMatcherChain | None = None,
    ):
        self.registry = registry or ErrorRegistry()
        self.matcher_chain = matcher_chain or ErrorMatcherChain()

    def from_exception(
        self,
        error: Exception,
        connection_id: str | None = None,
        tool_name: str | None = None,
    ) -> RelayError:
        """Translate an exception raised while talking to a provider.

        RelayErrors only gain missing context. Anything else is classified
        by the matcher chain (timeout, unreachable, generic failure) and the
        original exception is attached as __cause__.

        Args:
            error: Exception to convert
            connection_id: Connection the operation targeted
            tool_name: Tool being called, if any

        Returns:
            RelayError instance
        """
        if isinstance(error, RelayError):
            return error.with_context(connection_id=connection_id, tool_name=tool_name)

        match = self.matcher_chain.match(error)
        context = {**match.context, "connection_id": connection_id, "tool_name": tool_name}

        relay_error = self.registry.create(match.code, context)
        if match.retryable is not None:
            relay_error.retryable = match.retryable
        relay_error.__cause__ = error
        return relay_error

    def create(self, code: str, context: dict[str, Any] | None = None, **kwargs: Any) -> RelayError:
        """Create a RelayError from a code; kwargs extend context."""
        return self.registry.create(code, {**(context or {}), **kwargs})


_default_factory: ErrorFactory | None = None


def get_error_factory() -> ErrorFactory:
    """Get the process-wide default ErrorFactory."""
    global _default_factory  # noqa: PLW0603
    if _default_factory is None:
        _default_factory = ErrorFactory()
    return _default_factory


def create_error(code: str, **context: Any) -> RelayError:
    """Create a RelayError with the default factory.

    Example:
        raise create_error("CONNECTION_NOT_ACTIVE", connection_id=connection_id)
    """
    return get_error_factory().create(code, context)
