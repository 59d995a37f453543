"""Error matchers for converting provider exceptions to RelayErrors."""

import asyncio
from typing import Any

import httpx

from .errors import ErrorMatcher, MatchResult


class TimeoutErrorMatcher(ErrorMatcher):
    """Matches timeout errors raised while waiting on a provider."""

    def matches(self, error: Exception) -> bool:
        return isinstance(error, (asyncio.TimeoutError, TimeoutError, httpx.TimeoutException))

    def extract(self, error: Exception) -> MatchResult:
        return MatchResult(
            code="TOOL_TIMEOUT",
            context={"detail": str(error) or type(error).__name__},
            retryable=True,
        )


class UnreachableErrorMatcher(ErrorMatcher):
    """Matches transport failures: refused connections, broken pipes, dead processes."""

    def matches(self, error: Exception) -> bool:
        return isinstance(error, (ConnectionError, httpx.TransportError, BrokenPipeError, EOFError))

    def extract(self, error: Exception) -> MatchResult:
        return MatchResult(
            code="PROVIDER_UNREACHABLE",
            context={"detail": str(error) or type(error).__name__},
        )


class GenericErrorMatcher(ErrorMatcher):
    """Fallback matcher for any exception."""

    def matches(self, error: Exception) -> bool:
        return True

    def extract(self, error: Exception) -> MatchResult:
        context: dict[str, Any] = {
            "message": str(error) or type(error).__name__,
            "detail": f"{type(error).__name__}: {error}",
            "error_type": type(error).__name__,
        }
        return MatchResult(code="TOOL_FAILED", context=context, retryable=False)


class ErrorMatcherChain:
    """Ordered chain of matchers. First match wins."""

    def __init__(self) -> None:
        """Initialize matcher chain with built-in matchers."""
        self.matchers: list[ErrorMatcher] = []
        self._load_builtin_matchers()

    def match(self, error: Exception) -> MatchResult:
        """Find first matching matcher and extract result.

        Args:
            error: Exception to match

        Returns:
            MatchResult from first matching matcher
        """
        for matcher in self.matchers:
            if matcher.matches(error):
                return matcher.extract(error)

        # Unreachable while GenericErrorMatcher is last
        return MatchResult(code="INTERNAL_ERROR", context={"detail": str(error)})

    def _load_builtin_matchers(self) -> None:
        """Load built-in matchers in priority order."""
        # More specific matchers first
        self.matchers = [
            TimeoutErrorMatcher(),
            UnreachableErrorMatcher(),
            GenericErrorMatcher(),  # Fallback - must be last
        ]
