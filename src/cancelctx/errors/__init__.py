"""cancelctx error hierarchy."""

from __future__ import annotations

from enum import StrEnum
from typing import Any


class ErrorCategory(StrEnum):
    """Category of error for classification and handling."""

    INVALID_ARGUMENT = "invalid_argument"
    CANCELLED = "cancelled"
    SCHEDULING = "scheduling"
    CONFIGURATION = "configuration"
    INTERNAL = "internal"


class ContextError(Exception):
    """Base error for all cancelctx exceptions."""

    def __init__(
        self,
        message: str,
        *,
        category: ErrorCategory = ErrorCategory.INTERNAL,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.category = category
        self.details: dict[str, Any] = details or {}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self)!r}, category={self.category!r})"


class InvalidArgumentError(ContextError):
    """An operation was called with an argument of the wrong kind."""

    def __init__(self, message: str, *, argument: str | None = None, **kwargs: Any) -> None:
        super().__init__(message, category=ErrorCategory.INVALID_ARGUMENT, **kwargs)
        self.argument = argument


class ContextCancelledError(ContextError):
    """Work was attempted under a context that has been cancelled."""

    def __init__(self, context_id: str, message: str = "Context cancelled") -> None:
        super().__init__(
            message,
            category=ErrorCategory.CANCELLED,
            details={"context_id": context_id},
        )
        self.context_id = context_id


class SchedulingError(ContextError):
    """A deadline timer could not be armed."""

    def __init__(self, message: str, **kwargs: Any) -> None:
        super().__init__(message, category=ErrorCategory.SCHEDULING, **kwargs)


class ConfigurationError(ContextError):
    """Invalid configuration value."""

    def __init__(self, message: str, *, key: str | None = None) -> None:
        super().__init__(message, category=ErrorCategory.CONFIGURATION)
        self.key = key


__all__ = [
    "ConfigurationError",
    "ContextCancelledError",
    "ContextError",
    "ErrorCategory",
    "InvalidArgumentError",
    "SchedulingError",
]
