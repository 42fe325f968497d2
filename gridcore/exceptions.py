"""gridcore exception hierarchy.

Engine operations never raise for caller data (unknown fields, stale row
indices, empty selections). These exceptions cover programmer and
configuration mistakes detected while an engine is being set up.
"""

from __future__ import annotations

from typing import Any


class GridCoreException(Exception):
    """Base exception for all gridcore errors."""

    def __init__(self, message: str, **context: Any) -> None:
        """Initialize gridcore exception.

        Parameters
        ----------
        message : str
            Human-readable error message.
        **context : Any
            Additional context (field, name, etc.).
        """
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        """Format exception with context."""
        if self.context:
            ctx = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx})"
        return self.message


class AggregationError(GridCoreException):
    """Aggregation registry misconfigured.

    Raised when a named aggregation is registered with something that
    cannot be called.
    """

    def __init__(self, message: str, name: str | None = None, **context: Any) -> None:
        """Initialize aggregation error.

        Parameters
        ----------
        message : str
            Human-readable error message.
        name : str, optional
            The registry name of the offending aggregation.
        **context : Any
            Additional context.
        """
        super().__init__(message, name=name, **context)
        self.name = name


class ConfigurationError(GridCoreException):
    """An engine option was given a value it cannot use."""

    def __init__(self, message: str, option: str | None = None, **context: Any) -> None:
        """Initialize configuration error.

        Parameters
        ----------
        message : str
            Human-readable error message.
        option : str, optional
            The option that was rejected.
        **context : Any
            Additional context.
        """
        super().__init__(message, option=option, **context)
        self.option = option
