# webauto/exceptions.py
"""
@file exceptions.py
@brief Exception classes for the browser query engine.
"""

from __future__ import annotations
from typing import Any, Optional


class WebAutoError(Exception):
    """Base exception for the framework."""
    pass


class ConfigError(WebAutoError):
    """Raised when YAML/JSON session configuration is invalid."""
    pass


class UsageError(WebAutoError):
    """Raised when a find operation is given something other than a live Session."""

    def __init__(self, operation: str, received: Any):
        self.operation = operation
        self.received = received
        super().__init__(
            f"The first parameter to {operation} must be a live Session, "
            f"got {type(received).__name__}"
        )


class InvalidArgumentError(WebAutoError):
    """Raised for malformed table coordinates or ancestor chains."""
    pass


class UnsupportedCombinationError(WebAutoError):
    """Raised when a query combines predicates that cannot be resolved together."""
    pass


class ElementNotFoundError(WebAutoError):
    """
    Raised when an action is attempted on an element that was not found.

    Lookups themselves never raise this; they return a MissingElement.
    """

    def __init__(self, query: Any, action: Optional[str] = None):
        self.query = query
        self.action = action
        msg = f"ElementNotFoundError: query={query!r}"
        if action:
            msg += f" action='{action}'"
        super().__init__(msg)


class TimeoutError(WebAutoError):
    """
    Raised when a wait times out.

    Attributes:
        original_exception: The last exception raised by the predicate, if any
        description: Human-readable description of what was being waited for
        timeout: The timeout value in seconds
        attempt_count: Number of predicate evaluations
        elapsed_time: Actual elapsed time in seconds
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.original_exception: Optional[BaseException] = None
        self.description: Optional[str] = None
        self.timeout: Optional[float] = None
        self.attempt_count: Optional[int] = None
        self.elapsed_time: Optional[float] = None

    def __str__(self) -> str:
        base_msg = super().__str__()
        details = []
        if self.original_exception is not None:
            details.append(f"Original exception: {type(self.original_exception).__name__}")
        if self.attempt_count is not None:
            details.append(f"Attempts: {self.attempt_count}")
        if self.elapsed_time is not None:
            details.append(f"Elapsed: {self.elapsed_time:.2f}s")
        if details:
            return f"{base_msg} [{', '.join(details)}]"
        return base_msg
