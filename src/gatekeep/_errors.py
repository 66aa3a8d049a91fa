"""Exception hierarchy."""

from __future__ import annotations

from typing import Any


class GatekeepError(Exception):
    """Base class for all gatekeep errors."""


class UnsupportedExpressionKind(GatekeepError, TypeError):
    """Raised when an expression tree contains a node outside the known set."""

    def __init__(self, node: Any):
        self.node = node
        super().__init__(f"Unsupported expression node: {type(node).__name__}")


class ExpressionUnavailable(GatekeepError, LookupError):
    """Raised when a condition has no symbolic form to print."""


class ConditionSyntaxError(GatekeepError, ValueError):
    """Raised by parse_condition() on malformed input."""


class ValidationError(GatekeepError):
    """
    Raised by Validator.validate_and_raise() and ValidationResult.raise_if_invalid().

    Attributes:
        failures: The failures that caused the error, in rule order
    """

    def __init__(self, failures: list[Any]):
        self.failures = list(failures)
        message = "; ".join(str(f) for f in self.failures) or "Validation failed"
        super().__init__(message)
