"""Failure records and validation results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from gatekeep._errors import ValidationError


@dataclass(frozen=True)
class ValidationFailure:
    """
    A single validation failure.

    Attributes:
        property_name: Full dotted path of the failing property, or "" for
                       rules that validate the whole object
        error_message: Human-readable description of the failure
        attempted_value: The value that failed validation
    """

    property_name: str
    error_message: str
    attempted_value: Any = None

    def __str__(self) -> str:
        if self.property_name:
            return f"{self.property_name}: {self.error_message}"
        return self.error_message


@dataclass
class ValidationResult:
    """
    Result of running a validator.

    Attributes:
        failures: Failures in the order the rules produced them
    """

    failures: list[ValidationFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    is_valid = ok

    @property
    def errors(self) -> list[str]:
        """Error messages only, in order."""
        return [f.error_message for f in self.failures]

    def for_property(self, property_name: str) -> list[ValidationFailure]:
        return [f for f in self.failures if f.property_name == property_name]

    def __bool__(self) -> bool:
        return self.ok

    def raise_if_invalid(self, exception_class: type = ValidationError) -> None:
        """Raise an exception if validation failed."""
        if not self.ok:
            if issubclass(exception_class, ValidationError):
                raise exception_class(self.failures)
            raise exception_class("; ".join(str(f) for f in self.failures))
