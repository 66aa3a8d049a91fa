"""Leaf validators attached to property rules."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from gatekeep._condition import expression_of
from gatekeep._context import ValidationContext
from gatekeep._delegate import run_blocking
from gatekeep._expression import PredicateRoot
from gatekeep._failure import ValidationFailure

if TYPE_CHECKING:
    from gatekeep._validator import Validator


@dataclass(frozen=True)
class PropertyValidatorContext:
    """
    What a leaf validator sees.

    Attributes:
        parent: Context of the object owning the property
        property_name: Name of the property on its owner
        property_path: Full dotted path, chain included
        property_value: Current value of the property
    """

    parent: ValidationContext[Any]
    property_name: str
    property_path: str
    property_value: Any

    @property
    def instance(self) -> Any:
        return self.parent.instance


class PropertyValidator(ABC):
    """
    Base class for leaf validators.

    Subclasses implement validate(); validate_async() defaults to running it.
    """

    default_message = "'{property_name}' is not valid."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message

    @abstractmethod
    def validate(self, ctx: PropertyValidatorContext) -> list[ValidationFailure]:
        ...

    async def validate_async(
        self, ctx: PropertyValidatorContext
    ) -> list[ValidationFailure]:
        return self.validate(ctx)

    def failure(self, ctx: PropertyValidatorContext) -> ValidationFailure:
        """Build a failure for ``ctx`` using this validator's message."""
        try:
            message = self.message.format(
                property_name=ctx.property_path, property_value=ctx.property_value
            )
        except (KeyError, AttributeError, IndexError):
            message = self.message
        return ValidationFailure(ctx.property_path, message, ctx.property_value)

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class NotNull(PropertyValidator):
    default_message = "'{property_name}' must not be empty."

    def validate(self, ctx: PropertyValidatorContext) -> list[ValidationFailure]:
        if ctx.property_value is None:
            return [self.failure(ctx)]
        return []


class Must(PropertyValidator):
    """
    Passes when ``predicate(value)`` is truthy.

    Example:
        Must(lambda age: age >= 18, "'{property_name}' must be an adult age.")
    """

    default_message = "The specified condition was not met for '{property_name}'."

    def __init__(self, predicate: Callable[[Any], Any], message: str | None = None):
        super().__init__(message)
        self.predicate = predicate

    def validate(self, ctx: PropertyValidatorContext) -> list[ValidationFailure]:
        if self.predicate(ctx.property_value):
            return []
        return [self.failure(ctx)]

    def __repr__(self) -> str:
        return f"Must({getattr(self.predicate, '__name__', 'predicate')})"


class MustAsync(PropertyValidator):
    """Like Must, but ``predicate`` is awaited. Synchronous use blocks."""

    default_message = Must.default_message

    def __init__(
        self, predicate: Callable[[Any], Awaitable[Any]], message: str | None = None
    ):
        super().__init__(message)
        self.predicate = predicate

    def validate(self, ctx: PropertyValidatorContext) -> list[ValidationFailure]:
        return run_blocking(lambda: self.validate_async(ctx))

    async def validate_async(
        self, ctx: PropertyValidatorContext
    ) -> list[ValidationFailure]:
        if await self.predicate(ctx.property_value):
            return []
        return [self.failure(ctx)]

    def __repr__(self) -> str:
        return f"MustAsync({getattr(self.predicate, '__name__', 'predicate')})"


class ConditionalValidator(PropertyValidator):
    """
    Runs ``inner`` only when ``condition`` holds for the owning instance.

    Produced by PropertyRule.apply_condition(..., CURRENT_VALIDATOR).
    """

    def __init__(self, inner: PropertyValidator, condition: Callable[[Any], Any]):
        super().__init__(inner.message)
        self.inner = inner
        self.condition = condition

    @property
    def expression(self) -> PredicateRoot | None:
        return expression_of(self.condition)

    def validate(self, ctx: PropertyValidatorContext) -> list[ValidationFailure]:
        if not self.condition(ctx.instance):
            return []
        return self.inner.validate(ctx)

    async def validate_async(
        self, ctx: PropertyValidatorContext
    ) -> list[ValidationFailure]:
        if not self.condition(ctx.instance):
            return []
        return await self.inner.validate_async(ctx)

    def __repr__(self) -> str:
        return f"ConditionalValidator({self.inner!r})"


class ChildValidatorAdaptor(PropertyValidator):
    """
    Validates the property value with another Validator.

    The nested validator runs in a child context whose property chain is
    extended by the property name, so its failures carry full paths such as
    ``address.postcode``. None values are skipped.
    """

    def __init__(self, validator: Validator[Any]):
        super().__init__()
        self.validator = validator

    def validate(self, ctx: PropertyValidatorContext) -> list[ValidationFailure]:
        if ctx.property_value is None:
            return []
        child = ctx.parent.for_child(ctx.property_value, ctx.property_name)
        return self.validator.validate_context(child)

    async def validate_async(
        self, ctx: PropertyValidatorContext
    ) -> list[ValidationFailure]:
        if ctx.property_value is None:
            return []
        child = ctx.parent.for_child(ctx.property_value, ctx.property_name)
        return await self.validator.validate_context_async(child)

    def __repr__(self) -> str:
        return f"ChildValidatorAdaptor({self.validator!r})"
