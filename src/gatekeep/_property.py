"""Rules bound to a single property of the validated object."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

from gatekeep._condition import Condition
from gatekeep._context import ValidationContext
from gatekeep._expression import read_field
from gatekeep._failure import ValidationFailure
from gatekeep._rule import ApplyConditionTo, ValidationRule
from gatekeep._types import T
from gatekeep._validators import (
    ChildValidatorAdaptor,
    ConditionalValidator,
    Must,
    MustAsync,
    NotNull,
    PropertyValidator,
    PropertyValidatorContext,
)

if TYPE_CHECKING:
    from gatekeep._validator import Validator


class PropertyRule(ValidationRule[T]):
    """
    A rule validating one property with an ordered list of leaf validators.

    The value is read as an attribute, or as a key for mapping instances.
    Every leaf runs, and failures are returned in leaf order.

    Example:
        rule = PropertyRule("email").not_null().must(lambda e: "@" in e)
        rule.when(Field("subscribed") == True)
    """

    def __init__(
        self,
        property_name: str,
        *,
        validators: tuple[PropertyValidator, ...] | list[PropertyValidator] = (),
        rule_set: str | None = None,
        accessor: Callable[[Any], Any] | None = None,
    ):
        super().__init__(rule_set=rule_set)
        if not property_name:
            raise ValueError("PropertyRule requires a property name")
        self._property_name = property_name
        self._validators: list[PropertyValidator] = list(validators)
        self._accessor = accessor or (lambda instance: read_field(instance, property_name))

    @property
    def property_name(self) -> str:
        return self._property_name

    @property
    def validators(self) -> tuple[PropertyValidator, ...]:
        return tuple(self._validators)

    # -------------------------------------------------
    # Configuration
    # -------------------------------------------------

    def add_validator(self, validator: PropertyValidator) -> PropertyRule[T]:
        self._validators.append(validator)
        return self

    def not_null(self, message: str | None = None) -> PropertyRule[T]:
        return self.add_validator(NotNull(message))

    def must(
        self, predicate: Callable[[Any], Any], message: str | None = None
    ) -> PropertyRule[T]:
        return self.add_validator(Must(predicate, message))

    def must_async(
        self, predicate: Callable[[Any], Awaitable[Any]], message: str | None = None
    ) -> PropertyRule[T]:
        return self.add_validator(MustAsync(predicate, message))

    def set_validator(self, validator: Validator[Any]) -> PropertyRule[T]:
        """Validate the property value with a nested validator."""
        return self.add_validator(ChildValidatorAdaptor(validator))

    def when(
        self,
        predicate: Callable[[Any], Any],
        apply_to: ApplyConditionTo = ApplyConditionTo.ALL_VALIDATORS,
    ) -> PropertyRule[T]:
        self.apply_condition(predicate, apply_to)
        return self

    def unless(
        self,
        predicate: Callable[[Any], Any],
        apply_to: ApplyConditionTo = ApplyConditionTo.ALL_VALIDATORS,
    ) -> PropertyRule[T]:
        self.apply_condition(
            Condition(lambda instance: not predicate(instance)), apply_to
        )
        return self

    def in_rule_set(self, name: str) -> PropertyRule[T]:
        self.rule_set = name
        return self

    def apply_condition(
        self,
        predicate: Callable[[Any], Any],
        apply_to: ApplyConditionTo = ApplyConditionTo.ALL_VALIDATORS,
    ) -> None:
        """
        Narrow this rule with ``predicate``.

        ALL_VALIDATORS narrows the rule's own condition. CURRENT_VALIDATOR
        wraps only the most recently added leaf validator.
        """
        if apply_to is ApplyConditionTo.CURRENT_VALIDATOR:
            if not self._validators:
                raise ValueError(
                    f"Cannot apply a condition to the current validator of "
                    f"{self!r}: no validators have been added"
                )
            self._validators[-1] = ConditionalValidator(self._validators[-1], predicate)
            return
        super().apply_condition(predicate, apply_to)

    # -------------------------------------------------
    # Execution
    # -------------------------------------------------

    def _leaf_context(self, context: ValidationContext[Any]) -> PropertyValidatorContext:
        return PropertyValidatorContext(
            parent=context,
            property_name=self._property_name,
            property_path=context.property_path(self._property_name),
            property_value=self._accessor(context.instance),
        )

    def _validate(self, context: ValidationContext[Any]) -> list[ValidationFailure]:
        leaf_ctx = self._leaf_context(context)
        failures: list[ValidationFailure] = []
        for validator in self._validators:
            failures.extend(validator.validate(leaf_ctx))
        return failures

    async def _validate_async(
        self, context: ValidationContext[Any]
    ) -> list[ValidationFailure]:
        leaf_ctx = self._leaf_context(context)
        failures: list[ValidationFailure] = []
        for validator in self._validators:
            failures.extend(await validator.validate_async(leaf_ctx))
        return failures

    def __repr__(self) -> str:
        return f"PropertyRule({self._property_name})"
