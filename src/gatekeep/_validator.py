"""Validators: ordered collections of rules."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from typing import Any, Generic

from gatekeep._condition import Condition
from gatekeep._context import CancellationSignal, ValidationContext
from gatekeep._delegate import DelegateRule
from gatekeep._failure import ValidationFailure, ValidationResult
from gatekeep._property import PropertyRule
from gatekeep._rule import ApplyConditionTo, ValidationRule
from gatekeep._selector import (
    DefaultValidatorSelector,
    MemberNameValidatorSelector,
    RuleSetValidatorSelector,
    ValidatorSelector,
)
from gatekeep._types import T


class Validator(Generic[T]):
    """
    An ordered collection of rules for one kind of object.

    Rules run in the order they were added, in both sync and async mode.
    Rules can be added directly or from a subclass's __init__.

    Example:
        class ModelValidator(Validator[Model]):
            def __init__(self):
                super().__init__()
                self.when(
                    Field("MyTestProp") == 1,
                    lambda: self.rule_for("MyTestProp2").not_null(),
                )

        result = ModelValidator().validate(Model(MyTestProp=1, MyTestProp2=None))
        result.errors  # ["'MyTestProp2' must not be empty."]
    """

    def __init__(self, rules: Iterable[ValidationRule[Any]] | None = None):
        self._rules: list[ValidationRule[Any]] = list(rules or ())

    # -------------------------------------------------
    # Building
    # -------------------------------------------------

    def add_rule(self, rule: ValidationRule[Any]) -> ValidationRule[Any]:
        self._rules.append(rule)
        return rule

    def rule_for(self, property_name: str, **kwargs: Any) -> PropertyRule[T]:
        """Add and return a rule for ``property_name``."""
        rule: PropertyRule[T] = PropertyRule(property_name, **kwargs)
        self._rules.append(rule)
        return rule

    def custom(self, fn: Callable[..., Any], **kwargs: Any) -> DelegateRule[T]:
        """Add and return a rule running ``fn`` against the whole instance."""
        rule: DelegateRule[T] = DelegateRule(fn, **kwargs)
        self._rules.append(rule)
        return rule

    def when(
        self,
        predicate: Callable[[T], Any],
        build: Callable[[], Any],
        apply_to: ApplyConditionTo = ApplyConditionTo.ALL_VALIDATORS,
    ) -> None:
        """
        Apply ``predicate`` to every rule added while ``build`` runs.

        Example:
            self.when(Field("country") == "US", lambda: self.rule_for("zip").not_null())
        """
        for rule in self._collect(build):
            rule.apply_condition(predicate, apply_to)

    def unless(
        self,
        predicate: Callable[[T], Any],
        build: Callable[[], Any],
        apply_to: ApplyConditionTo = ApplyConditionTo.ALL_VALIDATORS,
    ) -> None:
        inverted: Condition[T] = Condition(lambda instance: not predicate(instance))
        self.when(inverted, build, apply_to)

    def rule_set(self, name: str, build: Callable[[], Any]) -> None:
        """Assign every rule added while ``build`` runs to rule set ``name``."""
        for rule in self._collect(build):
            rule.rule_set = name

    def _collect(self, build: Callable[[], Any]) -> list[ValidationRule[Any]]:
        start = len(self._rules)
        build()
        return self._rules[start:]

    # -------------------------------------------------
    # Validation
    # -------------------------------------------------

    def _context(
        self,
        instance: T,
        selector: ValidatorSelector | None,
        rule_sets: Iterable[str] | None,
        properties: Iterable[str] | None,
        cancellation: CancellationSignal | None = None,
    ) -> ValidationContext[T]:
        if sum(x is not None for x in (selector, rule_sets, properties)) > 1:
            raise ValueError("Pass only one of selector, rule_sets or properties")
        if rule_sets is not None:
            selector = RuleSetValidatorSelector(*rule_sets)
        elif properties is not None:
            selector = MemberNameValidatorSelector(*properties)
        return ValidationContext(
            instance=instance,
            selector=selector or DefaultValidatorSelector(),
            cancellation=cancellation,
        )

    def validate(
        self,
        instance: T,
        *,
        selector: ValidatorSelector | None = None,
        rule_sets: Iterable[str] | None = None,
        properties: Iterable[str] | None = None,
    ) -> ValidationResult:
        """
        Validate ``instance`` and return all failures in rule order.

        Args:
            instance: Object to validate
            selector: Custom selector for this pass
            rule_sets: Run only these rule sets ("default" for unassigned rules)
            properties: Run only rules for these property paths
        """
        context = self._context(instance, selector, rule_sets, properties)
        return ValidationResult(self.validate_context(context))

    async def validate_async(
        self,
        instance: T,
        *,
        selector: ValidatorSelector | None = None,
        rule_sets: Iterable[str] | None = None,
        properties: Iterable[str] | None = None,
        cancellation: CancellationSignal | None = None,
    ) -> ValidationResult:
        """
        Async counterpart of validate().

        Rules still run one after another. Once ``cancellation`` is set, the
        remaining rules are skipped and contribute no failures.
        """
        context = self._context(instance, selector, rule_sets, properties, cancellation)
        return ValidationResult(await self.validate_context_async(context))

    def validate_and_raise(self, instance: T, **kwargs: Any) -> None:
        """Validate and raise ValidationError if anything failed."""
        self.validate(instance, **kwargs).raise_if_invalid()

    def validate_context(self, context: ValidationContext[Any]) -> list[ValidationFailure]:
        """Run every rule against an existing context."""
        failures: list[ValidationFailure] = []
        for rule in self._rules:
            failures.extend(rule.validate(context))
        return failures

    async def validate_context_async(
        self, context: ValidationContext[Any]
    ) -> list[ValidationFailure]:
        failures: list[ValidationFailure] = []
        for rule in self._rules:
            failures.extend(await rule.validate_async(context))
        return failures

    # -------------------------------------------------
    # Introspection
    # -------------------------------------------------

    def __iter__(self) -> Iterator[ValidationRule[Any]]:
        return iter(tuple(self._rules))

    def __len__(self) -> int:
        return len(self._rules)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({len(self._rules)} rules)"
