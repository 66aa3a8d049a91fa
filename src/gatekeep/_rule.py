"""The contract every validation rule implements."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from enum import Enum
from typing import Any, Generic

from gatekeep._condition import expression_of
from gatekeep._context import ValidationContext
from gatekeep._expression import PredicateRoot
from gatekeep._failure import ValidationFailure
from gatekeep._tracing import traced_call, traced_call_async
from gatekeep._types import T


class ApplyConditionTo(Enum):
    """Which validators of a rule a newly applied condition covers."""

    ALL_VALIDATORS = "all_validators"
    CURRENT_VALIDATOR = "current_validator"


class ValidationRule(ABC, Generic[T]):
    """
    Base class for all rules.

    A rule runs only when its gate is open: the context's selector accepts it
    and its condition holds for the instance. A closed gate yields no
    failures and the rule body is not invoked. Faults raised by the selector,
    the condition or the body propagate to the caller.

    Subclasses implement _validate() and _validate_async().
    """

    rule_set: str | None = None

    def __init__(self, rule_set: str | None = None):
        self.rule_set = rule_set
        self._condition: Callable[[Any], Any] = lambda instance: True
        self._expression: PredicateRoot | None = None

    @property
    def property_name(self) -> str:
        """Name of the property this rule validates, "" for whole-object rules."""
        return ""

    @property
    def validators(self) -> tuple[Any, ...]:
        """Leaf validators grouped under this rule (possibly empty)."""
        return ()

    @property
    def condition(self) -> Callable[[Any], Any]:
        return self._condition

    @property
    def expression(self) -> PredicateRoot | None:
        """Symbolic form of the most recently applied condition, if it had one."""
        return self._expression

    @property
    def name(self) -> str:
        return repr(self)

    def _gate(self, context: ValidationContext[Any]) -> bool:
        path = context.property_path(self.property_name) if self.property_name else ""
        if not context.selector.can_execute(self, path, context):
            return False
        return bool(self._condition(context.instance))

    def validate(self, context: ValidationContext[Any]) -> list[ValidationFailure]:
        """Run the rule synchronously; returns failures in the order produced."""
        if not self._gate(context):
            return []
        return traced_call(self.name, context.instance, lambda: self._validate(context))

    async def validate_async(
        self, context: ValidationContext[Any]
    ) -> list[ValidationFailure]:
        """
        Run the rule asynchronously.

        Gating never suspends. A cancelled context behaves like a closed gate.
        """
        if context.cancelled or not self._gate(context):
            return []
        return await traced_call_async(
            self.name, context.instance, lambda: self._validate_async(context)
        )

    @abstractmethod
    def _validate(self, context: ValidationContext[Any]) -> list[ValidationFailure]:
        ...

    @abstractmethod
    async def _validate_async(
        self, context: ValidationContext[Any]
    ) -> list[ValidationFailure]:
        ...

    def apply_condition(
        self,
        predicate: Callable[[Any], Any],
        apply_to: ApplyConditionTo = ApplyConditionTo.ALL_VALIDATORS,
    ) -> None:
        """
        Narrow the rule's condition with ``predicate``.

        The new predicate runs first; the previous condition is only
        consulted when it holds. The symbolic expression is replaced by the
        predicate's own, or cleared if the predicate has none.
        """
        original = self._condition
        self._condition = lambda instance: predicate(instance) and original(instance)
        self._expression = expression_of(predicate)
