"""Conditions: callable predicates with an optional printable expression."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, Generic

from gatekeep._errors import ExpressionUnavailable
from gatekeep._expression import (
    Constant,
    Convert,
    Equal,
    FieldAccess,
    Node,
    PredicateRoot,
    compile_expression,
    render,
)
from gatekeep._types import T


class Condition(Generic[T]):
    """
    A boolean predicate over the validated instance.

    ``fn`` is what actually runs. ``expression`` is an optional symbolic form
    of the same predicate, kept for printing and inspection only.

    Example:
        is_adult = Condition(lambda p: p.age >= 18, name="is_adult")
        is_adult(person)  # True / False

        first = Field("MyTestProp") == 1
        first.describe()  # "MyTestProp==1"
    """

    def __init__(
        self,
        fn: Callable[[T], Any],
        expression: PredicateRoot | None = None,
        name: str | None = None,
    ):
        self.fn = fn
        self.expression = expression
        if name is None:
            name = render(expression) if expression is not None else None
        self.name = name or getattr(fn, "__name__", "condition")

    @classmethod
    def from_expression(cls, expression: Node) -> Condition[Any]:
        """Build a condition from an expression tree, compiling it once."""
        if not isinstance(expression, PredicateRoot):
            expression = PredicateRoot(expression)
        return cls(compile_expression(expression), expression)

    def describe(self) -> str:
        """Render the symbolic form of this condition."""
        if self.expression is None:
            raise ExpressionUnavailable(
                f"Condition {self.name!r} has no symbolic expression"
            )
        return render(self.expression)

    def __call__(self, instance: T) -> bool:
        return bool(self.fn(instance))

    def __repr__(self) -> str:
        return f"Condition({self.name})"


def condition(fn: Callable[[T], Any]) -> Condition[T]:
    """
    Decorator to turn a plain function into a Condition.

    The result has no symbolic expression; use Field or parse_condition()
    for printable conditions.

    Example:
        @condition
        def is_active(user):
            return user.is_active
    """
    return Condition(fn, name=fn.__name__)


def expression_of(predicate: Callable[[Any], Any]) -> PredicateRoot | None:
    """The symbolic expression carried by a predicate, if any."""
    return getattr(predicate, "expression", None)


class Field:
    """
    Builder for printable equality conditions.

    Example:
        cond = Field("MyTestProp") == 1
        cond(model)        # reads model.MyTestProp
        cond.describe()    # "MyTestProp==1"

        Field("code").convert("int") == 7   # prints "code==7"
    """

    def __init__(self, name: str, node: Node | None = None):
        self.name = name
        self.node: Node = node if node is not None else FieldAccess(name)

    def convert(self, type_name: str) -> Field:
        """Mark the field as coerced to ``type_name`` (printing is unchanged)."""
        return Field(self.name, Convert(self.node, type_name))

    def __eq__(self, other: object) -> Condition[Any]:  # type: ignore[override]
        right = other.node if isinstance(other, Field) else Constant(other)
        return Condition.from_expression(PredicateRoot(Equal(self.node, right)))

    def __ne__(self, other: object) -> Condition[Any]:  # type: ignore[override]
        raise TypeError("Field only supports == comparisons")

    def __hash__(self) -> int:
        return hash(self.node)

    def __repr__(self) -> str:
        return f"Field({self.name})"
