"""
Symbolic condition expressions.

A condition attached to a rule may carry a small expression tree describing
it, so the condition can be printed and inspected without running it. The
set of node kinds is closed:

    PredicateRoot  - top-level boolean function over the instance
    Equal          - left == right
    Constant       - literal value
    FieldAccess    - read a field off the instance
    Convert        - type coercion marker (transparent for evaluation)

Every consumer (evaluate, compile_expression, render) handles exactly these
kinds and raises UnsupportedExpressionKind for anything else.

Example:
    root = PredicateRoot(Equal(FieldAccess("age"), Constant(18)))
    render(root)                    # "age==18"
    evaluate(root, Person(age=18))  # True
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Any, Union

from gatekeep._errors import UnsupportedExpressionKind


@dataclass(frozen=True)
class Constant:
    value: Any


@dataclass(frozen=True)
class FieldAccess:
    name: str


@dataclass(frozen=True)
class Convert:
    """Type coercion marker. Only relevant when printing; renders its operand."""

    operand: Node
    type_name: str | None = None


@dataclass(frozen=True)
class Equal:
    left: Node
    right: Node


@dataclass(frozen=True)
class PredicateRoot:
    """The boolean function over the instance; ``body`` is its return value."""

    body: Node


Node = Union[PredicateRoot, Equal, Constant, FieldAccess, Convert]


def read_field(instance: Any, name: str) -> Any:
    """Read ``name`` off ``instance`` (mapping key or attribute)."""
    if isinstance(instance, Mapping):
        return instance[name]
    return getattr(instance, name)


# =============================================================================
# Evaluation
# =============================================================================


def evaluate(node: Node, instance: Any) -> Any:
    """Evaluate an expression tree against an instance."""
    if isinstance(node, PredicateRoot):
        return bool(evaluate(node.body, instance))
    if isinstance(node, Equal):
        return evaluate(node.left, instance) == evaluate(node.right, instance)
    if isinstance(node, Constant):
        return node.value
    if isinstance(node, FieldAccess):
        return read_field(instance, node.name)
    if isinstance(node, Convert):
        return evaluate(node.operand, instance)
    raise UnsupportedExpressionKind(node)


def compile_expression(node: Node) -> Callable[[Any], Any]:
    """
    Turn an expression tree into a plain callable.

    The tree is walked once; the returned closure does no dispatch of its
    own. Results match evaluate() for every instance.
    """
    if isinstance(node, PredicateRoot):
        body = compile_expression(node.body)
        return lambda instance: bool(body(instance))
    if isinstance(node, Equal):
        left = compile_expression(node.left)
        right = compile_expression(node.right)
        return lambda instance: left(instance) == right(instance)
    if isinstance(node, Constant):
        value = node.value
        return lambda instance: value
    if isinstance(node, FieldAccess):
        name = node.name
        return lambda instance: read_field(instance, name)
    if isinstance(node, Convert):
        return compile_expression(node.operand)
    raise UnsupportedExpressionKind(node)


# =============================================================================
# Printing
# =============================================================================


def render(node: Node) -> str:
    """
    Render an expression tree in infix form.

    String constants are single-quoted with ' and \\ backslash-escaped, so
    parse_condition() reads the output back. Field names are bare, everything
    else uses str(). Equality renders as ``left==right`` without spaces.
    """
    if isinstance(node, PredicateRoot):
        return render(node.body)
    if isinstance(node, Equal):
        return _render_binary("==", node.left, node.right)
    if isinstance(node, Constant):
        if isinstance(node.value, str):
            escaped = node.value.replace("\\", "\\\\").replace("'", "\\'")
            return f"'{escaped}'"
        return str(node.value)
    if isinstance(node, FieldAccess):
        return node.name
    if isinstance(node, Convert):
        return render(node.operand)
    raise UnsupportedExpressionKind(node)


def _render_binary(op: str, left: Node, right: Node) -> str:
    return render(left) + op + render(right)
