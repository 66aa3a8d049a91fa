"""Plain-text descriptions of validators."""

from __future__ import annotations

from typing import Any

from gatekeep._expression import render
from gatekeep._rule import ValidationRule
from gatekeep._validators import ChildValidatorAdaptor, ConditionalValidator


def explain(validator: Any, verbose: bool = False) -> str:
    """
    Describe a validator's rules, one per line, with printable conditions.

    Args:
        validator: The Validator to describe
        verbose: If True, also list each rule's leaf validators and
                 descend into nested validators

    Example:
        print(explain(ModelValidator(), verbose=True))

        # Output:
        # PropertyRule(MyTestProp2) when MyTestProp==1
        #   • NotNull()
    """
    lines: list[str] = []
    # Stack items: (validator, depth); reversed so rules come out in order
    stack: list[tuple[Any, int]] = [(rule, 0) for rule in reversed(list(validator))]

    while stack:
        item, depth = stack.pop()
        indent = "  " * depth

        if isinstance(item, ValidationRule):
            line = f"{indent}{item!r}"
            if item.rule_set is not None:
                line += f" [{item.rule_set}]"
            if item.expression is not None:
                line += f" when {render(item.expression)}"
            lines.append(line)
            if verbose:
                stack.extend((leaf, depth + 1) for leaf in reversed(item.validators))
            continue

        line = f"{indent}• {_leaf_name(item)}"
        if isinstance(item, ConditionalValidator) and item.expression is not None:
            line += f" when {render(item.expression)}"
        lines.append(line)
        if isinstance(item, ChildValidatorAdaptor):
            stack.extend((rule, depth + 1) for rule in reversed(list(item.validator)))

    return "\n".join(lines)


def _leaf_name(leaf: Any) -> str:
    while isinstance(leaf, ConditionalValidator):
        leaf = leaf.inner
    return repr(leaf)
