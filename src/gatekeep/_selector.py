"""Selectors decide which rules run during a validation pass."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from gatekeep._context import ValidationContext

DEFAULT_RULE_SET = "default"
"""Name that selects rules not assigned to any rule set."""

ALL_RULE_SETS = "*"


@runtime_checkable
class ValidatorSelector(Protocol):
    """
    Protocol for rule selectors.

    A selector is fixed for the duration of one validate call and must not
    have side effects.

    Example:
        class OnlyDelegates:
            def can_execute(self, rule, property_name, context):
                return property_name == ""
    """

    def can_execute(
        self, rule: Any, property_name: str, context: ValidationContext
    ) -> bool:
        """
        Decide whether a rule runs in this pass.

        Args:
            rule: The rule about to run
            property_name: Full path of the rule's property, "" for
                           whole-object rules
            context: The active validation context
        """
        ...


class AllRulesSelector:
    """Runs every rule regardless of rule set."""

    def can_execute(
        self, rule: Any, property_name: str, context: ValidationContext
    ) -> bool:
        return True

    def __repr__(self) -> str:
        return "AllRulesSelector()"


class DefaultValidatorSelector:
    """Runs only rules that are not part of a named rule set."""

    def can_execute(
        self, rule: Any, property_name: str, context: ValidationContext
    ) -> bool:
        return rule.rule_set is None

    def __repr__(self) -> str:
        return "DefaultValidatorSelector()"


class RuleSetValidatorSelector:
    """
    Runs rules belonging to the requested rule sets.

    Rule set names compare case-insensitively. "default" selects rules with
    no rule set, "*" selects everything.

    Example:
        selector = RuleSetValidatorSelector("names", "default")
    """

    def __init__(self, *rule_sets: str):
        names = rule_sets or (DEFAULT_RULE_SET,)
        self.rule_sets = tuple(names)
        self._normalized = frozenset(name.strip().lower() for name in names)

    def can_execute(
        self, rule: Any, property_name: str, context: ValidationContext
    ) -> bool:
        if ALL_RULE_SETS in self._normalized:
            return True
        if rule.rule_set is None:
            return DEFAULT_RULE_SET in self._normalized
        return rule.rule_set.lower() in self._normalized

    def __repr__(self) -> str:
        return f"RuleSetValidatorSelector({', '.join(map(repr, self.rule_sets))})"


class MemberNameValidatorSelector:
    """
    Runs only property rules on the listed paths.

    Rules on an ancestor or descendant of a listed path also run, so nested
    validators can reach it. Whole-object rules (empty property name) never
    match.
    """

    def __init__(self, *property_paths: str):
        self.property_paths = frozenset(property_paths)

    def can_execute(
        self, rule: Any, property_name: str, context: ValidationContext
    ) -> bool:
        if not property_name:
            return False
        return any(
            property_name == path
            or path.startswith(property_name + ".")
            or property_name.startswith(path + ".")
            for path in self.property_paths
        )

    def __repr__(self) -> str:
        return f"MemberNameValidatorSelector({', '.join(sorted(self.property_paths))})"
