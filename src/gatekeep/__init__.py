"""
Gatekeep - Conditional Validation Rules

A Python library for validating objects with ordered, conditionally enabled
rules. Every rule is gated by a selector (which validation pass is running)
and a condition (a predicate over the instance that can carry a printable
expression), and runs either synchronously or asynchronously.

Example:
    from gatekeep import Field, Validator, explain

    class ModelValidator(Validator):
        def __init__(self):
            super().__init__()
            self.when(
                Field("MyTestProp") == 1,
                lambda: self.rule_for("MyTestProp2").not_null(),
            )

    validator = ModelValidator()
    result = validator.validate(model)
    print(explain(validator))  # PropertyRule(MyTestProp2) when MyTestProp==1
"""

from __future__ import annotations

__version__ = "0.1.0"
__all__ = [
    # Results
    "ValidationFailure",
    "ValidationResult",
    # Context & selectors
    "ValidationContext",
    "ValidatorSelector",
    "AllRulesSelector",
    "DefaultValidatorSelector",
    "RuleSetValidatorSelector",
    "MemberNameValidatorSelector",
    "DEFAULT_RULE_SET",
    # Expressions
    "PredicateRoot",
    "Equal",
    "Constant",
    "FieldAccess",
    "Convert",
    "Node",
    "evaluate",
    "compile_expression",
    "render",
    # Conditions
    "Condition",
    "condition",
    "Field",
    "ConditionParser",
    "parse_condition",
    # Rules
    "ApplyConditionTo",
    "ValidationRule",
    "DelegateRule",
    "PropertyRule",
    "run_blocking",
    # Leaf validators
    "PropertyValidator",
    "PropertyValidatorContext",
    "NotNull",
    "Must",
    "MustAsync",
    "ConditionalValidator",
    "ChildValidatorAdaptor",
    # Validator
    "Validator",
    "explain",
    # Tracing
    "TraceHook",
    "TraceConfig",
    "use_tracing",
    "PrintHook",
    "LoggingHook",
    "OpenTelemetryHook",
    # Errors
    "GatekeepError",
    "UnsupportedExpressionKind",
    "ExpressionUnavailable",
    "ConditionSyntaxError",
    "ValidationError",
]

from gatekeep._condition import Condition, Field, condition
from gatekeep._context import ValidationContext
from gatekeep._delegate import DelegateRule, run_blocking
from gatekeep._errors import (
    ConditionSyntaxError,
    ExpressionUnavailable,
    GatekeepError,
    UnsupportedExpressionKind,
    ValidationError,
)
from gatekeep._explain import explain
from gatekeep._expression import (
    Constant,
    Convert,
    Equal,
    FieldAccess,
    Node,
    PredicateRoot,
    compile_expression,
    evaluate,
    render,
)
from gatekeep._failure import ValidationFailure, ValidationResult
from gatekeep._parser import ConditionParser, parse_condition
from gatekeep._property import PropertyRule
from gatekeep._rule import ApplyConditionTo, ValidationRule
from gatekeep._selector import (
    DEFAULT_RULE_SET,
    AllRulesSelector,
    DefaultValidatorSelector,
    MemberNameValidatorSelector,
    RuleSetValidatorSelector,
    ValidatorSelector,
)
from gatekeep._tracing import (
    LoggingHook,
    OpenTelemetryHook,
    PrintHook,
    TraceConfig,
    TraceHook,
    use_tracing,
)
from gatekeep._validator import Validator
from gatekeep._validators import (
    ChildValidatorAdaptor,
    ConditionalValidator,
    Must,
    MustAsync,
    NotNull,
    PropertyValidator,
    PropertyValidatorContext,
)
