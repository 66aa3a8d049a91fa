"""Tests for the rule contract, delegate rules and property rules."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

import pytest

from gatekeep import (
    AllRulesSelector,
    ApplyConditionTo,
    Condition,
    ConditionalValidator,
    DelegateRule,
    Field,
    MemberNameValidatorSelector,
    NotNull,
    PropertyRule,
    RuleSetValidatorSelector,
    ValidationContext,
    ValidationFailure,
    render,
    run_blocking,
)

# =============================================================================
# Test Fixtures
# =============================================================================


@dataclass
class Model:
    MyTestProp: int = 0
    MyTestProp2: str | None = None


class RejectAll:
    def can_execute(self, rule, property_name, context):
        return False


class RecordingSelector:
    def __init__(self):
        self.calls = []

    def can_execute(self, rule, property_name, context):
        self.calls.append((rule, property_name))
        return True


def failures_for(model):
    return [
        ValidationFailure("", "first", model.MyTestProp),
        ValidationFailure("", "second", model.MyTestProp2),
    ]


def ctx(instance, selector=None, **kwargs):
    return ValidationContext(instance, selector=selector or AllRulesSelector(), **kwargs)


# =============================================================================
# Gating
# =============================================================================


class TestGate:
    def test_selector_false_skips_logic(self):
        calls = []

        def logic(model):
            calls.append(model)
            return failures_for(model)

        rule = DelegateRule(logic)
        assert rule.validate(ctx(Model(), RejectAll())) == []
        assert asyncio.run(rule.validate_async(ctx(Model(), RejectAll()))) == []
        assert calls == []

    def test_condition_false_skips_logic(self):
        calls = []

        def logic(model):
            calls.append(model)
            return failures_for(model)

        rule = DelegateRule(logic)
        rule.apply_condition(Field("MyTestProp") == 1)
        assert rule.validate(ctx(Model(MyTestProp=2))) == []
        assert asyncio.run(rule.validate_async(ctx(Model(MyTestProp=2)))) == []
        assert calls == []

        assert len(rule.validate(ctx(Model(MyTestProp=1)))) == 2
        assert len(calls) == 1

    def test_selector_checked_before_condition(self):
        evaluated = []
        rule = DelegateRule(failures_for)
        rule.apply_condition(lambda m: evaluated.append(m) or True)
        rule.validate(ctx(Model(), RejectAll()))
        assert evaluated == []

    def test_delegate_reports_empty_property_name(self):
        selector = RecordingSelector()
        rule = DelegateRule(failures_for)
        rule.validate(ctx(Model(), selector))
        assert selector.calls == [(rule, "")]

    def test_property_rule_reports_full_path(self):
        selector = RecordingSelector()
        rule = PropertyRule("MyTestProp2").not_null()
        context = ValidationContext(
            Model(), property_chain=("parent",), selector=selector
        )
        rule.validate(context)
        assert selector.calls == [(rule, "parent.MyTestProp2")]

    def test_rule_set_selector(self):
        calls = []
        rule = DelegateRule(lambda m: calls.append(m) or [], rule_set="Names")
        context = ctx(Model(), RuleSetValidatorSelector("Default"))
        assert rule.validate(context) == []
        assert asyncio.run(rule.validate_async(context)) == []
        assert calls == []

    def test_member_selector_skips_delegates(self):
        rule = DelegateRule(failures_for)
        assert rule.validate(ctx(Model(), MemberNameValidatorSelector("x"))) == []

    def test_condition_fault_propagates(self):
        rule = DelegateRule(failures_for)
        rule.apply_condition(Field("missing") == 1)
        with pytest.raises(AttributeError):
            rule.validate(ctx(Model()))

    def test_logic_fault_propagates(self):
        def boom(model):
            raise RuntimeError("boom")

        rule = DelegateRule(boom)
        with pytest.raises(RuntimeError, match="boom"):
            rule.validate(ctx(Model()))
        with pytest.raises(RuntimeError, match="boom"):
            asyncio.run(rule.validate_async(ctx(Model())))


# =============================================================================
# Condition composition
# =============================================================================


class TestApplyCondition:
    def test_new_condition_evaluated_first(self):
        order = []
        rule = DelegateRule(failures_for)
        rule.apply_condition(lambda m: order.append("p1") or True)
        rule.apply_condition(lambda m: order.append("p2") or True)
        rule.validate(ctx(Model()))
        assert order == ["p2", "p1"]

    def test_short_circuit_skips_faulting_older_condition(self):
        def faulty(model):
            raise AssertionError("should not be evaluated")

        rule = DelegateRule(failures_for)
        rule.apply_condition(faulty)
        rule.apply_condition(lambda m: False)
        assert rule.validate(ctx(Model())) == []

    def test_both_must_hold(self):
        rule = DelegateRule(failures_for)
        rule.apply_condition(Field("MyTestProp") == 1)
        rule.apply_condition(Field("MyTestProp2") == "x")
        assert rule.validate(ctx(Model(1, "y"))) == []
        assert rule.validate(ctx(Model(2, "x"))) == []
        assert len(rule.validate(ctx(Model(1, "x")))) == 2

    def test_expression_replaced_by_latest(self):
        rule = DelegateRule(failures_for)
        assert rule.expression is None
        rule.apply_condition(Field("MyTestProp") == 1)
        assert render(rule.expression) == "MyTestProp==1"
        rule.apply_condition(Field("MyTestProp2") == "x")
        assert render(rule.expression) == "MyTestProp2=='x'"

    def test_expression_dropped_by_plain_predicate(self):
        rule = DelegateRule(failures_for)
        rule.apply_condition(Field("MyTestProp") == 1)
        rule.apply_condition(lambda m: True)
        assert rule.expression is None

    def test_default_condition_is_per_rule(self):
        a = DelegateRule(failures_for)
        b = DelegateRule(failures_for)
        a.apply_condition(lambda m: False)
        assert a.validate(ctx(Model())) == []
        assert len(b.validate(ctx(Model()))) == 2

    def test_narrowing_between_calls(self):
        rule = DelegateRule(failures_for)
        assert len(rule.validate(ctx(Model()))) == 2
        rule.apply_condition(lambda m: False)
        assert rule.validate(ctx(Model())) == []


# =============================================================================
# Sync / async adaptation
# =============================================================================


class TestDelegateModes:
    def test_sync_logic_both_modes(self):
        rule = DelegateRule(failures_for)
        model = Model(3, "z")
        expected = failures_for(model)
        assert rule.validate(ctx(model)) == expected
        assert asyncio.run(rule.validate_async(ctx(model))) == expected

    def test_async_logic_both_modes(self):
        async def logic(model):
            await asyncio.sleep(0)
            return failures_for(model)

        rule = DelegateRule(logic)
        assert rule.is_async
        model = Model(3, "z")
        expected = failures_for(model)
        assert rule.validate(ctx(model)) == expected
        assert asyncio.run(rule.validate_async(ctx(model))) == expected

    def test_sync_from_async_inside_running_loop(self):
        async def logic(model):
            await asyncio.sleep(0)
            return failures_for(model)

        rule = DelegateRule(logic)
        model = Model(5, "q")

        async def main():
            return rule.validate(ctx(model))

        assert asyncio.run(main()) == failures_for(model)

    def test_logic_receives_context(self):
        seen = []

        def logic(model, context):
            seen.append(context)
            return []

        rule = DelegateRule(logic)
        context = ctx(Model())
        rule.validate(context)
        assert seen == [context]

    def test_generator_logic(self):
        def logic(model):
            yield ValidationFailure("", "one")
            yield ValidationFailure("", "two")

        rule = DelegateRule(logic)
        assert [f.error_message for f in rule.validate(ctx(Model()))] == ["one", "two"]

    def test_none_result_is_empty(self):
        rule = DelegateRule(lambda m: None)
        assert rule.validate(ctx(Model())) == []

    def test_plain_callable_returning_coroutine_both_modes(self):
        async def logic(model):
            await asyncio.sleep(0)
            return failures_for(model)

        rule = DelegateRule(lambda model: logic(model))
        assert not rule.is_async
        model = Model(4, "w")
        expected = failures_for(model)
        assert asyncio.run(rule.validate_async(ctx(model))) == expected
        assert rule.validate(ctx(model)) == expected

    def test_plain_callable_returning_coroutine_inside_running_loop(self):
        async def logic(model):
            await asyncio.sleep(0)
            return failures_for(model)

        rule = DelegateRule(lambda model: logic(model))
        model = Model(6, "v")

        async def main():
            return rule.validate(ctx(model))

        assert asyncio.run(main()) == failures_for(model)

    def test_defaulted_second_parameter_is_not_the_context(self):
        seen = []

        def logic(model, strict=False):
            seen.append(strict)
            return []

        rule = DelegateRule(logic)
        rule.validate(ctx(Model()))
        asyncio.run(rule.validate_async(ctx(Model())))
        assert seen == [False, False]

    def test_required_context_with_extra_defaulted_parameter(self):
        seen = []

        def logic(model, context, strict=False):
            seen.append((context, strict))
            return []

        rule = DelegateRule(logic)
        context = ctx(Model())
        rule.validate(context)
        assert seen == [(context, False)]

    def test_from_async_for_awaitable_returning_callable(self):
        async def logic(model):
            return failures_for(model)

        rule = DelegateRule.from_async(lambda model: logic(model))
        assert rule.is_async
        assert rule.validate(ctx(Model())) == failures_for(Model())

    def test_validators_empty(self):
        assert DelegateRule(failures_for).validators == ()

    def test_run_blocking_without_loop(self):
        async def value():
            return 42

        assert run_blocking(value) == 42


# =============================================================================
# Cancellation
# =============================================================================


class TestCancellation:
    def test_cancelled_context_skips_rule(self):
        calls = []
        rule = DelegateRule(lambda m: calls.append(m) or failures_for(m))

        async def main():
            event = asyncio.Event()
            event.set()
            return await rule.validate_async(ctx(Model(), cancellation=event))

        assert asyncio.run(main()) == []
        assert calls == []

    def test_unset_signal_runs_rule(self):
        rule = DelegateRule(failures_for)

        async def main():
            event = asyncio.Event()
            return await rule.validate_async(ctx(Model(), cancellation=event))

        assert len(asyncio.run(main())) == 2

    def test_cancellation_checked_before_gate(self):
        evaluated = []
        rule = DelegateRule(failures_for)
        rule.apply_condition(lambda m: evaluated.append(m) or True)

        class Cancelled:
            def is_set(self):
                return True

        assert asyncio.run(rule.validate_async(ctx(Model(), cancellation=Cancelled()))) == []
        assert evaluated == []


# =============================================================================
# Property rules
# =============================================================================


class TestPropertyRule:
    def test_not_null(self):
        rule = PropertyRule("MyTestProp2").not_null()
        failures = rule.validate(ctx(Model()))
        assert failures == [
            ValidationFailure("MyTestProp2", "'MyTestProp2' must not be empty.", None)
        ]
        assert rule.validate(ctx(Model(MyTestProp2="x"))) == []

    def test_leaves_run_in_order(self):
        rule = (
            PropertyRule("MyTestProp")
            .must(lambda v: v > 10, "too small")
            .must(lambda v: v % 2 == 0, "odd")
        )
        failures = rule.validate(ctx(Model(MyTestProp=3)))
        assert [f.error_message for f in failures] == ["too small", "odd"]
        assert all(f.attempted_value == 3 for f in failures)

    def test_message_formatting(self):
        rule = PropertyRule("MyTestProp").must(
            lambda v: False, "{property_name} was {property_value}"
        )
        assert rule.validate(ctx(Model(MyTestProp=7)))[0].error_message == (
            "MyTestProp was 7"
        )

    def test_async_leaf(self):
        async def positive(value):
            await asyncio.sleep(0)
            return value > 0

        rule = PropertyRule("MyTestProp").must_async(positive, "not positive")
        failures = asyncio.run(rule.validate_async(ctx(Model(MyTestProp=-1))))
        assert [f.error_message for f in failures] == ["not positive"]
        assert rule.validate(ctx(Model(MyTestProp=-1))) == failures
        assert rule.validate(ctx(Model(MyTestProp=1))) == []

    def test_mapping_instance(self):
        rule = PropertyRule("name").not_null()
        assert len(rule.validate(ctx({"name": None}))) == 1

    def test_validators_exposed(self):
        rule = PropertyRule("MyTestProp2").not_null()
        assert len(rule.validators) == 1
        assert isinstance(rule.validators[0], NotNull)

    def test_when_all_validators(self):
        rule = PropertyRule("MyTestProp2").not_null().when(Field("MyTestProp") == 1)
        assert len(rule.validate(ctx(Model(MyTestProp=1)))) == 1
        assert rule.validate(ctx(Model(MyTestProp=2))) == []
        assert render(rule.expression) == "MyTestProp==1"

    def test_when_current_validator(self):
        rule = (
            PropertyRule("MyTestProp")
            .must(lambda v: False, "always")
            .must(lambda v: False, "conditional")
            .when(Field("MyTestProp2") == "on", ApplyConditionTo.CURRENT_VALIDATOR)
        )
        assert isinstance(rule.validators[1], ConditionalValidator)
        assert render(rule.validators[1].expression) == "MyTestProp2=='on'"
        assert rule.expression is None

        off = [f.error_message for f in rule.validate(ctx(Model(MyTestProp2="off")))]
        on = [f.error_message for f in rule.validate(ctx(Model(MyTestProp2="on")))]
        assert off == ["always"]
        assert on == ["always", "conditional"]

    def test_current_validator_requires_a_validator(self):
        with pytest.raises(ValueError):
            PropertyRule("x").when(lambda m: True, ApplyConditionTo.CURRENT_VALIDATOR)

    def test_unless(self):
        rule = PropertyRule("MyTestProp2").not_null().unless(Field("MyTestProp") == 1)
        assert rule.validate(ctx(Model(MyTestProp=1))) == []
        assert len(rule.validate(ctx(Model(MyTestProp=2)))) == 1
        assert rule.expression is None

    def test_requires_name(self):
        with pytest.raises(ValueError):
            PropertyRule("")

    def test_condition_object_callable(self):
        rule = PropertyRule("MyTestProp2").not_null().when(
            Condition(lambda m: m.MyTestProp > 5, name="big")
        )
        assert rule.validate(ctx(Model(MyTestProp=1))) == []
        assert len(rule.validate(ctx(Model(MyTestProp=9)))) == 1
