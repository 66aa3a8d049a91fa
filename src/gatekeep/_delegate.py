"""Rules wrapping arbitrary user logic."""

from __future__ import annotations

import asyncio
import contextvars
import inspect
from collections.abc import Awaitable, Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from typing import Any, TypeVar

from gatekeep._context import ValidationContext
from gatekeep._failure import ValidationFailure
from gatekeep._rule import ApplyConditionTo, ValidationRule
from gatekeep._types import T

R = TypeVar("R")


def run_blocking(factory: Callable[[], Awaitable[R]]) -> R:
    """
    Block the calling thread until the awaitable from ``factory`` completes.

    Without a running event loop in this thread the awaitable runs under
    asyncio.run(). Inside a running loop it runs on a worker thread with its
    own loop while this thread waits on the future. The waiting loop is
    stalled meanwhile, so logic that needs that loop to make progress will
    deadlock; prefer validate_async() from async code.
    """

    async def _main() -> R:
        return await factory()

    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(_main())

    ctx = contextvars.copy_context()
    with ThreadPoolExecutor(max_workers=1) as executor:
        return executor.submit(ctx.run, asyncio.run, _main()).result()


def _accepts_context(fn: Callable[..., Any]) -> bool:
    try:
        params = list(inspect.signature(fn).parameters.values())
    except (TypeError, ValueError):
        return False
    if any(p.kind is inspect.Parameter.VAR_POSITIONAL for p in params):
        return True
    # Only required positionals count towards (instance, context)
    positional = [
        p
        for p in params
        if p.kind
        in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD)
        and p.default is inspect.Parameter.empty
    ]
    return len(positional) >= 2


class DelegateRule(ValidationRule[T]):
    """
    A rule that runs custom logic against the whole instance.

    ``fn`` may be a plain function, a coroutine function, or any callable
    returning an awaitable. It takes either ``(instance)`` or
    ``(instance, context)``, where parameters with defaults are left alone,
    and returns (or resolves to) an iterable of ValidationFailure. The mode
    that is not supplied is derived from the other: async-from-sync returns
    the sync result without suspending, sync-from-async blocks on the
    awaitable (see run_blocking()).

    Example:
        def passwords_match(user):
            if user.password != user.confirm:
                yield ValidationFailure("", "Passwords do not match")

        rule = DelegateRule(passwords_match)
    """

    def __init__(
        self,
        fn: Callable[..., Iterable[ValidationFailure]]
        | Callable[..., Awaitable[Iterable[ValidationFailure]]],
        *,
        rule_set: str | None = None,
        name: str | None = None,
    ):
        super().__init__(rule_set=rule_set)
        self.fn = fn
        self.is_async = inspect.iscoroutinefunction(fn)
        self._pass_context = _accepts_context(fn)
        self._name = name or getattr(fn, "__name__", "delegate")

    @classmethod
    def from_async(
        cls,
        fn: Callable[..., Awaitable[Iterable[ValidationFailure]]],
        **kwargs: Any,
    ) -> DelegateRule[Any]:
        """Build from an awaitable-returning callable that is not a coroutine function."""
        rule: DelegateRule[Any] = cls(fn, **kwargs)
        rule.is_async = True
        return rule

    def _call(self, context: ValidationContext[Any]) -> Any:
        if self._pass_context:
            return self.fn(context.instance, context)
        return self.fn(context.instance)

    def _validate(self, context: ValidationContext[Any]) -> list[ValidationFailure]:
        if self.is_async:
            return run_blocking(lambda: self._validate_async(context))
        result = self._call(context)
        if inspect.isawaitable(result):
            result = run_blocking(lambda: result)
        return list(result or ())

    async def _validate_async(
        self, context: ValidationContext[Any]
    ) -> list[ValidationFailure]:
        result = self._call(context)
        if inspect.isawaitable(result):
            result = await result
        return list(result or ())

    def apply_condition(
        self,
        predicate: Callable[[Any], Any],
        apply_to: ApplyConditionTo = ApplyConditionTo.ALL_VALIDATORS,
    ) -> None:
        # No leaf validators to target; apply_to is ignored
        super().apply_condition(predicate, ApplyConditionTo.ALL_VALIDATORS)

    def __repr__(self) -> str:
        return f"DelegateRule({self._name})"
