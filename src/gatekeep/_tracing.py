"""Tracing hooks for rule execution."""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass
from typing import Any, Protocol, runtime_checkable

# Optional OpenTelemetry imports - only needed if using OpenTelemetryHook
try:
    from opentelemetry.trace import (
        Status as _Status,
    )
    from opentelemetry.trace import (
        StatusCode as _StatusCode,
    )
    from opentelemetry.trace import (
        set_span_in_context as _set_span_in_context,
    )

    _HAS_OPENTELEMETRY = True
except ImportError:
    _HAS_OPENTELEMETRY = False
    _Status = None
    _StatusCode = None
    _set_span_in_context = None


@runtime_checkable
class TraceHook(Protocol):
    """
    Protocol for trace hooks.

    Implement this to integrate with logging, OpenTelemetry, or other
    tracing systems. Only rules whose gate is open are reported.

    Example:
        class FailureCounter:
            def __init__(self):
                self.failed = collections.Counter()

            def on_enter(self, name, ctx, depth):
                return None  # span token

            def on_exit(self, span, name, ok, duration_ms, depth):
                if not ok:
                    self.failed[name] += 1

            def on_error(self, span, name, error, duration_ms, depth):
                self.failed[name] += 1
    """

    def on_enter(self, name: str, ctx: Any, depth: int) -> Any:
        """
        Called before a rule runs.

        Args:
            name: Name of the rule
            ctx: Instance being validated
            depth: Nesting depth (0 = top-level validator)

        Returns:
            Span token to pass to on_exit (can be None)
        """
        ...

    def on_exit(
        self, span: Any, name: str, ok: bool, duration_ms: float, depth: int
    ) -> None:
        """
        Called after a rule completes.

        Args:
            span: Token returned from on_enter
            name: Name of the rule
            ok: True if the rule produced no failures
            duration_ms: Execution time in milliseconds
            depth: Nesting depth
        """
        ...

    def on_error(
        self, span: Any, name: str, error: Exception, duration_ms: float, depth: int
    ) -> None:
        """Called if a rule raises. The exception is re-raised afterwards."""
        ...


@dataclass
class TraceConfig:
    """
    Configuration for tracing behavior.

    Attributes:
        max_depth: Maximum nesting depth to trace (None = unlimited).
                   Child validators run one level deeper than their parent.
    """

    max_depth: int | None = None


# Context variables for global tracing
_trace_hook: ContextVar[TraceHook | None] = ContextVar("trace_hook", default=None)
_trace_config: ContextVar[TraceConfig] = ContextVar(
    "trace_config", default=TraceConfig()
)
_trace_depth: ContextVar[int] = ContextVar("trace_depth", default=0)


@contextmanager
def use_tracing(hook: TraceHook, config: TraceConfig | None = None):
    """
    Context manager to enable tracing for all rule executions in scope.

    Example:
        with use_tracing(LoggingHook()):
            validator.validate(user)

        with use_tracing(PrintHook(), TraceConfig(max_depth=0)):
            validator.validate(order)  # nested validators are not traced
    """
    old_hook = _trace_hook.get()
    old_config = _trace_config.get()

    _trace_hook.set(hook)
    _trace_config.set(config or TraceConfig())

    try:
        yield
    finally:
        _trace_hook.set(old_hook)
        _trace_config.set(old_config)


def _should_trace() -> TraceHook | None:
    hook = _trace_hook.get()
    if hook is None:
        return None
    config = _trace_config.get()
    if config.max_depth is not None and _trace_depth.get() > config.max_depth:
        return None
    return hook


def traced_call(name: str, instance: Any, call: Callable[[], list]) -> list:
    """Run ``call`` reporting to the active hook. ``ok`` means no failures."""
    hook = _should_trace()
    depth = _trace_depth.get()
    token = _trace_depth.set(depth + 1)
    try:
        if hook is None:
            return call()

        span = hook.on_enter(name, instance, depth)
        start = time.perf_counter()
        try:
            failures = call()
        except Exception as e:
            duration_ms = (time.perf_counter() - start) * 1000
            hook.on_error(span, name, e, duration_ms, depth)
            raise
        duration_ms = (time.perf_counter() - start) * 1000
        hook.on_exit(span, name, not failures, duration_ms, depth)
        return failures
    finally:
        _trace_depth.reset(token)


async def traced_call_async(
    name: str, instance: Any, call: Callable[[], Awaitable[list]]
) -> list:
    """Async counterpart of traced_call()."""
    hook = _should_trace()
    depth = _trace_depth.get()
    token = _trace_depth.set(depth + 1)
    try:
        if hook is None:
            return await call()

        span = hook.on_enter(name, instance, depth)
        start = time.perf_counter()
        try:
            failures = await call()
        except Exception as e:
            duration_ms = (time.perf_counter() - start) * 1000
            hook.on_error(span, name, e, duration_ms, depth)
            raise
        duration_ms = (time.perf_counter() - start) * 1000
        hook.on_exit(span, name, not failures, duration_ms, depth)
        return failures
    finally:
        _trace_depth.reset(token)


# =============================================================================
# Built-in Trace Hooks
# =============================================================================


class PrintHook:
    """
    Trace hook that prints each executed rule to stdout.

    Nested validators are indented under the rule that delegated to them.
    Rules skipped by their selector or condition print nothing.

    Example:
        with use_tracing(PrintHook(show_instance=True)):
            validator.validate(customer)

        # Output:
        # rule PropertyRule(address) on Customer(...)
        #   rule PropertyRule(street) on Address(...)
        #   PropertyRule(street): failed in 0.02ms
        # PropertyRule(address): failed in 0.05ms
    """

    def __init__(self, indent: str = "  ", show_instance: bool = False):
        self.indent = indent
        self.show_instance = show_instance

    def on_enter(self, name: str, ctx: Any, depth: int) -> None:
        prefix = self.indent * depth
        target = f" on {ctx!r}" if self.show_instance else ""
        print(f"{prefix}rule {name}{target}")

    def on_exit(
        self, span: None, name: str, ok: bool, duration_ms: float, depth: int
    ) -> None:
        prefix = self.indent * depth
        outcome = "passed" if ok else "failed"
        print(f"{prefix}{name}: {outcome} in {duration_ms:.2f}ms")

    def on_error(
        self, span: None, name: str, error: Exception, duration_ms: float, depth: int
    ) -> None:
        prefix = self.indent * depth
        print(f"{prefix}{name}: raised {type(error).__name__}: {error}")


class LoggingHook:
    """
    Trace hook that logs to a Python logger.

    Example:
        import logging
        logging.basicConfig(level=logging.DEBUG)

        with use_tracing(LoggingHook()):
            validator.validate(user)
    """

    def __init__(self, logger: logging.Logger | None = None, level: int = logging.DEBUG):
        self.logger = logger or logging.getLogger("gatekeep")
        self.level = level

    def on_enter(self, name: str, ctx: Any, depth: int) -> dict:
        span = {"name": name, "depth": depth, "start": time.perf_counter()}
        self.logger.log(self.level, "[ENTER] %s (depth=%d)", name, depth)
        return span

    def on_exit(
        self, span: dict, name: str, ok: bool, duration_ms: float, depth: int
    ) -> None:
        status = "OK" if ok else "FAIL"
        self.logger.log(
            self.level, "[EXIT] %s -> %s (%.2fms)", name, status, duration_ms
        )

    def on_error(
        self, span: dict, name: str, error: Exception, duration_ms: float, depth: int
    ) -> None:
        self.logger.error("[ERROR] %s -> %s (%.2fms)", name, error, duration_ms)


class OpenTelemetryHook:
    """
    OpenTelemetry trace hook.

    Each executed rule becomes a span; rules of nested validators become
    child spans of the rule that delegated to them. The current parent span
    is tracked in a context variable, so concurrent validate_async() calls
    (e.g. under asyncio.gather) keep separate span trees.

    Requires: pip install gatekeep[otel]
    """

    def __init__(self, tracer, *, max_span_depth: int | None = None):
        if not _HAS_OPENTELEMETRY:
            raise ImportError(
                "OpenTelemetry is not installed. "
                "Install it with: pip install opentelemetry-api"
            )
        self.tracer = tracer
        self.max_span_depth = max_span_depth
        self._parent: ContextVar[Any] = ContextVar(
            f"gatekeep_otel_parent_{id(self)}", default=None
        )

    def on_enter(self, name: str, ctx: Any, depth: int) -> Any:
        assert _set_span_in_context is not None

        if self.max_span_depth is not None and depth > self.max_span_depth:
            return None

        parent = self._parent.get()
        parent_ctx = _set_span_in_context(parent) if parent is not None else None

        span = self.tracer.start_span(name, context=parent_ctx)
        span.set_attribute("gatekeep.rule", name)
        span.set_attribute("gatekeep.depth", depth)
        return span, self._parent.set(span)

    def on_exit(
        self, span: Any, name: str, ok: bool, duration_ms: float, depth: int
    ) -> None:
        if span is None:
            return
        assert _Status is not None
        assert _StatusCode is not None

        otel_span, token = span
        otel_span.set_attribute("gatekeep.success", ok)
        otel_span.set_attribute("gatekeep.duration_ms", duration_ms)
        if not ok:
            otel_span.set_status(_Status(_StatusCode.ERROR))
        otel_span.end()
        self._parent.reset(token)

    def on_error(
        self, span: Any, name: str, error: Exception, duration_ms: float, depth: int
    ) -> None:
        if span is None:
            return
        assert _Status is not None
        assert _StatusCode is not None

        otel_span, token = span
        otel_span.set_attribute("gatekeep.success", False)
        otel_span.set_attribute("gatekeep.duration_ms", duration_ms)
        otel_span.record_exception(error)
        otel_span.set_status(_Status(_StatusCode.ERROR, str(error)))
        otel_span.end()
        self._parent.reset(token)
